import io
import os
import tempfile
import unittest
import zipfile
from datetime import datetime, timezone
from pathlib import Path
from unittest import mock

from v0fetch.core.env import _env_positive_int, _env_str, _parse_env_bool
from v0fetch.core.errors import (
    ArchiveError,
    InvalidInputError,
    PathTraversalError,
    SecurityViolationError,
)
from v0fetch.core.io import parse_timestamp
from v0fetch.core.layout import check_feature_name, design_dir, output_base_dir
from v0fetch.core.zip_safety import is_special_zip_member, is_unsafe_zip_member
from v0fetch.domain.archive import extract_zip_to_directory


def _zip_bytes(member_name: str, payload: str = "x") -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr(member_name, payload)
    return buf.getvalue()


class EdgeCaseBase(unittest.TestCase):
    def setUp(self):
        self.tempdir = tempfile.TemporaryDirectory()
        self.home = Path(self.tempdir.name)
        self.target = self.home / "designs" / "feature" / "v0-source"
        self.target.mkdir(parents=True)

    def tearDown(self):
        self.tempdir.cleanup()

    def assert_nothing_written(self):
        self.assertEqual(list(self.target.rglob("*")), [])


class TestZipSafety(EdgeCaseBase):
    def test_extract_rejects_parent_traversal_member(self):
        with self.assertRaises(SecurityViolationError) as ctx:
            extract_zip_to_directory(_zip_bytes("../escape.txt", "bad"), self.target)
        self.assertIn("zip slip", str(ctx.exception).lower())
        self.assertFalse((self.target.parent / "escape.txt").exists())

    def test_extract_rejects_absolute_member(self):
        with self.assertRaises(SecurityViolationError):
            extract_zip_to_directory(_zip_bytes("/tmp/v0fetch_abs_escape.txt", "bad"), self.target)
        self.assertFalse(Path("/tmp/v0fetch_abs_escape.txt").exists())

    def test_extract_rejects_windows_drive_member(self):
        with self.assertRaises(SecurityViolationError):
            extract_zip_to_directory(_zip_bytes("C:\\temp\\escape.txt", "bad"), self.target)
        self.assert_nothing_written()

    def test_extract_rejects_backslash_traversal_member(self):
        with self.assertRaises(SecurityViolationError):
            extract_zip_to_directory(_zip_bytes("..\\..\\escape.txt", "bad"), self.target)
        self.assert_nothing_written()

    def test_extract_rejects_symlink_member(self):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            info = zipfile.ZipInfo("link_to_payload")
            info.create_system = 3  # unix
            info.external_attr = (0o120777 << 16)
            zf.writestr(info, "/etc/passwd")

        with self.assertRaises(SecurityViolationError) as ctx:
            extract_zip_to_directory(buf.getvalue(), self.target)
        self.assertIn("special", str(ctx.exception).lower())
        self.assert_nothing_written()

    def test_traversal_fuzz_never_writes_outside_target(self):
        names = [
            "../x.txt",
            "../../x.txt",
            "a/../../x.txt",
            "a/b/../../../x.txt",
            "..",
            "a/..",
            "/x.txt",
            "//x.txt",
            "C:x.txt",
            "c:/x.txt",
            "..\\x.txt",
            "a\\..\\..\\x.txt",
        ]
        for name in names:
            with self.subTest(name=name):
                with self.assertRaises(SecurityViolationError):
                    extract_zip_to_directory(_zip_bytes(name, "bad"), self.target)
                self.assert_nothing_written()
                self.assertFalse((self.home / "designs" / "feature" / "x.txt").exists())

    def test_one_bad_member_aborts_the_whole_archive(self):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("app/page.tsx", "ok")
            zf.writestr("lib/utils.ts", "ok")
            zf.writestr("../../../etc/evil", "bad")
        with self.assertRaises(SecurityViolationError):
            extract_zip_to_directory(buf.getvalue(), self.target)
        self.assert_nothing_written()

    def test_file_then_nested_member_fails_cleanly(self):
        (self.target / "keep.txt").write_text("previous run", encoding="utf-8")
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("a", "x")
            zf.writestr("a/b", "y")

        with self.assertRaises(ArchiveError):
            extract_zip_to_directory(buf.getvalue(), self.target)
        self.assertEqual(
            sorted(p.name for p in self.target.iterdir()), ["keep.txt"]
        )
        self.assertEqual(sorted(p.name for p in self.target.parent.iterdir()), ["v0-source"])

    def test_extract_replaces_previous_contents(self):
        (self.target / "stale").mkdir()
        (self.target / "stale" / "old.tsx").write_text("old", encoding="utf-8")

        extract_zip_to_directory(_zip_bytes("app/page.tsx", "new"), self.target)

        files = sorted(p.relative_to(self.target).as_posix() for p in self.target.rglob("*"))
        self.assertEqual(files, ["app", "app/page.tsx"])
        self.assertEqual(sorted(p.name for p in self.target.parent.iterdir()), ["v0-source"])

    def test_non_directory_target_is_refused(self):
        target = self.home / "not-a-dir"
        target.write_text("file", encoding="utf-8")
        with self.assertRaises(ArchiveError) as ctx:
            extract_zip_to_directory(_zip_bytes("a.txt"), target)
        self.assertIn("non-directory", str(ctx.exception))
        self.assertEqual(target.read_text(encoding="utf-8"), "file")

    @unittest.skipIf(os.name == "nt", "symlinks need privileges on Windows")
    def test_symlinked_target_directory_is_canonicalised(self):
        real = self.home / "real-output"
        real.mkdir()
        link = self.home / "linked-output"
        link.symlink_to(real, target_is_directory=True)

        extract_zip_to_directory(_zip_bytes("app/page.tsx", "ok"), link)
        self.assertTrue((real / "app" / "page.tsx").is_file())

    @unittest.skipIf(os.name == "nt", "symlinks need privileges on Windows")
    def test_existing_symlink_inside_target_cannot_be_followed_out(self):
        outside = self.home / "outside"
        outside.mkdir()
        (self.target / "link").symlink_to(outside, target_is_directory=True)

        with self.assertRaises(SecurityViolationError):
            extract_zip_to_directory(_zip_bytes("link/evil.txt", "bad"), self.target)
        self.assertFalse((outside / "evil.txt").exists())

    def test_zip_member_count_over_limit(self):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            for i in range(3):
                zf.writestr(f"file_{i}.txt", "x")
        with self.assertRaises(ArchiveError) as ctx:
            extract_zip_to_directory(buf.getvalue(), self.target, max_members=2)
        self.assertIn("member", str(ctx.exception).lower())
        self.assertIn("limit", str(ctx.exception).lower())

    def test_zip_uncompressed_size_over_limit(self):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("a.txt", "x" * 24)
            zf.writestr("b.txt", "x" * 24)
        with self.assertRaises(ArchiveError) as ctx:
            extract_zip_to_directory(buf.getvalue(), self.target, max_uncompressed_bytes=32)
        self.assertIn("uncompressed", str(ctx.exception).lower())
        self.assert_nothing_written()


class TestZipMemberPredicates(EdgeCaseBase):
    def test_is_unsafe_zip_member(self):
        self.assertFalse(is_unsafe_zip_member("app/page.tsx", self.target))
        self.assertFalse(is_unsafe_zip_member("components/", self.target))
        self.assertTrue(is_unsafe_zip_member("", self.target))
        self.assertTrue(is_unsafe_zip_member(".", self.target))
        self.assertTrue(is_unsafe_zip_member("../sibling", self.target))
        self.assertTrue(is_unsafe_zip_member("D:\\evil", self.target))

    def test_sibling_with_shared_prefix_is_outside(self):
        self.assertTrue(is_unsafe_zip_member("../v0-source-evil/x", self.target))

    def test_is_special_zip_member(self):
        regular = zipfile.ZipInfo("a.txt")
        regular.external_attr = (0o100644 << 16)
        fifo = zipfile.ZipInfo("pipe")
        fifo.external_attr = (0o010644 << 16)
        self.assertFalse(is_special_zip_member(regular))
        self.assertFalse(is_special_zip_member(zipfile.ZipInfo("plain.txt")))
        self.assertTrue(is_special_zip_member(fifo))


class TestFeatureNamePolicy(EdgeCaseBase):
    def test_traversal_names_are_rejected(self):
        for name in ("../../../etc/evil", "evil/path", "evil\\path", "..", "a..b"):
            with self.subTest(name=name):
                with self.assertRaisesRegex(PathTraversalError, "(?i)path traversal"):
                    check_feature_name(name)

    def test_empty_name_is_invalid_input(self):
        for name in ("", "   "):
            with self.subTest(name=name):
                with self.assertRaises(InvalidInputError):
                    check_feature_name(name)

    def test_design_dir_layout(self):
        path = design_dir(self.home, "book-advertising-dashboard")
        self.assertEqual(path, self.home / "designs" / "book-advertising-dashboard" / "v0-source")
        self.assertRegex(str(path), r"v0-source/?$")

    def test_output_base_dir_precedence(self):
        with mock.patch.dict(os.environ, {"V0FETCH_OUTPUT_DIR": str(self.home / "env")}):
            self.assertEqual(output_base_dir(str(self.home / "cli")), self.home / "cli")
            self.assertEqual(output_base_dir(None), self.home / "env")
        with mock.patch.dict(os.environ, {"V0FETCH_OUTPUT_DIR": "  "}):
            self.assertEqual(output_base_dir(None), Path.cwd())


class TestEnvParsing(unittest.TestCase):
    def test_positive_int_falls_back_on_junk(self):
        for raw in ("abc", "0", "-5", ""):
            with self.subTest(raw=raw):
                with mock.patch.dict(os.environ, {"V0FETCH_TEST_INT": raw}):
                    self.assertEqual(_env_positive_int("V0FETCH_TEST_INT", 7), 7)
        with mock.patch.dict(os.environ, {"V0FETCH_TEST_INT": " 42 "}):
            self.assertEqual(_env_positive_int("V0FETCH_TEST_INT", 7), 42)

    def test_parse_env_bool(self):
        cases = {"1": True, "Yes": True, "on": True, "0": False, "off": False, "maybe": None}
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                with mock.patch.dict(os.environ, {"V0FETCH_TEST_BOOL": raw}):
                    self.assertEqual(_parse_env_bool("V0FETCH_TEST_BOOL"), expected)
        with mock.patch.dict(os.environ, {}, clear=False):
            os.environ.pop("V0FETCH_TEST_BOOL", None)
            self.assertIsNone(_parse_env_bool("V0FETCH_TEST_BOOL"))

    def test_env_str_treats_blank_as_unset(self):
        with mock.patch.dict(os.environ, {"V0FETCH_TEST_STR": "   "}):
            self.assertIsNone(_env_str("V0FETCH_TEST_STR"))
        with mock.patch.dict(os.environ, {"V0FETCH_TEST_STR": " value "}):
            self.assertEqual(_env_str("V0FETCH_TEST_STR"), "value")


class TestTimestampRobustness(unittest.TestCase):
    def test_parse_timestamp_variants(self):
        self.assertIsNotNone(parse_timestamp("2024-01-15T10:30:00Z"))
        self.assertIsNotNone(parse_timestamp("2024-01-15T10:30:00+02:00"))
        self.assertIsNotNone(parse_timestamp(1705314600))
        self.assertIsNone(parse_timestamp("yesterday"))
        self.assertIsNone(parse_timestamp(""))
        self.assertIsNone(parse_timestamp(None))
        self.assertIsNone(parse_timestamp(True))

    def test_naive_timestamp_is_utc(self):
        naive = parse_timestamp("2024-01-15T10:30:00")
        aware = parse_timestamp("2024-01-15T10:30:00Z")
        self.assertEqual(naive, aware)

    def test_short_and_long_fractional_seconds(self):
        expected = datetime(2024, 1, 15, 12, 0, 0, 120000, tzinfo=timezone.utc)
        self.assertEqual(parse_timestamp("2024-01-15T12:00:00.12Z"), expected)
        self.assertEqual(parse_timestamp("2024-01-15T12:00:00.1200000Z"), expected)
        self.assertEqual(parse_timestamp("2024-01-15T12:00:00.1+00:00"), expected.replace(microsecond=100000))
        self.assertEqual(
            parse_timestamp("2024-01-15T12:00:00.123456Z"),
            expected.replace(microsecond=123456),
        )


if __name__ == "__main__":
    unittest.main()
