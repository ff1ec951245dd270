import io
import os
import re
import shutil
import stat
import time
import zipfile
from pathlib import Path
from typing import List, Optional, Tuple

from v0fetch.core.constants import MAX_ZIP_MEMBERS, MAX_ZIP_UNCOMPRESSED_BYTES
from v0fetch.core.errors import ArchiveError, SecurityViolationError


def is_unsafe_zip_member(member_name: str, dest_dir: Path) -> bool:
    """Return True when a ZIP member path is unsafe for extraction.

    `dest_dir` is resolved first (symlinks included), so the containment check
    compares canonical paths rather than string prefixes.
    """
    normalized = member_name.replace("\\", "/")
    if not normalized or normalized == ".":
        return True
    if normalized == ".." or normalized.startswith(("/", "../")):
        return True
    if "/../" in normalized or normalized.endswith("/.."):
        return True
    if re.match(r"^[a-zA-Z]:", member_name) or re.match(r"^[a-zA-Z]:", normalized):
        return True

    dest_root = Path(dest_dir).resolve()
    candidate = (dest_root / normalized).resolve()
    if candidate == dest_root:
        return True
    try:
        candidate.relative_to(dest_root)
    except ValueError:
        return True
    return False

def is_special_zip_member(info: zipfile.ZipInfo) -> bool:
    mode = (info.external_attr >> 16) & 0xFFFF
    if not mode:
        return False
    file_type = stat.S_IFMT(mode)
    if not file_type:
        return False
    return file_type not in (stat.S_IFREG, stat.S_IFDIR)

def validate_zip_members_safe(
    zf: zipfile.ZipFile,
    dest_dir: Path,
    *,
    max_members: int = MAX_ZIP_MEMBERS,
    max_uncompressed_bytes: int = MAX_ZIP_UNCOMPRESSED_BYTES,
) -> None:
    member_count = 0
    total_uncompressed = 0
    for info in zf.infolist():
        member_count += 1
        if member_count > max_members:
            raise ArchiveError(
                f"ZIP member limit exceeded: {member_count} > {max_members} members."
            )
        if is_special_zip_member(info):
            raise SecurityViolationError(
                f"Special ZIP member type is not allowed: {info.filename}"
            )
        if is_unsafe_zip_member(info.filename, dest_dir):
            raise SecurityViolationError(
                f'Zip Slip detected: "{info.filename}" resolves outside target directory'
            )
        if info.is_dir():
            continue
        total_uncompressed += max(int(info.file_size), 0)
        if total_uncompressed > max_uncompressed_bytes:
            raise ArchiveError(
                "ZIP uncompressed size limit exceeded: "
                f"{total_uncompressed} > {max_uncompressed_bytes} bytes."
            )

def _discard(temp_dir: Path) -> None:
    if temp_dir.exists():
        shutil.rmtree(temp_dir, ignore_errors=True)

def _write_members(zf: zipfile.ZipFile, root: Path) -> List[Tuple[str, bytes]]:
    written: List[Tuple[str, bytes]] = []
    for info in zf.infolist():
        target = (root / info.filename.replace("\\", "/")).resolve()
        # Parents may have been created by earlier members; re-check after resolving.
        if target == root or root not in target.parents:
            raise SecurityViolationError(
                f'Zip Slip detected: "{info.filename}" resolves outside target directory'
            )
        if info.is_dir():
            target.mkdir(parents=True, exist_ok=True)
            continue
        payload = zf.read(info)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(payload)
        written.append((info.filename, payload))
    return written

def extract_zip_bytes_safely(
    data: Optional[bytes],
    dest_dir: Path,
    *,
    max_members: int = MAX_ZIP_MEMBERS,
    max_uncompressed_bytes: int = MAX_ZIP_UNCOMPRESSED_BYTES,
) -> List[Tuple[str, bytes]]:
    """Replace `dest_dir` with the file members of an in-memory ZIP.

    All members are validated before anything is written. Extraction goes to a
    sibling temp directory that is swapped in only once every member is on
    disk, so a failed run leaves the previous contents untouched and a
    successful one leaves no stale files behind. A symlinked `dest_dir` is
    resolved first and the swap happens at the real path.
    Returns `(member_name, payload)` for each regular file, in archive order.
    """
    if data is None:
        raise ArchiveError("No ZIP payload to extract (got None).")
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise ArchiveError(
            f"ZIP payload must be bytes, not {type(data).__name__}."
        )

    dest_dir = Path(dest_dir)
    if dest_dir.exists() and not dest_dir.is_dir():
        raise ArchiveError(f"Refusing to replace non-directory extraction target: {dest_dir}")
    try:
        dest_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ArchiveError(f"Cannot create extraction target {dest_dir}: {e}") from e
    dest_root = dest_dir.resolve()
    temp_dir = dest_root.parent / (
        f".{dest_root.name}.tmp-{os.getpid()}-{int(time.time() * 1_000_000)}"
    )

    try:
        with zipfile.ZipFile(io.BytesIO(bytes(data)), "r") as zf:
            validate_zip_members_safe(
                zf,
                dest_root,
                max_members=max_members,
                max_uncompressed_bytes=max_uncompressed_bytes,
            )
            temp_dir.mkdir(parents=True, exist_ok=False)
            written = _write_members(zf, temp_dir.resolve())

        shutil.rmtree(dest_root)
        temp_dir.replace(dest_root)
    except zipfile.BadZipFile as e:
        _discard(temp_dir)
        raise ArchiveError(f"Invalid ZIP archive: {e}") from e
    except OSError as e:
        _discard(temp_dir)
        raise ArchiveError(f"Failed to extract ZIP archive into {dest_root}: {e}") from e
    except BaseException:
        _discard(temp_dir)
        raise
    return written
