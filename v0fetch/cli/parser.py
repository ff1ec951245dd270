import argparse

from v0fetch.commands.fetch import cmd_fetch
from v0fetch.core.constants import __version__


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="v0fetch",
        description="Pull a v0 chat version into designs/<feature-name>/v0-source/.",
    )
    p.add_argument(
        "-V",
        "--tool-version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    p.add_argument(
        "chat",
        nargs="?",
        help="v0 chat URL (https://v0.app/chat/<slug>) or bare chat ID",
    )
    p.add_argument(
        "feature_name",
        nargs="?",
        default=None,
        help="Folder name under designs/ (default: derived from the chat slug)",
    )
    p.add_argument(
        "--output-dir",
        dest="output_dir",
        help="Base directory for designs/<feature-name>/. Default: $V0FETCH_OUTPUT_DIR or CWD",
    )
    p.add_argument(
        "--version",
        dest="version_id",
        metavar="VERSION_ID",
        default=None,
        help="Download this version ID instead of the newest completed one",
    )
    p.add_argument(
        "--list-versions",
        dest="list_versions",
        action="store_true",
        help="List the chat's versions (newest first) and exit without downloading",
    )
    p.add_argument(
        "--quiet",
        dest="quiet",
        action="store_true",
        default=None,
        help="Only print warnings and errors (default: $V0FETCH_QUIET)",
    )
    p.add_argument(
        "--verbose",
        dest="verbose",
        action="store_true",
        help="Log each API request",
    )
    p.set_defaults(func=cmd_fetch)
    return p
