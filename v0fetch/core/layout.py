import sys
from pathlib import Path
from typing import Optional

from v0fetch.core.constants import DESIGNS_DIR, SOURCE_DIR
from v0fetch.core.env import _env_str
from v0fetch.core.errors import InvalidInputError, PathTraversalError


def die(msg: str, code: int = 1) -> None:
    print(f"ERROR: {msg}", file=sys.stderr)
    sys.exit(code)

def output_base_dir(cli_output_dir: Optional[str]) -> Path:
    """Base folder that holds `designs/`: --output-dir, then $V0FETCH_OUTPUT_DIR, then CWD."""
    if cli_output_dir:
        return Path(cli_output_dir).expanduser()
    env = _env_str("V0FETCH_OUTPUT_DIR")
    if env:
        return Path(env).expanduser()
    return Path.cwd()

def check_feature_name(name: str) -> str:
    """Reject feature names that could leave `designs/`; returns the name unchanged."""
    if ".." in name or "/" in name or "\\" in name:
        raise PathTraversalError(
            f"Invalid feature name {name!r}: path traversal characters "
            "('..', '/', '\\') are not allowed."
        )
    if not name.strip():
        raise InvalidInputError("Feature name is empty; pass one explicitly.")
    return name

def design_dir(base: Path, feature_name: str) -> Path:
    return Path(base) / DESIGNS_DIR / check_feature_name(feature_name) / SOURCE_DIR
