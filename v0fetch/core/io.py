import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

BOM = "\ufeff"
# Fractional seconds followed by an optional UTC offset.
_FRACTION_RE = re.compile(r"\.(\d+)(?=(?:[+-]\d{2}:?\d{2})?$)")


def decode_text(data: bytes) -> str:
    """Decode archive bytes as UTF-8, replacing invalid sequences instead of failing."""
    return data.decode("utf-8", errors="replace")

def strip_bom(s: str) -> str:
    return s[1:] if s.startswith(BOM) else s

def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an API `createdAt` value into an aware datetime (None when unusable).

    Accepts ISO-8601 strings (including a trailing `Z`) and epoch seconds.
    Naive values are read as UTC.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if not isinstance(value, str) or not value.strip():
        return None
    s = value.strip()
    if s.endswith(("Z", "z")):
        s = s[:-1] + "+00:00"
    s = _FRACTION_RE.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), s)
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt

def dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"

def write_text_utf8(path: Path, text: str) -> None:
    Path(path).write_text(text, encoding="utf-8")
