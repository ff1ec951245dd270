import re
from typing import Optional, Tuple
from urllib.parse import urlsplit

from v0fetch.core.constants import CHAT_HOSTS, CHAT_URL_BASE
from v0fetch.core.errors import InvalidInputError, UnsupportedLocatorError
from v0fetch.domain.models import ChatIdentity

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*://")
_BARE_HOST_RE = re.compile(r"^(?:www\.)?v0\.(?:app|dev)/", re.IGNORECASE)
_CHAT_PATH_RE = re.compile(r"^/chat/([A-Za-z0-9_\-]+)(?:/.*)?$")
_HASH_SEGMENT_RE = re.compile(r"^[A-Za-z0-9]{6,}$")


def is_hash_segment(segment: str) -> bool:
    """Mixed-case or digit-bearing alphanumeric token of 6+ chars (not a plain word or number)."""
    if not _HASH_SEGMENT_RE.match(segment):
        return False
    if re.fullmatch(r"[a-z]+", segment):
        return False
    if re.fullmatch(r"[0-9]+", segment):
        return False
    return True

def split_hash_segment(slug: str) -> Tuple[str, str]:
    """Return `(hash_id, feature_name)`; both equal `slug` when no trailing hash qualifies."""
    parts = slug.split("-")
    if len(parts) >= 2 and is_hash_segment(parts[-1]):
        return parts[-1], "-".join(parts[:-1])
    return slug, slug

def derive_feature_name(slug: str) -> str:
    return split_hash_segment(slug)[1]

def _slug_from_url(url: str) -> str:
    parts = urlsplit(url)
    scheme = (parts.scheme or "").lower()
    if scheme not in ("http", "https"):
        raise UnsupportedLocatorError(
            f"Unsupported URL scheme {scheme!r} in {url!r}; use an https://v0.app/chat/... URL."
        )
    host = (parts.hostname or "").lower()
    if host not in CHAT_HOSTS:
        raise UnsupportedLocatorError(
            f"Not a v0 chat URL: {url!r} (expected host v0.app or v0.dev)."
        )
    m = _CHAT_PATH_RE.match(parts.path.rstrip("/"))
    if not m:
        raise UnsupportedLocatorError(
            f"Not a v0 chat URL: {url!r} (expected a /chat/<id> path)."
        )
    return m.group(1)

def resolve_chat_identity(input_arg: Optional[str]) -> ChatIdentity:
    """Turn a v0 chat URL or a bare chat id into slug, hash id and feature name.

    Query strings, fragments and trailing slashes on URLs are ignored. Blank
    input yields an all-empty identity rather than an error.
    """
    if input_arg is None:
        raise InvalidInputError("A v0 chat URL or chat ID is required (got None).")
    if not isinstance(input_arg, str):
        raise InvalidInputError(
            f"Chat URL or ID must be a string, not {type(input_arg).__name__}."
        )
    raw = input_arg.strip()
    if not raw:
        return ChatIdentity(slug="", hash_id="", feature_name="")

    if _BARE_HOST_RE.match(raw):
        raw = "https://" + raw
    slug = _slug_from_url(raw) if _SCHEME_RE.match(raw) else raw

    hash_id, feature_name = split_hash_segment(slug)
    return ChatIdentity(slug=slug, hash_id=hash_id, feature_name=feature_name)

def chat_source_url(slug: str) -> str:
    return f"{CHAT_URL_BASE}/{slug}"
