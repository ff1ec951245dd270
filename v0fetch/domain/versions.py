import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import httpx

from v0fetch.core.api import V0Client, path_segment
from v0fetch.core.constants import PAGE_LIMIT, STATUS_COMPLETED
from v0fetch.core.errors import InvalidInputError, RemoteError
from v0fetch.domain.models import Version, VersionList

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def versions_path(chat_id: str) -> str:
    return f"/chats/{path_segment(chat_id)}/versions"

def fetch_with_chat_id_fallback(
    slug: str,
    hash_id: str,
    api_key: str,
    build_path: Callable[[str], str],
    *,
    client: V0Client,
    params: Optional[Dict[str, Any]] = None,
) -> Tuple[httpx.Response, str]:
    """GET `build_path(slug)`; on 404 only, retry once with `build_path(hash_id)`.

    Returns the successful response and the identifier that produced it. Any
    other failure, including a second 404, raises RemoteError.
    """
    if slug is None:
        raise InvalidInputError("fetch_with_chat_id_fallback: slug must be a string")

    slug_response = client.get(build_path(slug), api_key, params=params)
    if slug_response.is_success:
        return slug_response, slug

    if slug_response.status_code == 404:
        hash_response = client.get(build_path(hash_id), api_key, params=params)
        if hash_response.is_success:
            return hash_response, hash_id
        raise RemoteError(
            f"Request failed with status {hash_response.status_code} for hashId {hash_id}",
            status_code=hash_response.status_code,
            identifier=hash_id,
        )

    raise RemoteError(
        f"Request failed with status {slug_response.status_code} for slug {slug}",
        status_code=slug_response.status_code,
        identifier=slug,
    )

def decode_version_page(payload: Any) -> Tuple[List[Version], Optional[str]]:
    """Lenient decode of one `/versions` page into `(versions, next_cursor)`.

    - a missing or non-list `versions` field contributes no entries
    - entries that are not JSON objects are dropped
    - a missing, empty or non-string `cursor` means this is the last page
    """
    if not isinstance(payload, dict):
        return [], None
    raw_versions = payload.get("versions")
    versions: List[Version] = []
    if isinstance(raw_versions, list):
        versions = [Version.from_api(v) for v in raw_versions if isinstance(v, dict)]
    cursor = payload.get("cursor")
    if not isinstance(cursor, str) or not cursor:
        cursor = None
    return versions, cursor

def sort_newest_first(versions: Sequence[Version]) -> List[Version]:
    """Stable newest-first sort on parsed `createdAt`; unparseable timestamps go last."""
    def key(v: Version) -> datetime:
        return v.created_at_dt or _OLDEST

    return sorted(versions, key=key, reverse=True)

def fetch_version_list(
    slug: str,
    hash_id: str,
    api_key: str,
    *,
    client: V0Client,
    page_limit: int = PAGE_LIMIT,
) -> VersionList:
    """Collect every version of a chat across cursor pages, newest first.

    Only the first page may fall back from slug to hash id; later pages reuse
    whichever identifier answered. Network and JSON errors propagate as-is.
    """
    all_versions: List[Version] = []
    params: Dict[str, Any] = {"limit": str(page_limit)}

    response, resolved_chat_id = fetch_with_chat_id_fallback(
        slug, hash_id, api_key, versions_path, client=client, params=params
    )
    page = 1
    while True:
        versions, cursor = decode_version_page(response.json())
        all_versions.extend(versions)
        logger.debug(
            "Version page %d for %s: %d version(s)", page, resolved_chat_id, len(versions)
        )
        if cursor is None:
            break

        params = {"limit": str(page_limit), "cursor": cursor}
        response = client.get(versions_path(resolved_chat_id), api_key, params=params)
        page += 1
        if not response.is_success:
            raise RemoteError(
                f"Pagination request failed with status {response.status_code} "
                f"for chat {resolved_chat_id} (page {page})",
                status_code=response.status_code,
                identifier=resolved_chat_id,
            )

    return VersionList(
        versions=sort_newest_first(all_versions), resolved_chat_id=resolved_chat_id
    )

def select_best_version(
    versions: Optional[Sequence[Optional[Version]]],
    log: Optional[logging.Logger] = logger,
) -> Optional[Version]:
    """Pick the newest completed version, else the newest of any status.

    `versions` is assumed newest-first already. None entries are skipped.
    """
    if not versions:
        return None

    for v in versions:
        if v is not None and v.status == STATUS_COMPLETED:
            if log is not None:
                log.info(
                    "Selected version %s (status: completed, createdAt: %s)",
                    v.id,
                    v.created_at,
                )
            return v

    fallback = next((v for v in versions if v is not None), None)
    if fallback is not None and log is not None:
        log.info(
            "Selected version %s (status: %s, createdAt: %s) - no completed version found",
            fallback.id,
            fallback.status,
            fallback.created_at,
        )
    return fallback

def find_next_completed_version(
    versions: Sequence[Optional[Version]], selected_id: str
) -> Optional[Version]:
    """First completed version older than `selected_id`; None when the id is not listed."""
    index = next(
        (i for i, v in enumerate(versions) if v is not None and v.id == selected_id),
        None,
    )
    if index is None:
        return None
    for v in versions[index + 1:]:
        if v is not None and v.status == STATUS_COMPLETED:
            return v
    return None

def format_version_list(
    versions: Sequence[Optional[Version]],
    selected: Optional[Version],
    chat_id: str = "",
) -> str:
    """Render a newest-first table; #N counts down so #1 is the oldest version."""
    listed = [v for v in versions if v is not None]
    title = f"Versions for {chat_id}" if chat_id else "Versions"
    lines = [f"{title} ({len(listed)} total):"]
    if not listed:
        lines.append("  (no versions)")
        return "\n".join(lines) + "\n"

    idx_w = len(f"#{len(listed)}")
    id_w = max(len(v.id) for v in listed)
    status_w = max(len(v.status or "unknown") for v in listed)
    selected_id = selected.id if selected is not None else None
    for n, v in enumerate(listed):
        idx = f"#{len(listed) - n}"
        line = (
            f"  {idx:<{idx_w}}  {v.id:<{id_w}}  {(v.status or 'unknown'):<{status_w}}"
            f"  {v.created_at or '-'}"
        )
        if v.id == selected_id:
            line += "  <- selected"
        lines.append(line)
    return "\n".join(lines) + "\n"
