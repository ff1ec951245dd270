import logging
from pathlib import Path
from typing import List, Optional, Union

from v0fetch.core.api import V0Client, path_segment
from v0fetch.core.constants import MAX_ZIP_MEMBERS, MAX_ZIP_UNCOMPRESSED_BYTES
from v0fetch.core.errors import NotFoundError, RemoteError, UnauthorizedError
from v0fetch.core.io import decode_text
from v0fetch.core.zip_safety import extract_zip_bytes_safely
from v0fetch.domain.models import ExtractedFile

logger = logging.getLogger(__name__)


def download_path(chat_id: str, version_id: str) -> str:
    return f"/chats/{path_segment(chat_id)}/versions/{path_segment(version_id)}/download"

def download_version_zip(
    resolved_chat_id: str, version_id: str, api_key: str, *, client: V0Client
) -> bytes:
    response = client.get(
        download_path(resolved_chat_id, version_id), api_key, accept="application/zip"
    )
    if not response.is_success:
        status = response.status_code
        if status == 401:
            raise UnauthorizedError(
                f"Unauthorized: failed to download zip (status {status})",
                status_code=status,
                identifier=resolved_chat_id,
            )
        if status == 404:
            raise NotFoundError(
                f"Not found: version {version_id} of chat {resolved_chat_id} "
                f"(status {status})",
                status_code=status,
                identifier=version_id,
            )
        raise RemoteError(
            f"Failed to download zip: HTTP {status} {response.reason_phrase}".rstrip(),
            status_code=status,
            identifier=version_id,
        )
    logger.debug("Downloaded %d bytes for version %s", len(response.content), version_id)
    return response.content

def extract_zip_to_directory(
    data: Optional[bytes],
    target_dir: Union[str, Path],
    *,
    max_members: int = MAX_ZIP_MEMBERS,
    max_uncompressed_bytes: int = MAX_ZIP_UNCOMPRESSED_BYTES,
) -> List[ExtractedFile]:
    members = extract_zip_bytes_safely(
        data,
        Path(target_dir),
        max_members=max_members,
        max_uncompressed_bytes=max_uncompressed_bytes,
    )
    return [
        ExtractedFile(name=name, size=len(payload), content=decode_text(payload))
        for name, payload in members
    ]

def download_and_extract(
    resolved_chat_id: str,
    version_id: str,
    api_key: str,
    target_dir: Union[str, Path],
    *,
    client: V0Client,
) -> List[ExtractedFile]:
    data = download_version_zip(resolved_chat_id, version_id, api_key, client=client)
    return extract_zip_to_directory(data, target_dir)
