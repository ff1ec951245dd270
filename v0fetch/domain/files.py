from typing import Any, Iterable, List, Optional

from v0fetch.core.api import V0Client, path_segment
from v0fetch.core.errors import InvalidInputError, RemoteError
from v0fetch.domain.models import Classification, ClassifiedFile, ExtractedFile


def decode_custom_file_names(payload: Any) -> List[str]:
    """Lenient decode of a version payload into custom file names.

    Missing `files` means no custom files. Each entry contributes `name`, or
    `path` when `name` is absent; entries with neither are dropped.
    """
    if not isinstance(payload, dict):
        return []
    files = payload.get("files")
    if not isinstance(files, list):
        return []
    names: List[str] = []
    for f in files:
        if not isinstance(f, dict):
            continue
        name = f.get("name")
        if name is None:
            name = f.get("path")
        if name is None:
            continue
        names.append(str(name))
    return names

def fetch_custom_file_list(
    resolved_chat_id: str, version_id: str, api_key: str, *, client: V0Client
) -> List[str]:
    """Names of the files authored for this version (default scaffold excluded)."""
    if resolved_chat_id is None:
        raise InvalidInputError("fetch_custom_file_list: resolved_chat_id must be a string")
    path = f"/chats/{path_segment(resolved_chat_id)}/versions/{path_segment(version_id)}"
    response = client.get(path, api_key, params={"includeDefaultFiles": "false"})
    if not response.is_success:
        raise RemoteError(
            f"HTTP error {response.status_code} fetching custom file list "
            f"for version {version_id}",
            status_code=response.status_code,
            identifier=version_id,
        )
    return decode_custom_file_names(response.json())

def classify_files(
    all_files: Optional[Iterable[ExtractedFile]],
    custom_file_names: Optional[Iterable[str]],
) -> Classification:
    """Split extracted files into custom and default by exact, case-sensitive name."""
    if custom_file_names is None:
        raise ValueError("classify_files: custom_file_names is required (got None)")
    if all_files is None:
        raise ValueError("classify_files: all_files is required (got None)")
    custom_set = set(custom_file_names)
    custom: List[ClassifiedFile] = []
    default: List[ClassifiedFile] = []
    for f in all_files:
        if f.name in custom_set:
            custom.append(ClassifiedFile.from_extracted(f, True))
        else:
            default.append(ClassifiedFile.from_extracted(f, False))
    return Classification(custom=custom, default=default)
