import argparse
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import httpx

from v0fetch.core.api import V0Client
from v0fetch.core.constants import API_KEYS_URL, MANIFEST_NAME
from v0fetch.core.env import _env_str
from v0fetch.core.errors import EmptyResultError, InvalidInputError, V0FetchError
from v0fetch.core.io import dump_json, write_text_utf8
from v0fetch.core.layout import design_dir, die, output_base_dir
from v0fetch.domain.archive import download_and_extract
from v0fetch.domain.files import classify_files, fetch_custom_file_list
from v0fetch.domain.identity import chat_source_url, resolve_chat_identity
from v0fetch.domain.models import (
    ChatIdentity,
    Classification,
    ExtractedFile,
    ValidationResult,
    ValidationWarning,
    Version,
    VersionList,
)
from v0fetch.domain.placeholders import is_placeholder_content, validate_custom_files
from v0fetch.domain.versions import (
    fetch_version_list,
    find_next_completed_version,
    format_version_list,
    select_best_version,
)

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class LocalFileSystem:
    """Filesystem port used by the pipeline for the output dir and the manifest."""

    def mkdir(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def write_text(self, path: Path, content: str) -> None:
        write_text_utf8(Path(path), content)


@dataclass
class PipelineOptions:
    input_arg: Optional[str]
    output_dir: Path
    api_key: str
    custom_name: Optional[str] = None
    version_id: Optional[str] = None
    list_versions: bool = False


@dataclass
class PipelineDeps:
    """Collaborators of `run_pipeline`.

    Production wiring comes from `default_deps`; tests pass fakes. Network
    functions receive the API key explicitly and return plain domain objects.
    """

    fetch_version_list: Callable[[str, str, str], VersionList]
    download_and_extract: Callable[[str, str, str, Path], List[ExtractedFile]]
    fetch_custom_file_list: Callable[[str, str, str], List[str]]
    resolve_chat_identity: Callable[[Optional[str]], ChatIdentity] = resolve_chat_identity
    select_best_version: Callable[..., Optional[Version]] = select_best_version
    classify_files: Callable[[List[ExtractedFile], List[str]], Classification] = classify_files
    validate_custom_files: Callable[..., ValidationResult] = validate_custom_files
    is_placeholder_content: Callable[[Any], bool] = is_placeholder_content
    fs: Any = field(default_factory=LocalFileSystem)
    logger: Any = logger
    clock: Callable[[], datetime] = _utc_now


@dataclass
class PipelineResult:
    chat_id: str
    resolved_chat_id: str
    feature_name: str
    design_dir: Path
    version_selected_from: int
    version_id: Optional[str] = None
    source_url: str = ""
    total_files: int = 0
    custom_file_count: int = 0
    default_file_count: int = 0
    warnings: List[ValidationWarning] = field(default_factory=list)
    manifest: Optional[Dict[str, Any]] = None
    list_versions_output: Optional[str] = None


def default_deps(client: V0Client) -> PipelineDeps:
    return PipelineDeps(
        fetch_version_list=partial(fetch_version_list, client=client),
        download_and_extract=partial(download_and_extract, client=client),
        fetch_custom_file_list=partial(fetch_custom_file_list, client=client),
    )

def build_manifest(
    *,
    chat_id: str,
    feature_name: str,
    fetched_at: str,
    source_url: str,
    version_id: str,
    version_selected_from: int,
    classification: Classification,
    warnings: List[ValidationWarning],
) -> Dict[str, Any]:
    files = [f.manifest_entry() for f in classification.custom + classification.default]
    return {
        "chatId": chat_id,
        "featureName": feature_name,
        "fetchedAt": fetched_at,
        "sourceUrl": source_url,
        "versionId": version_id,
        "versionSelectedFrom": version_selected_from,
        "customFileCount": len(classification.custom),
        "defaultFileCount": len(classification.default),
        "warnings": [w.to_dict() for w in warnings],
        "files": files,
    }

def run_pipeline(options: PipelineOptions, deps: PipelineDeps) -> PipelineResult:
    """Fetch one version of a v0 chat into `<output>/designs/<feature>/v0-source/`.

    Steps: resolve identity, list versions, then either return the listing
    (list mode) or pick a version, download and extract it, classify custom
    vs default files, flag placeholders and write `manifest.json`. Any failure
    aborts the run before the manifest is written.
    """
    log = deps.logger
    identity = deps.resolve_chat_identity(options.input_arg)
    if not identity.slug:
        raise InvalidInputError("A v0 chat URL or chat ID is required (got an empty value).")

    feature_name = options.custom_name or identity.feature_name
    out_dir = design_dir(Path(options.output_dir), feature_name)

    log.info("Chat ID: %s", identity.slug)
    log.info("Feature: %s", feature_name)
    log.info("Output:  %s", out_dir)

    listing = deps.fetch_version_list(identity.slug, identity.hash_id, options.api_key)
    versions = listing.versions
    resolved_chat_id = listing.resolved_chat_id
    source_url = chat_source_url(identity.slug)

    if options.list_versions:
        best = deps.select_best_version(versions, log=log)
        return PipelineResult(
            chat_id=identity.slug,
            resolved_chat_id=resolved_chat_id,
            feature_name=feature_name,
            design_dir=out_dir,
            version_selected_from=len(versions),
            source_url=source_url,
            list_versions_output=format_version_list(versions, best, resolved_chat_id),
        )

    if options.version_id:
        version_id = options.version_id
        log.info("Using pinned version %s", version_id)
    else:
        selected = deps.select_best_version(versions, log=log)
        if selected is None:
            raise EmptyResultError(
                f"No versions found for chat {resolved_chat_id}; nothing to download."
            )
        version_id = selected.id

    deps.fs.mkdir(out_dir)
    extracted = deps.download_and_extract(
        resolved_chat_id, version_id, options.api_key, out_dir
    )
    custom_names = deps.fetch_custom_file_list(resolved_chat_id, version_id, options.api_key)
    classification = deps.classify_files(extracted, custom_names)
    validation = deps.validate_custom_files(
        classification.custom, deps.is_placeholder_content
    )

    if validation.warnings:
        suggestion = find_next_completed_version(versions, version_id)
        for w in validation.warnings:
            log.warning("Placeholder content in %s: %s", w.name, w.reason)
            if suggestion is not None:
                log.warning(
                    "  Try the previous completed version: --version %s (createdAt: %s)",
                    suggestion.id,
                    suggestion.created_at,
                )

    manifest = build_manifest(
        chat_id=identity.slug,
        feature_name=feature_name,
        fetched_at=deps.clock().isoformat(),
        source_url=source_url,
        version_id=version_id,
        version_selected_from=len(versions),
        classification=classification,
        warnings=validation.warnings,
    )
    deps.fs.write_text(out_dir / MANIFEST_NAME, dump_json(manifest))

    total = len(classification.custom) + len(classification.default)
    log.info(
        "Done! %d files (%d custom, %d default) written to %s",
        total,
        len(classification.custom),
        len(classification.default),
        out_dir,
    )
    return PipelineResult(
        chat_id=identity.slug,
        resolved_chat_id=resolved_chat_id,
        feature_name=feature_name,
        design_dir=out_dir,
        version_selected_from=len(versions),
        version_id=version_id,
        source_url=source_url,
        total_files=total,
        custom_file_count=len(classification.custom),
        default_file_count=len(classification.default),
        warnings=list(validation.warnings),
        manifest=manifest,
    )

def cmd_fetch(args: argparse.Namespace) -> None:
    if not args.chat:
        die("A v0 chat URL or chat ID is required. Usage: v0fetch <v0-url-or-chat-id> [feature-name]")
    api_key = _env_str("V0_API_KEY")
    if not api_key:
        die(f"V0_API_KEY environment variable is not set.\nGet your API key from: {API_KEYS_URL}")

    options = PipelineOptions(
        input_arg=args.chat,
        custom_name=args.feature_name,
        output_dir=output_base_dir(args.output_dir),
        api_key=api_key,
        version_id=args.version_id or None,
        list_versions=bool(args.list_versions),
    )
    try:
        with V0Client() as client:
            result = run_pipeline(options, default_deps(client))
    except V0FetchError as e:
        die(str(e))
    except httpx.HTTPError as e:
        die(f"Network error talking to the v0 API: {e}")
    except ValueError as e:
        die(f"Unreadable response from the v0 API: {e}")

    if result.list_versions_output is not None:
        sys.stdout.write(result.list_versions_output)
        return
    if getattr(args, "quiet", False):
        return
    print(result.design_dir)
    print("\nNext steps:")
    print(f"  1. Optionally create designs/{result.feature_name}/notes.md")
    print(f"  2. Run: /v0-setup {result.feature_name}")
