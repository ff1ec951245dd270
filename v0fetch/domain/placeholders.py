from typing import Any, Callable, Iterable, List, Optional

from v0fetch.core.constants import PLACEHOLDER_MARKER
from v0fetch.core.io import strip_bom
from v0fetch.domain.models import ValidationResult, ValidationWarning

PLACEHOLDER_STRINGS = (PLACEHOLDER_MARKER.lower(),)

REASON_GENERATING = (
    "File content is a GENERATING placeholder - generation may still be in progress"
)
REASON_EMPTY = "File content is empty - skipping empty file"
REASON_GENERIC = "File content appears to be a placeholder"


def _normalized(content: Any) -> Optional[str]:
    if not isinstance(content, str):
        return None
    return strip_bom(content.strip()).strip()

def is_placeholder_content(content: Any) -> bool:
    """True when content is missing, blank, or exactly the GENERATING marker.

    Real code that merely mentions the marker is not a placeholder.
    """
    trimmed = _normalized(content)
    if trimmed is None or trimmed == "":
        return True
    return trimmed.lower() in PLACEHOLDER_STRINGS

def placeholder_reason(content: Any) -> str:
    trimmed = _normalized(content)
    if trimmed is None:
        return REASON_GENERIC
    if trimmed.lower() in PLACEHOLDER_STRINGS:
        return REASON_GENERATING
    if trimmed == "":
        return REASON_EMPTY
    return REASON_GENERIC

def validate_custom_files(
    custom_files: Iterable[Any],
    is_placeholder: Callable[[Any], bool] = is_placeholder_content,
) -> ValidationResult:
    valid: List[Any] = []
    warnings: List[ValidationWarning] = []
    for f in custom_files:
        content = getattr(f, "content", None)
        if is_placeholder(content):
            warnings.append(
                ValidationWarning(name=f.name, reason=placeholder_reason(content))
            )
        else:
            valid.append(f)
    return ValidationResult(valid=valid, warnings=warnings)
