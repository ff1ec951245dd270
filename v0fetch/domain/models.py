from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from v0fetch.core.io import parse_timestamp


@dataclass(frozen=True)
class ChatIdentity:
    slug: str
    hash_id: str
    feature_name: str


@dataclass
class Version:
    id: str
    status: Optional[str] = None
    created_at: Optional[str] = None
    # Untouched server payload; extra fields ride along opaquely.
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @property
    def created_at_dt(self) -> Optional[datetime]:
        return parse_timestamp(self.created_at)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Version":
        vid = data.get("id")
        status = data.get("status")
        created = data.get("createdAt")
        return cls(
            id="" if vid is None else str(vid),
            status=status if isinstance(status, str) else None,
            created_at=None if created is None else str(created),
            raw=dict(data),
        )


@dataclass
class VersionList:
    versions: List[Version]
    resolved_chat_id: str


@dataclass(frozen=True)
class ExtractedFile:
    name: str
    size: int
    content: Optional[str]


@dataclass(frozen=True)
class ClassifiedFile:
    name: str
    size: int
    content: Optional[str]
    is_custom: bool

    @classmethod
    def from_extracted(cls, f: ExtractedFile, is_custom: bool) -> "ClassifiedFile":
        return cls(name=f.name, size=f.size, content=f.content, is_custom=is_custom)

    def manifest_entry(self) -> Dict[str, Any]:
        return {"name": self.name, "size": self.size, "isCustom": self.is_custom}


@dataclass
class Classification:
    custom: List[ClassifiedFile]
    default: List[ClassifiedFile]


@dataclass(frozen=True)
class ValidationWarning:
    name: str
    reason: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "reason": self.reason}


@dataclass
class ValidationResult:
    valid: List[Any]
    warnings: List[ValidationWarning]
