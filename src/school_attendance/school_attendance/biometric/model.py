from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import EmbeddingStatus, PersonKind

_EXTERNAL_ID = re.compile(r"^(student|teacher)_(\d+)$")


def parse_external_id(external_id: str) -> Optional[tuple[PersonKind, int]]:
    m = _EXTERNAL_ID.match((external_id or "").strip())
    if not m:
        return None
    return PersonKind(m.group(1)), int(m.group(2))


@dataclass(frozen=True)
class ImageSource:
    """Either a URL or inline base64; the remote contract differs only in field name."""

    url: Optional[str] = None
    base64: Optional[str] = None

    def __post_init__(self):
        if bool(self.url) == bool(self.base64):
            raise ValueError("ImageSource needs exactly one of url or base64")

    @classmethod
    def from_url(cls, url: str) -> "ImageSource":
        return cls(url=url)

    @classmethod
    def from_base64(cls, data: str) -> "ImageSource":
        return cls(base64=data)

    def payload(self) -> dict:
        return {"image_url": self.url} if self.url else {"image_base64": self.base64}


@dataclass(frozen=True)
class FaceMatch:
    external_id: str
    confidence: float


@dataclass(frozen=True)
class FaceEmbedding:
    """Thực thể miền (domain): mẫu khuôn mặt của một người (tối đa một dòng/người)."""

    embedding_id: int
    tenant_id: int
    embeddable_kind: PersonKind
    embeddable_id: int
    external_id: str
    status: EmbeddingStatus
    source_image_url: Optional[str] = None
    error_message: Optional[str] = None
    enrolled_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status is EmbeddingStatus.ACTIVE

    def to_status_dict(self) -> dict:
        return {
            "enrolled": self.is_active,
            "status": self.status.value,
            "enrolled_at": self.enrolled_at.isoformat() if self.enrolled_at else None,
            "error_message": self.error_message,
        }


@dataclass(frozen=True)
class RetryStats:
    retried: int = 0
    success: int = 0
    failed: int = 0

    def to_dict(self) -> dict:
        return {"retried": self.retried, "success": self.success, "failed": self.failed}


@dataclass(frozen=True)
class BulkEnrollStats:
    enrolled: int = 0
    failed: int = 0
    skipped: int = 0

    def to_dict(self) -> dict:
        return {"enrolled": self.enrolled, "failed": self.failed, "skipped": self.skipped}
