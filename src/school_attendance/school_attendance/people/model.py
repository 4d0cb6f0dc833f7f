from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import PersonKind


@dataclass(frozen=True)
class Person:
    """Thực thể miền (domain): học sinh hoặc giáo viên, chỉ đọc.

    Owned by the directory; the attendance core never mutates it.
    """

    id: int
    tenant_id: int
    kind: PersonKind
    full_name: str
    qr_code: Optional[str] = None
    photo_url: Optional[str] = None
    classroom_id: Optional[int] = None
    classroom_name: Optional[str] = None
    level: Optional[str] = None
    shift: Optional[str] = None
    guardian_phone: Optional[str] = None
    is_active: bool = True

    @property
    def external_id(self) -> str:
        return f"{self.kind.value}_{self.id}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.kind.value,
            "full_name": self.full_name,
            "classroom": self.classroom_name,
            "level": self.level,
        }
