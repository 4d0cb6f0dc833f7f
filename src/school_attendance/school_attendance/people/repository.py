from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..core.enums import PersonKind
from .model import Person


class PersonDirectory(Protocol):
    """Read-only, tenant-scoped lookup of students and teachers."""

    def get_by_qr_code(self, tenant_id: int, qr_code: str) -> Optional[Person]:
        raise NotImplementedError

    def get(self, tenant_id: int, kind: PersonKind, person_id: int) -> Optional[Person]:
        raise NotImplementedError

    def list_enrollment_candidates(self, tenant_id: int, kind: PersonKind) -> Sequence[Person]:
        """People with a non-empty photo URL (teachers: active account only)."""

        raise NotImplementedError
