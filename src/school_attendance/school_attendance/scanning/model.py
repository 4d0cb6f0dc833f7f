from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..people.model import Person


@dataclass(frozen=True)
class ScanFilters:
    """Scope of a scanner physically installed in one wing."""

    classroom_id: Optional[int] = None
    level: Optional[str] = None

    def allows(self, person: Person) -> bool:
        if self.classroom_id is not None and person.classroom_id != self.classroom_id:
            return False
        if self.level and (person.level or "").strip().upper() != self.level.strip().upper():
            return False
        return True
