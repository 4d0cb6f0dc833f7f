from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from ..attendance.model import AttendanceRecord
from ..core.constants import LOCAL_PHONE_DIGITS, PHONE_COUNTRY_PREFIX
from ..core.enums import Direction, PersonKind
from ..people.model import Person


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """Digits only; 9-digit local numbers get the country prefix."""

    digits = re.sub(r"[^0-9]", "", phone or "")
    if not digits:
        return None
    if len(digits) == LOCAL_PHONE_DIGITS and not digits.startswith(PHONE_COUNTRY_PREFIX):
        digits = PHONE_COUNTRY_PREFIX + digits
    return digits


def guardian_recipient(person: Person) -> Optional[str]:
    # Only students have guardians to notify.
    if person.kind is not PersonKind.STUDENT:
        return None
    return normalize_phone(person.guardian_phone)


@dataclass(frozen=True)
class AttendanceEvent:
    """Message handed to the notification sink when an attendance row changes."""

    tenant_id: int
    recipient: str
    direction: Direction
    person: Person
    record: AttendanceRecord

    def to_dict(self) -> dict:
        return {
            "tenant_id": self.tenant_id,
            "recipient": self.recipient,
            "direction": self.direction.value,
            "person": self.person.to_dict(),
            "attendance": self.record.to_dict(),
        }
