from __future__ import annotations

from typing import Any, Optional

from ..core.enums import PersonKind
from ..core.exceptions import ValidationError


def require_non_empty(value: Optional[str], field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} no es válido")
    return value.strip()


def require_positive_int(value: Any, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} debe ser un número entero")
    if number <= 0:
        raise ValidationError(f"{field_name} debe ser mayor que cero")
    return number


def parse_person_kind(value: Optional[str]) -> PersonKind:
    try:
        return PersonKind((value or "").strip().lower())
    except ValueError:
        raise ValidationError('Tipo inválido. Use "student" o "teacher".')
