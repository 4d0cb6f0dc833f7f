from __future__ import annotations

from typing import Any, Optional, Sequence

from .enums import BiometricErrorKind


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    http_status = 400
    error_code = "VALIDATION_ERROR"


class BusinessError(DomainError):
    """Expected operator-facing outcome (never logged as a failure)."""

    http_status = 422
    error_code = "BUSINESS_ERROR"


class AlreadyRegisteredError(BusinessError):
    """Raised when the direction was already recorded for that person and date."""

    error_code = "ALREADY_REGISTERED"


class OutOfScopeError(BusinessError):
    """Raised when the resolved person does not match the scanner's filters."""

    error_code = "OUT_OF_SCOPE"


class NotFoundError(BusinessError):
    http_status = 404
    error_code = "NOT_FOUND"


class FeatureDisabledError(DomainError):
    http_status = 503
    error_code = "FEATURE_DISABLED"


class InfrastructureError(Exception):
    """Backing store unreachable or failing; fatal for the request."""

    http_status = 500
    error_code = "INFRASTRUCTURE_ERROR"


_BIOMETRIC_CATALOG: dict[BiometricErrorKind, tuple[str, tuple[str, ...], int]] = {
    BiometricErrorKind.SERVICE_UNAVAILABLE: (
        "Servicio de reconocimiento facial no disponible",
        (
            "Intente nuevamente en unos momentos",
            "Use el método de escaneo alternativo si está disponible",
        ),
        503,
    ),
    BiometricErrorKind.NO_FACE_DETECTED: (
        "No se detectó ningún rostro en la imagen",
        (
            "Asegúrese de que el rostro esté visible y mirando a la cámara",
            "Mejore la iluminación del ambiente",
            "Evite sombras en el rostro",
        ),
        422,
    ),
    BiometricErrorKind.MULTIPLE_FACES: (
        "Se detectaron múltiples rostros en la imagen",
        (
            "Solo una persona debe estar frente a la cámara",
            "Asegúrese de que no haya otras personas en el fondo",
        ),
        422,
    ),
    BiometricErrorKind.IMAGE_LOAD_ERROR: (
        "Error al cargar la imagen",
        (
            "Verifique el formato de la imagen (JPEG, PNG)",
            "Asegúrese de que la imagen no esté corrupta",
        ),
        422,
    ),
    BiometricErrorKind.NO_MATCH: (
        "No se encontró coincidencia facial",
        (
            "La persona puede no estar registrada en el sistema",
            "Intente nuevamente con mejor iluminación",
            "Verifique que el registro facial esté actualizado",
        ),
        422,
    ),
    BiometricErrorKind.UNKNOWN: (
        "Error desconocido del servicio de reconocimiento facial",
        ("Intente nuevamente",),
        422,
    ),
}


class BiometricError(Exception):
    """Closed set of biometric failures.

    The variant is carried in ``kind``; do not subclass. Use :meth:`of` or
    :meth:`from_remote` to build instances so message, remediation hints and
    HTTP status always come from the same catalog.
    """

    def __init__(
        self,
        kind: BiometricErrorKind,
        message: str,
        *,
        suggestions: Sequence[str] = (),
        data: Optional[dict[str, Any]] = None,
        code: Optional[str] = None,
        http_status: int = 422,
        remote_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.suggestions = list(suggestions)
        self.data = data
        self.code = code or kind.value
        self.http_status = http_status
        self.remote_message = remote_message

    @property
    def error_code(self) -> str:
        return self.code

    @classmethod
    def of(
        cls,
        kind: BiometricErrorKind,
        detail: str = "",
        *,
        data: Optional[dict[str, Any]] = None,
        code: Optional[str] = None,
    ) -> "BiometricError":
        message, suggestions, status = _BIOMETRIC_CATALOG[kind]
        if detail and kind in (BiometricErrorKind.IMAGE_LOAD_ERROR, BiometricErrorKind.UNKNOWN):
            message = f"{message}: {detail}"
        if detail and kind is BiometricErrorKind.SERVICE_UNAVAILABLE and data is None:
            data = {"error": detail}
        return cls(kind, message, suggestions=suggestions, data=data, code=code, http_status=status)

    @classmethod
    def from_remote(cls, code: Optional[str], message: Optional[str] = None) -> "BiometricError":
        """Classify a ``{success: false, error: <code>}`` body from the face service."""

        code = (code or "UNKNOWN_ERROR").strip()
        try:
            kind = BiometricErrorKind(code)
        except ValueError:
            kind = BiometricErrorKind.UNKNOWN

        if kind is BiometricErrorKind.UNKNOWN:
            error = cls.of(kind, message or code, code=code)
        elif kind is BiometricErrorKind.IMAGE_LOAD_ERROR:
            error = cls.of(kind, message or "")
        else:
            error = cls.of(kind)
        error.remote_message = message or None
        return error

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.code,
            "suggestions": list(self.suggestions),
            "data": self.data,
        }
