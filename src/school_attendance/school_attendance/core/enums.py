from __future__ import annotations

from enum import Enum


class PersonKind(str, Enum):
    """Loại người được chấm công: học sinh hoặc giáo viên."""

    STUDENT = "student"
    TEACHER = "teacher"

    @property
    def label(self) -> str:
        return "Estudiante" if self is PersonKind.STUDENT else "Docente"


class Direction(str, Enum):
    ENTRY = "ENTRY"
    EXIT = "EXIT"


class ScanMode(str, Enum):
    QR = "QR"
    FACE = "FACE"


class EntryStatus(str, Enum):
    """Trạng thái vào lớp lưu trong CSDL."""

    PRESENTE = "PRESENTE"
    TARDANZA = "TARDANZA"


class ExitStatus(str, Enum):
    COMPLETO = "COMPLETO"
    SALIDA_ANTICIPADA = "SALIDA_ANTICIPADA"


class EmbeddingStatus(str, Enum):
    """Vòng đời của mẫu khuôn mặt (FaceEmbedding)."""

    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    FAILED = "FAILED"
    NO_FACE = "NO_FACE"


class BiometricErrorKind(str, Enum):
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    NO_FACE_DETECTED = "NO_FACE_DETECTED"
    MULTIPLE_FACES = "MULTIPLE_FACES"
    IMAGE_LOAD_ERROR = "IMAGE_LOAD_ERROR"
    NO_MATCH = "NO_MATCH"
    UNKNOWN = "UNKNOWN"
