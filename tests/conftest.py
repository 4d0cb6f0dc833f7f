from __future__ import annotations

from datetime import datetime

import pytest

from src.school_attendance.school_attendance.biometric.config import BiometricSettings
from src.school_attendance.school_attendance.core.enums import PersonKind
from src.school_attendance.school_attendance.people.model import Person

from tests.fakes import (
    FakeMatcher,
    InMemoryAttendance,
    InMemoryEmbeddings,
    InMemoryPeople,
    InMemorySchedules,
    RecordingDispatcher,
)

TENANT = 1


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 7, 55, 0)


@pytest.fixture
def student() -> Person:
    return Person(
        id=12,
        tenant_id=TENANT,
        kind=PersonKind.STUDENT,
        full_name="Ana Quispe",
        qr_code="QR-STU-12",
        photo_url="students/12.jpg",
        classroom_id=3,
        classroom_name="3ro A",
        level="PRIMARIA",
        shift="MAÑANA",
        guardian_phone="987 654 321",
    )


@pytest.fixture
def teacher() -> Person:
    return Person(
        id=7,
        tenant_id=TENANT,
        kind=PersonKind.TEACHER,
        full_name="Luis Rojas",
        qr_code="QR-TEA-7",
        photo_url="https://cdn.example.org/teachers/7.jpg",
        level="SECUNDARIA",
        shift="MAÑANA",
    )


@pytest.fixture
def people(student, teacher) -> InMemoryPeople:
    return InMemoryPeople(student, teacher)


@pytest.fixture
def schedules() -> InMemorySchedules:
    return InMemorySchedules()


@pytest.fixture
def attendance_repo() -> InMemoryAttendance:
    return InMemoryAttendance()


@pytest.fixture
def embeddings_repo(fixed_now) -> InMemoryEmbeddings:
    return InMemoryEmbeddings(clock=lambda: fixed_now)


@pytest.fixture
def matcher() -> FakeMatcher:
    return FakeMatcher()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def biometric_settings() -> BiometricSettings:
    return BiometricSettings.from_mapping(
        {
            "enabled": True,
            "service_url": "http://face-service.test",
            "photo_base_url": "https://cdn.example.org/",
        }
    )
