from __future__ import annotations

from dataclasses import replace
from datetime import timedelta

import pytest

from src.school_attendance.school_attendance.biometric.client import FaceRecognitionClient
from src.school_attendance.school_attendance.biometric.config import BiometricSettings
from src.school_attendance.school_attendance.biometric.enrollment_service import FaceEnrollmentService
from src.school_attendance.school_attendance.biometric.model import FaceEmbedding
from src.school_attendance.school_attendance.core.enums import BiometricErrorKind, EmbeddingStatus, PersonKind
from src.school_attendance.school_attendance.core.exceptions import BiometricError, InfrastructureError

from tests.fakes import FakeResponse, FakeSession


@pytest.fixture
def enrollment(embeddings_repo, people, matcher, biometric_settings, fixed_now) -> FaceEnrollmentService:
    return FaceEnrollmentService(embeddings_repo, people, matcher, biometric_settings, clock=lambda: fixed_now)


def _stale(embeddings_repo, row: FaceEmbedding, age: timedelta) -> FaceEmbedding:
    return embeddings_repo.put(replace(row, updated_at=row.updated_at - age))


def test_enroll_success_marks_active(enrollment, matcher, student, fixed_now):
    embedding = enrollment.enroll(student)

    assert embedding.status is EmbeddingStatus.ACTIVE
    assert embedding.enrolled_at == fixed_now
    assert embedding.external_id == "student_12"

    tenant_id, external_id, image = matcher.enroll_calls[0]
    assert (tenant_id, external_id) == (1, "student_12")
    # relative photo paths are resolved against the photo base url
    assert image.url == "https://cdn.example.org/students/12.jpg"


def test_absolute_photo_url_is_sent_unchanged(enrollment, matcher, teacher):
    enrollment.enroll(teacher)

    assert matcher.enroll_calls[0][2].url == "https://cdn.example.org/teachers/7.jpg"


def test_enroll_without_photo_fails_without_calling_service(enrollment, matcher, student):
    embedding = enrollment.enroll(replace(student, photo_url=None))

    assert embedding.status is EmbeddingStatus.FAILED
    assert embedding.error_message == "No photo URL available"
    assert matcher.enroll_calls == []


def test_no_face_detected_marks_no_face(enrollment, matcher, student):
    matcher.enroll_error = BiometricError.of(BiometricErrorKind.NO_FACE_DETECTED)

    embedding = enrollment.enroll(student)

    assert embedding.status is EmbeddingStatus.NO_FACE
    assert embedding.error_message == "No face detected in the image"


def test_other_remote_error_marks_failed_with_remote_message(enrollment, matcher, student):
    matcher.enroll_error = BiometricError.from_remote("MULTIPLE_FACES", "2 faces found")

    embedding = enrollment.enroll(student)

    assert embedding.status is EmbeddingStatus.FAILED
    assert embedding.error_message == "2 faces found"


def test_service_down_marks_failed(enrollment, matcher, student):
    matcher.enroll_error = BiometricError.of(BiometricErrorKind.SERVICE_UNAVAILABLE, "timeout")

    embedding = enrollment.enroll(student)

    assert embedding.status is EmbeddingStatus.FAILED
    assert embedding.error_message


def test_re_enroll_keeps_a_single_row(enrollment, embeddings_repo, matcher, student):
    matcher.enroll_error = BiometricError.of(BiometricErrorKind.NO_FACE_DETECTED)
    enrollment.enroll(student)
    matcher.enroll_error = None
    enrollment.enroll(student)

    rows = embeddings_repo.rows()
    assert len(rows) == 1
    assert rows[0].status is EmbeddingStatus.ACTIVE
    assert rows[0].error_message is None


def test_retry_failed_only_touches_old_failed_rows(enrollment, embeddings_repo, matcher, people, student, teacher):
    matcher.enroll_error = BiometricError.of(BiometricErrorKind.NO_FACE_DETECTED)
    old = _stale(embeddings_repo, enrollment.enroll(student), timedelta(hours=30))
    enrollment.enroll(teacher)  # fresh failure, below the age gate
    matcher.enroll_error = None

    stats = enrollment.retry_failed(1)

    assert stats.to_dict() == {"retried": 1, "success": 1, "failed": 0}
    assert embeddings_repo.get_for_person(
        tenant_id=1, embeddable_kind=PersonKind.STUDENT, embeddable_id=student.id
    ).is_active
    assert embeddings_repo.get_for_person(
        tenant_id=1, embeddable_kind=PersonKind.TEACHER, embeddable_id=teacher.id
    ).status is EmbeddingStatus.NO_FACE
    assert old.embedding_id == embeddings_repo.get_for_person(
        tenant_id=1, embeddable_kind=PersonKind.STUDENT, embeddable_id=student.id
    ).embedding_id


def test_retry_twice_does_not_duplicate_rows(enrollment, embeddings_repo, matcher, student):
    matcher.enroll_error = BiometricError.of(BiometricErrorKind.SERVICE_UNAVAILABLE)
    _stale(embeddings_repo, enrollment.enroll(student), timedelta(hours=30))

    first = enrollment.retry_failed(1, older_than_hours=0)
    second = enrollment.retry_failed(1, older_than_hours=0)

    assert first.failed == 1
    # the second sweep sees a row touched "now", which is not older than now
    assert second.retried == 0
    assert len(embeddings_repo.rows()) == 1


def test_retry_marks_vanished_person_failed(enrollment, embeddings_repo, matcher, people, student):
    matcher.enroll_error = BiometricError.of(BiometricErrorKind.NO_FACE_DETECTED)
    _stale(embeddings_repo, enrollment.enroll(student), timedelta(days=2))
    people.remove(student)

    stats = enrollment.retry_failed(1)

    row = embeddings_repo.rows()[0]
    assert stats.failed == 1
    assert row.status is EmbeddingStatus.FAILED
    assert row.error_message == "Entity not found"


def test_bulk_enroll_skips_active_and_reports_progress(enrollment, people, matcher, student):
    people.add(replace(student, id=13, qr_code="QR-STU-13", full_name="Bruno"))
    people.add(replace(student, id=14, qr_code="QR-STU-14", full_name="Carla", photo_url=None))
    enrollment.enroll(student)
    matcher.enroll_calls.clear()

    progress = []
    stats = enrollment.bulk_enroll(1, PersonKind.STUDENT, on_progress=progress.append)

    # student 14 has no photo and is not a candidate
    assert stats.to_dict() == {"enrolled": 1, "failed": 0, "skipped": 1}
    assert len(progress) == 2
    assert [c[1] for c in matcher.enroll_calls] == ["student_13"]


def test_delete_removes_local_row_even_if_remote_fails(enrollment, embeddings_repo, matcher, student):
    embedding = enrollment.enroll(student)
    matcher.delete_result = False

    remote_deleted = enrollment.delete(embedding)

    assert remote_deleted is False
    assert embeddings_repo.rows() == []
    assert matcher.delete_calls == [(1, "student_12")]


def test_status_reports_enrollment_state(enrollment, student):
    assert enrollment.status(1, PersonKind.STUDENT, student.id) == {
        "enrolled": False,
        "status": None,
        "enrolled_at": None,
        "error_message": None,
    }

    enrollment.enroll(student)

    status = enrollment.status(1, PersonKind.STUDENT, student.id)
    assert status["enrolled"] is True
    assert status["status"] == "ACTIVE"
    assert status["enrolled_at"] == "2026-03-02T07:55:00"


def test_photo_change_enrolls_only_when_auto_enroll_is_on(embeddings_repo, people, matcher, student, fixed_now):
    off = FaceEnrollmentService(
        embeddings_repo,
        people,
        matcher,
        BiometricSettings.from_mapping({"enabled": True, "enrollment": {"auto_enroll": False}}),
        clock=lambda: fixed_now,
    )
    assert off.handle_photo_change(student) is None
    assert matcher.enroll_calls == []

    on = FaceEnrollmentService(
        embeddings_repo,
        people,
        matcher,
        BiometricSettings.from_mapping({"enabled": True}),
        clock=lambda: fixed_now,
    )
    assert on.handle_photo_change(student).is_active


def test_garbled_success_response_marks_failed_and_is_retried(embeddings_repo, people, biometric_settings, student, fixed_now):
    session = FakeSession(FakeResponse(200, {"success": True, "confidence": "high"}))
    client = FaceRecognitionClient(biometric_settings, session=session)
    service = FaceEnrollmentService(embeddings_repo, people, client, biometric_settings, clock=lambda: fixed_now)

    embedding = service.enroll(student)

    assert embedding.status is EmbeddingStatus.FAILED
    _stale(embeddings_repo, embedding, timedelta(hours=48))
    assert [e.embedding_id for e in embeddings_repo.list_needing_retry(tenant_id=1, updated_before=fixed_now)] == [
        embedding.embedding_id
    ]


def test_delete_leaves_remote_template_when_local_delete_fails(enrollment, embeddings_repo, matcher, student, monkeypatch):
    embedding = enrollment.enroll(student)

    def broken_delete(embedding_id):
        raise InfrastructureError("Database error: lost connection")

    monkeypatch.setattr(embeddings_repo, "delete", broken_delete)

    with pytest.raises(InfrastructureError):
        enrollment.delete(embedding)

    assert matcher.delete_calls == []
    assert embeddings_repo.rows()[0].status is EmbeddingStatus.ACTIVE
