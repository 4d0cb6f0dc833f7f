from __future__ import annotations

import pytest
import requests

from src.school_attendance.school_attendance.biometric.client import FaceRecognitionClient
from src.school_attendance.school_attendance.biometric.model import ImageSource
from src.school_attendance.school_attendance.core.enums import BiometricErrorKind
from src.school_attendance.school_attendance.core.exceptions import BiometricError

from tests.fakes import NOT_JSON, FakeResponse, FakeSession


def _client(biometric_settings, **session_kwargs):
    session = FakeSession(**session_kwargs)
    return FaceRecognitionClient(biometric_settings, session=session), session


def test_enroll_success_returns_confidence_and_sends_url(biometric_settings):
    client, session = _client(biometric_settings, response=FakeResponse(200, {"success": True, "confidence": 98.2}))

    confidence = client.enroll(1, "student_12", ImageSource.from_url("https://cdn.example.org/students/12.jpg"))

    assert confidence == pytest.approx(98.2)
    method, url, kwargs = session.calls[0]
    assert (method, url) == ("POST", "http://face-service.test/enroll")
    assert kwargs["json"] == {
        "tenant_id": 1,
        "external_id": "student_12",
        "image_url": "https://cdn.example.org/students/12.jpg",
    }
    assert kwargs["timeout"] == biometric_settings.service_timeout


@pytest.mark.parametrize(
    "code, kind",
    [
        ("NO_FACE_DETECTED", BiometricErrorKind.NO_FACE_DETECTED),
        ("MULTIPLE_FACES", BiometricErrorKind.MULTIPLE_FACES),
        ("IMAGE_LOAD_ERROR", BiometricErrorKind.IMAGE_LOAD_ERROR),
        ("NO_MATCH", BiometricErrorKind.NO_MATCH),
        ("SOMETHING_NEW", BiometricErrorKind.UNKNOWN),
        (None, BiometricErrorKind.UNKNOWN),
    ],
)
def test_remote_error_codes_are_classified(biometric_settings, code, kind):
    client, _ = _client(biometric_settings, response=FakeResponse(200, {"success": False, "error": code, "message": "detail"}))

    with pytest.raises(BiometricError) as exc:
        client.enroll(1, "student_12", ImageSource.from_base64("aGVsbG8="))

    assert exc.value.kind is kind
    assert exc.value.http_status == 422
    assert exc.value.suggestions
    assert exc.value.remote_message == "detail"


def test_unknown_remote_code_keeps_the_raw_code(biometric_settings):
    client, _ = _client(biometric_settings, response=FakeResponse(200, {"success": False, "error": "GPU_OOM"}))

    with pytest.raises(BiometricError) as exc:
        client.search(1, "aGVsbG8=")

    assert exc.value.kind is BiometricErrorKind.UNKNOWN
    assert exc.value.error_code == "GPU_OOM"


def test_image_load_error_carries_remote_detail(biometric_settings):
    client, _ = _client(
        biometric_settings,
        response=FakeResponse(200, {"success": False, "error": "IMAGE_LOAD_ERROR", "message": "404 fetching url"}),
    )

    with pytest.raises(BiometricError) as exc:
        client.enroll(1, "teacher_7", ImageSource.from_url("https://x/7.jpg"))

    assert exc.value.message.endswith("404 fetching url")


@pytest.mark.parametrize(
    "session_kwargs",
    [
        {"error": requests.Timeout("read timed out")},
        {"error": requests.ConnectionError("refused")},
        {"response": FakeResponse(500, {"detail": "boom"})},
        {"response": FakeResponse(200, NOT_JSON)},
        {"response": FakeResponse(200, ["not", "a", "dict"])},
    ],
)
def test_transport_failures_are_service_unavailable(biometric_settings, session_kwargs):
    client, _ = _client(biometric_settings, **session_kwargs)

    with pytest.raises(BiometricError) as exc:
        client.search(1, "aGVsbG8=")

    assert exc.value.kind is BiometricErrorKind.SERVICE_UNAVAILABLE
    assert exc.value.http_status == 503


def test_search_sorts_matches_and_skips_malformed_entries(biometric_settings):
    body = {
        "success": True,
        "matches": [
            {"external_id": "student_3", "confidence": 71.0},
            {"external_id": "student_12", "confidence": 93.4},
            {"confidence": 99.0},
            {"external_id": "teacher_7", "confidence": "n/a"},
        ],
    }
    client, session = _client(biometric_settings, response=FakeResponse(200, body))

    matches = client.search(1, "aGVsbG8=")

    assert [m.external_id for m in matches] == ["student_12", "student_3"]
    payload = session.calls[0][2]["json"]
    assert payload["threshold"] == biometric_settings.distance_threshold
    assert payload["limit"] == biometric_settings.search_limit


def test_search_with_no_matches_returns_empty_list(biometric_settings):
    client, _ = _client(biometric_settings, response=FakeResponse(200, {"success": True, "matches": []}))

    assert client.search(1, "aGVsbG8=", threshold=0.4, limit=1) == []


def test_delete_is_fail_soft(biometric_settings):
    ok_client, session = _client(biometric_settings, response=FakeResponse(200, {"success": True}))
    assert ok_client.delete(1, "student_12") is True
    assert session.calls[0][1] == "http://face-service.test/faces/student_12"

    down_client, _ = _client(biometric_settings, error=requests.ConnectionError("refused"))
    assert down_client.delete(1, "student_12") is False

    missing_client, _ = _client(biometric_settings, response=FakeResponse(404, {"success": False}))
    assert missing_client.delete(1, "student_12") is False


def test_health_and_count_never_raise(biometric_settings):
    healthy, session = _client(biometric_settings, response=FakeResponse(200, {"status": "healthy", "count": 42}))
    assert healthy.is_healthy() is True
    assert healthy.enrolled_count(1) == 42
    assert session.calls[0][2]["timeout"] == biometric_settings.health_timeout

    degraded, _ = _client(biometric_settings, response=FakeResponse(200, {"status": "degraded"}))
    assert degraded.is_healthy() is False

    down, _ = _client(biometric_settings, error=requests.Timeout("slow"))
    assert down.is_healthy() is False
    assert down.enrolled_count(1) == 0


@pytest.mark.parametrize("confidence", ["high", [98.2], {"value": 98.2}])
def test_enroll_with_non_numeric_confidence_is_service_unavailable(biometric_settings, confidence):
    client, _ = _client(biometric_settings, response=FakeResponse(200, {"success": True, "confidence": confidence}))

    with pytest.raises(BiometricError) as exc:
        client.enroll(1, "student_12", ImageSource.from_url("https://cdn.example.org/students/12.jpg"))

    assert exc.value.kind is BiometricErrorKind.SERVICE_UNAVAILABLE


def test_enroll_without_confidence_returns_none(biometric_settings):
    client, _ = _client(biometric_settings, response=FakeResponse(200, {"success": True}))

    assert client.enroll(1, "student_12", ImageSource.from_base64("aGVsbG8=")) is None


@pytest.mark.parametrize("body", [["healthy"], "healthy", 42, None, NOT_JSON])
def test_fail_soft_calls_tolerate_non_object_bodies(biometric_settings, body):
    client, _ = _client(biometric_settings, response=FakeResponse(200, body))

    assert client.delete(1, "student_12") is False
    assert client.is_healthy() is False
    assert client.enrolled_count(1) == 0


def test_enrolled_count_ignores_non_numeric_count(biometric_settings):
    client, _ = _client(biometric_settings, response=FakeResponse(200, {"count": "many"}))

    assert client.enrolled_count(1) == 0
