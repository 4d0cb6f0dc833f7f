from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

import requests

from ..core.enums import BiometricErrorKind
from ..core.exceptions import BiometricError
from .config import BiometricSettings
from .model import FaceMatch, ImageSource

logger = logging.getLogger(__name__)


class FaceRecognitionClient:
    """HTTP client for the external face-recognition service.

    ``enroll`` and ``search`` raise :class:`BiometricError`; ``delete``,
    ``is_healthy`` and ``enrolled_count`` are fail-soft. Every call is bounded
    by a timeout, and a timeout is reported as SERVICE_UNAVAILABLE.
    """

    def __init__(self, settings: BiometricSettings, *, session: Optional[requests.Session] = None):
        self._base_url = settings.service_url.rstrip("/")
        self._timeout = settings.service_timeout
        self._health_timeout = settings.health_timeout
        self._distance_threshold = settings.distance_threshold
        self._search_limit = settings.search_limit
        self._session = session or requests.Session()

    def enroll(self, tenant_id: int, external_id: str, image: ImageSource) -> Optional[float]:
        """Register a template; returns the remote confidence (may be None)."""

        payload = {"tenant_id": tenant_id, "external_id": external_id, **image.payload()}
        data = self._post("/enroll", payload, what="enrollment")

        if not data.get("success"):
            raise BiometricError.from_remote(data.get("error"), data.get("message"))

        confidence = data.get("confidence")
        if confidence is None:
            return None
        try:
            return float(confidence)
        except (TypeError, ValueError):
            logger.error("Face service enrollment returned a non-numeric confidence: %r", confidence)
            raise BiometricError.of(BiometricErrorKind.SERVICE_UNAVAILABLE, "invalid response body")

    def search(
        self,
        tenant_id: int,
        image_base64: str,
        *,
        threshold: Optional[float] = None,
        limit: Optional[int] = None,
    ) -> Sequence[FaceMatch]:
        """Return candidate matches ranked by confidence, best first."""

        payload = {
            "tenant_id": tenant_id,
            "image_base64": image_base64,
            "threshold": self._distance_threshold if threshold is None else threshold,
            "limit": self._search_limit if limit is None else int(limit),
        }
        data = self._post("/search", payload, what="search")

        if not data.get("success"):
            raise BiometricError.from_remote(data.get("error"), data.get("message"))

        matches = []
        for m in data.get("matches") or []:
            try:
                matches.append(FaceMatch(external_id=str(m["external_id"]), confidence=float(m["confidence"])))
            except (KeyError, TypeError, ValueError):
                logger.warning("Ignoring malformed match from face service: %r", m)
        matches.sort(key=lambda m: m.confidence, reverse=True)
        return matches

    def delete(self, tenant_id: int, external_id: str) -> bool:
        try:
            response = self._session.delete(
                f"{self._base_url}/faces/{external_id}",
                json={"tenant_id": tenant_id},
                timeout=self._timeout,
            )
        except requests.RequestException as e:
            logger.error("Face service delete failed for %s: %s", external_id, e)
            return False

        if not response.ok:
            logger.warning("Face deletion failed for %s (HTTP %s)", external_id, response.status_code)
            return False

        data = _json_object(response)
        if data is None:
            logger.warning("Face deletion for %s returned an unexpected body", external_id)
            return False
        return bool(data.get("success", False))

    def is_healthy(self) -> bool:
        try:
            response = self._session.get(f"{self._base_url}/health", timeout=self._health_timeout)
        except requests.RequestException:
            return False
        if not response.ok:
            return False

        data = _json_object(response)
        return data is not None and data.get("status") == "healthy"

    def enrolled_count(self, tenant_id: int) -> int:
        try:
            response = self._session.get(
                f"{self._base_url}/faces/count",
                params={"tenant_id": tenant_id},
                timeout=self._health_timeout,
            )
        except requests.RequestException:
            return 0
        if not response.ok:
            return 0

        data = _json_object(response)
        if data is None:
            return 0
        try:
            return int(data.get("count") or 0)
        except (TypeError, ValueError):
            return 0

    def _post(self, path: str, payload: dict, *, what: str) -> dict[str, Any]:
        try:
            response = self._session.post(f"{self._base_url}{path}", json=payload, timeout=self._timeout)
        except requests.Timeout as e:
            logger.error("Face service %s timed out after %ss", what, self._timeout)
            raise BiometricError.of(BiometricErrorKind.SERVICE_UNAVAILABLE, f"timeout: {e}")
        except requests.RequestException as e:
            logger.error("Face service connection failed during %s: %s", what, e)
            raise BiometricError.of(BiometricErrorKind.SERVICE_UNAVAILABLE, str(e))

        if not response.ok:
            logger.error("Face service %s failed: HTTP %s %s", what, response.status_code, response.text[:200])
            raise BiometricError.of(BiometricErrorKind.SERVICE_UNAVAILABLE, f"HTTP {response.status_code}")

        data = _json_object(response)
        if data is None:
            logger.error("Face service %s returned an invalid body", what)
            raise BiometricError.of(BiometricErrorKind.SERVICE_UNAVAILABLE, "invalid response body")
        return data


def _json_object(response) -> Optional[dict[str, Any]]:
    """Decoded JSON body when it is an object, otherwise None."""

    try:
        data = response.json()
    except ValueError:
        return None
    return data if isinstance(data, dict) else None
