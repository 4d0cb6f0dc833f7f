from __future__ import annotations

import logging
from typing import Optional

from ..biometric.client import FaceRecognitionClient
from ..biometric.config import BiometricSettings
from ..biometric.images import prepare_image_base64
from ..biometric.model import parse_external_id
from ..common.validators import require_non_empty
from ..core.enums import BiometricErrorKind, ScanMode
from ..core.exceptions import BiometricError, NotFoundError, OutOfScopeError
from ..people.model import Person
from ..people.repository import PersonDirectory
from .model import ScanFilters

logger = logging.getLogger(__name__)


class ScanResolver:
    """Turn a raw scan payload into a Person of the tenant.

    QR payloads are matched exactly against the badge code; FACE payloads go
    through the face service. Remote failures keep their biometric kind so the
    operator gets the right instruction.
    """

    def __init__(
        self,
        people: PersonDirectory,
        matcher: FaceRecognitionClient,
        settings: BiometricSettings,
    ):
        self._people = people
        self._matcher = matcher
        self._settings = settings

    def resolve(
        self,
        tenant_id: int,
        mode: ScanMode,
        payload: str,
        filters: Optional[ScanFilters] = None,
    ) -> Person:
        if mode is ScanMode.QR:
            person = self._resolve_qr(tenant_id, payload)
        else:
            person = self._resolve_face(tenant_id, payload)

        if filters and not filters.allows(person):
            raise OutOfScopeError(f"{person.full_name} no pertenece a este punto de control")
        return person

    def _resolve_qr(self, tenant_id: int, payload: str) -> Person:
        qr_code = require_non_empty(payload, "Código QR")
        person = self._people.get_by_qr_code(tenant_id, qr_code)
        if not person:
            raise NotFoundError("Código QR no válido")
        return person

    def _resolve_face(self, tenant_id: int, payload: str) -> Person:
        image = prepare_image_base64(payload, self._settings.image)
        matches = self._matcher.search(
            tenant_id,
            image,
            threshold=self._settings.distance_threshold,
            limit=self._settings.search_limit,
        )

        thresholds = self._settings.thresholds
        best = next((m for m in matches if m.confidence >= thresholds.low), None)
        if best is None:
            raise BiometricError.of(BiometricErrorKind.NO_MATCH)

        if best.confidence < thresholds.medium:
            logger.warning("Low-confidence face match %s (%.1f%%)", best.external_id, best.confidence)

        parsed = parse_external_id(best.external_id)
        if not parsed:
            logger.error("Invalid external_id from face service: %r", best.external_id)
            raise BiometricError.of(BiometricErrorKind.NO_MATCH)

        kind, person_id = parsed
        person = self._people.get(tenant_id, kind, person_id)
        if not person:
            logger.warning("Face match %s has no person in tenant %s", best.external_id, tenant_id)
            raise BiometricError.of(BiometricErrorKind.NO_MATCH)

        logger.info("Face resolved to %s (confidence=%.1f%%)", best.external_id, best.confidence)
        return person
