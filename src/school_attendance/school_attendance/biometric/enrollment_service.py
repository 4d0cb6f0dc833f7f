from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Callable, Optional
from urllib.parse import urljoin

from ..common.datetime_utils import now_local
from ..core.constants import ENTITY_NOT_FOUND_MESSAGE, NO_FACE_MESSAGE, NO_PHOTO_MESSAGE
from ..core.enums import BiometricErrorKind, PersonKind
from ..core.exceptions import BiometricError
from ..people.model import Person
from ..people.repository import PersonDirectory
from .client import FaceRecognitionClient
from .config import BiometricSettings
from .model import BulkEnrollStats, FaceEmbedding, ImageSource, RetryStats
from .repository import FaceEmbeddingRepository

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[BulkEnrollStats], None]


class FaceEnrollmentService:
    """Owns the FaceEmbedding lifecycle: PENDING -> ACTIVE | FAILED | NO_FACE.

    Every person is enrolled in its own short transaction (upsert keyed by
    tenant/kind/id), so sweeps can run repeatedly or in parallel without
    producing duplicate rows or holding locks across the batch.
    """

    def __init__(
        self,
        embeddings: FaceEmbeddingRepository,
        people: PersonDirectory,
        matcher: FaceRecognitionClient,
        settings: BiometricSettings,
        *,
        clock: Callable[[], datetime] = now_local,
    ):
        self._embeddings = embeddings
        self._people = people
        self._matcher = matcher
        self._settings = settings
        self._clock = clock

    def enroll(self, person: Person) -> FaceEmbedding:
        external_id = person.external_id
        embedding = self._embeddings.upsert_pending(
            tenant_id=person.tenant_id,
            embeddable_kind=person.kind,
            embeddable_id=person.id,
            external_id=external_id,
            source_image_url=person.photo_url,
        )

        if not person.photo_url:
            return self._embeddings.mark_failed(embedding.embedding_id, error_message=NO_PHOTO_MESSAGE)

        try:
            confidence = self._matcher.enroll(
                person.tenant_id,
                external_id,
                ImageSource.from_url(self._full_image_url(person.photo_url)),
            )
        except BiometricError as e:
            logger.warning("Face enrollment failed for %s: %s", external_id, e.code)
            if e.kind is BiometricErrorKind.NO_FACE_DETECTED:
                return self._embeddings.mark_no_face(embedding.embedding_id, error_message=NO_FACE_MESSAGE)
            return self._embeddings.mark_failed(embedding.embedding_id, error_message=e.remote_message or e.message)

        logger.info("Face enrolled successfully: %s (confidence=%s)", external_id, confidence)
        return self._embeddings.mark_active(embedding.embedding_id, enrolled_at=self._clock())

    def reenroll(self, embedding: FaceEmbedding) -> FaceEmbedding:
        """Enroll again from the person's current photo (e.g. after a photo update)."""

        person = self._people.get(embedding.tenant_id, embedding.embeddable_kind, embedding.embeddable_id)
        if not person:
            return self._embeddings.mark_failed(embedding.embedding_id, error_message=ENTITY_NOT_FOUND_MESSAGE)
        return self.enroll(person)

    def delete(self, embedding: FaceEmbedding) -> bool:
        """Revoke an enrollment; the remote cleanup is best-effort.

        The local row goes first: if that fails the remote template is left
        untouched, so an ACTIVE row always has a template behind it.
        """

        self._embeddings.delete(embedding.embedding_id)
        deleted = self._matcher.delete(embedding.tenant_id, embedding.external_id)

        if deleted:
            logger.info("Face enrollment deleted: %s", embedding.external_id)
        else:
            logger.warning("Remote template for %s was not deleted; local row already removed", embedding.external_id)
        return deleted

    def retry_failed(self, tenant_id: int, older_than_hours: Optional[int] = None) -> RetryStats:
        # Age gate only; max_retries is not tracked per row.
        hours = self._settings.retry_failed_hours if older_than_hours is None else int(older_than_hours)
        cutoff = self._clock() - timedelta(hours=hours)

        stats = RetryStats()
        for embedding in self._embeddings.list_needing_retry(tenant_id=tenant_id, updated_before=cutoff):
            result = self.reenroll(embedding)
            stats = replace(
                stats,
                retried=stats.retried + 1,
                success=stats.success + (1 if result.is_active else 0),
                failed=stats.failed + (0 if result.is_active else 1),
            )

        logger.info("Retry sweep for tenant %s: %s", tenant_id, stats.to_dict())
        return stats

    def bulk_enroll(
        self,
        tenant_id: int,
        kind: PersonKind,
        on_progress: Optional[ProgressCallback] = None,
    ) -> BulkEnrollStats:
        stats = BulkEnrollStats()

        for person in self._people.list_enrollment_candidates(tenant_id, kind):
            existing = self._embeddings.get_for_person(
                tenant_id=tenant_id,
                embeddable_kind=kind,
                embeddable_id=person.id,
            )
            if existing and existing.is_active:
                stats = replace(stats, skipped=stats.skipped + 1)
            elif self.enroll(person).is_active:
                stats = replace(stats, enrolled=stats.enrolled + 1)
            else:
                stats = replace(stats, failed=stats.failed + 1)

            if on_progress:
                on_progress(stats)

        logger.info("Bulk enroll %s for tenant %s: %s", kind.value, tenant_id, stats.to_dict())
        return stats

    def handle_photo_change(self, person: Person) -> Optional[FaceEmbedding]:
        """Hook for photo uploads; enrolls only when auto-enroll is on."""

        if not (self._settings.enabled and self._settings.auto_enroll):
            return None
        return self.enroll(person)

    def get_embedding(self, tenant_id: int, kind: PersonKind, person_id: int) -> Optional[FaceEmbedding]:
        return self._embeddings.get_for_person(tenant_id=tenant_id, embeddable_kind=kind, embeddable_id=person_id)

    def status(self, tenant_id: int, kind: PersonKind, person_id: int) -> dict:
        embedding = self.get_embedding(tenant_id, kind, person_id)
        if not embedding:
            return {"enrolled": False, "status": None, "enrolled_at": None, "error_message": None}
        return embedding.to_status_dict()

    def _full_image_url(self, photo_url: str) -> str:
        if photo_url.startswith(("http://", "https://")) or not self._settings.photo_base_url:
            return photo_url
        return urljoin(self._settings.photo_base_url.rstrip("/") + "/", photo_url.lstrip("/"))
