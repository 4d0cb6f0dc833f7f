from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import PersonKind
from .model import FaceEmbedding


class FaceEmbeddingRepository(Protocol):
    def upsert_pending(
        self,
        *,
        tenant_id: int,
        embeddable_kind: PersonKind,
        embeddable_id: int,
        external_id: str,
        source_image_url: Optional[str],
    ) -> FaceEmbedding:
        """Insert-or-reset to PENDING, keyed by (tenant_id, embeddable_kind, embeddable_id)."""

        raise NotImplementedError

    def mark_active(self, embedding_id: int, *, enrolled_at: datetime) -> FaceEmbedding:
        raise NotImplementedError

    def mark_failed(self, embedding_id: int, *, error_message: str) -> FaceEmbedding:
        raise NotImplementedError

    def mark_no_face(self, embedding_id: int, *, error_message: str) -> FaceEmbedding:
        raise NotImplementedError

    def get_for_person(self, *, tenant_id: int, embeddable_kind: PersonKind, embeddable_id: int) -> Optional[FaceEmbedding]:
        raise NotImplementedError

    def list_needing_retry(self, *, tenant_id: int, updated_before: datetime) -> Sequence[FaceEmbedding]:
        """FAILED or NO_FACE rows last touched before ``updated_before``."""

        raise NotImplementedError

    def delete(self, embedding_id: int) -> bool:
        raise NotImplementedError
