from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from ..core.enums import EmbeddingStatus, PersonKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import FaceEmbedding
from .repository import FaceEmbeddingRepository

_SELECT = """
    SELECT id, tenant_id, embeddable_kind, embeddable_id, external_id, status,
           source_image_url, error_message, enrolled_at, updated_at
    FROM face_embeddings
"""


def _to_embedding(r: Dict[str, Any]) -> FaceEmbedding:
    return FaceEmbedding(
        embedding_id=int(r["id"]),
        tenant_id=int(r["tenant_id"]),
        embeddable_kind=PersonKind(r["embeddable_kind"]),
        embeddable_id=int(r["embeddable_id"]),
        external_id=r["external_id"],
        status=EmbeddingStatus(r["status"]),
        source_image_url=r.get("source_image_url"),
        error_message=r.get("error_message"),
        enrolled_at=r.get("enrolled_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLFaceEmbeddingRepository(FaceEmbeddingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert_pending(
        self,
        *,
        tenant_id: int,
        embeddable_kind: PersonKind,
        embeddable_id: int,
        external_id: str,
        source_image_url: Optional[str],
    ) -> FaceEmbedding:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO face_embeddings(tenant_id, embeddable_kind, embeddable_id, external_id, status, source_image_url)
                VALUES(%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    external_id=VALUES(external_id),
                    status=VALUES(status),
                    source_image_url=VALUES(source_image_url),
                    error_message=NULL,
                    updated_at=CURRENT_TIMESTAMP
                """,
                (
                    tenant_id,
                    embeddable_kind.value,
                    int(embeddable_id),
                    external_id,
                    EmbeddingStatus.PENDING.value,
                    source_image_url,
                ),
            )
            cur.execute(
                _SELECT + " WHERE tenant_id=%s AND embeddable_kind=%s AND embeddable_id=%s",
                (tenant_id, embeddable_kind.value, int(embeddable_id)),
            )
            return _to_embedding(fetchone(cur))

    def mark_active(self, embedding_id: int, *, enrolled_at: datetime) -> FaceEmbedding:
        return self._update(
            embedding_id,
            "status=%s, enrolled_at=%s, error_message=NULL",
            (EmbeddingStatus.ACTIVE.value, enrolled_at),
        )

    def mark_failed(self, embedding_id: int, *, error_message: str) -> FaceEmbedding:
        return self._update(embedding_id, "status=%s, error_message=%s", (EmbeddingStatus.FAILED.value, error_message))

    def mark_no_face(self, embedding_id: int, *, error_message: str) -> FaceEmbedding:
        return self._update(embedding_id, "status=%s, error_message=%s", (EmbeddingStatus.NO_FACE.value, error_message))

    def get_for_person(self, *, tenant_id: int, embeddable_kind: PersonKind, embeddable_id: int) -> Optional[FaceEmbedding]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT + " WHERE tenant_id=%s AND embeddable_kind=%s AND embeddable_id=%s",
                (tenant_id, embeddable_kind.value, int(embeddable_id)),
            )
            r = fetchone(cur)
            return _to_embedding(r) if r else None

    def list_needing_retry(self, *, tenant_id: int, updated_before: datetime) -> Sequence[FaceEmbedding]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _SELECT
                + """
                WHERE tenant_id=%s AND status IN (%s, %s) AND updated_at < %s
                ORDER BY updated_at
                """,
                (tenant_id, EmbeddingStatus.FAILED.value, EmbeddingStatus.NO_FACE.value, updated_before),
            )
            return [_to_embedding(r) for r in fetchall(cur)]

    def delete(self, embedding_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM face_embeddings WHERE id=%s", (int(embedding_id),))
            return cur.rowcount > 0

    def _update(self, embedding_id: int, assignments: str, params: tuple) -> FaceEmbedding:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"UPDATE face_embeddings SET {assignments}, updated_at=CURRENT_TIMESTAMP WHERE id=%s",
                (*params, int(embedding_id)),
            )
            cur.execute(_SELECT + " WHERE id=%s", (int(embedding_id),))
            return _to_embedding(fetchone(cur))
