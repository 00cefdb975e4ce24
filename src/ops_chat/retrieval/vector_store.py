"""Tenant-scoped vector store interfaces and concrete adapters."""

from __future__ import annotations

from dataclasses import dataclass
from math import sqrt
from typing import Any, Protocol

from ops_chat.db.pool import ConnectionPool
from ops_chat.types import DocumentChunk


@dataclass(slots=True)
class NeighbourRow:
    """A stored chunk and its distance from the query vector."""

    chunk: DocumentChunk
    distance: float


class VectorStore(Protocol):
    """Nearest-neighbour search over one tenant's document chunks."""

    def nearest(
        self, tenant_id: str, query_embedding: list[float], k: int
    ) -> list[NeighbourRow]:
        """Return up to `k` rows of `tenant_id`, ascending by cosine distance."""


@dataclass(slots=True)
class _StoredVector:
    tenant_id: str
    chunk: DocumentChunk
    embedding: list[float]


class InMemoryVectorStore:
    """Deterministic vector store used for tests and local prototyping."""

    def __init__(self) -> None:
        self._store: dict[tuple[str, str], _StoredVector] = {}

    def upsert(
        self,
        tenant_id: str,
        chunks: list[DocumentChunk],
        embeddings: list[list[float]],
    ) -> None:
        if len(chunks) != len(embeddings):
            raise ValueError("chunks and embeddings must have the same length")
        for chunk, embedding in zip(chunks, embeddings, strict=True):
            self._store[(tenant_id, chunk.id)] = _StoredVector(
                tenant_id=tenant_id, chunk=chunk, embedding=embedding
            )

    def nearest(
        self, tenant_id: str, query_embedding: list[float], k: int
    ) -> list[NeighbourRow]:
        rows = [
            NeighbourRow(
                chunk=record.chunk,
                distance=1.0 - _cosine_similarity(query_embedding, record.embedding),
            )
            for record in self._store.values()
            if record.tenant_id == tenant_id
        ]
        rows.sort(key=lambda row: row.distance)
        return rows[:k]


class PgVectorStore:
    """pgvector-backed store over the `rag_documents` table.

    Uses the cosine distance operator (`<=>`) so `1 - distance` is the cosine
    similarity of the query and chunk embeddings.
    """

    _SQL = """
        SELECT id, source, chunk_index, content, metadata,
               embedding <=> %s::vector AS distance
        FROM rag_documents
        WHERE tenant_id = %s
        ORDER BY distance ASC
        LIMIT %s
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def nearest(
        self, tenant_id: str, query_embedding: list[float], k: int
    ) -> list[NeighbourRow]:
        literal = "[" + ",".join(repr(float(value)) for value in query_embedding) + "]"
        rows = self._pool.fetch_all(self._SQL, (literal, tenant_id, k))
        return [
            NeighbourRow(
                chunk=DocumentChunk(
                    id=str(row[0]),
                    source=str(row[1]),
                    chunk_index=int(row[2]),
                    content=str(row[3]),
                    metadata=_as_metadata(row[4]),
                ),
                distance=float(row[5]),
            )
            for row in rows
        ]


def _as_metadata(value: Any) -> dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}


def _cosine_similarity(a: list[float], b: list[float]) -> float:
    if not a or not b or len(a) != len(b):
        return 0.0
    numerator = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = sqrt(sum(x * x for x in a))
    norm_b = sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return numerator / (norm_a * norm_b)
