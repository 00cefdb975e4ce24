"""Tenant-scoped retrieval with query expansion and a similarity floor."""

from __future__ import annotations

import asyncio
from dataclasses import replace

from ops_chat.config import RetrievalConfig
from ops_chat.errors import RetrievalError
from ops_chat.obs.logging import get_logger
from ops_chat.retrieval.embedder import Embedder
from ops_chat.retrieval.vector_store import VectorStore
from ops_chat.types import DocumentChunk

logger = get_logger(__name__)

QUERY_EXPANSION = (
    "business information, company details, operations, processes, "
    "inventory management, data"
)

CONTEXT_SEPARATOR = "\n\n---\n\n"


class RetrievalPipeline:
    """Embeds a query and returns the tenant's closest document chunks.

    The store is asked for `overfetch_factor * top_k` neighbours because the
    similarity floor is expected to discard some of them; rows at or below
    `min_similarity` are dropped before truncating to `top_k`.
    """

    def __init__(
        self,
        vector_store: VectorStore,
        embedder: Embedder,
        config: RetrievalConfig | None = None,
        *,
        timeout_seconds: float | None = None,
    ) -> None:
        self.vector_store = vector_store
        self.embedder = embedder
        self.config = config or RetrievalConfig()
        self.timeout_seconds = timeout_seconds

    async def retrieve(
        self, query: str, tenant_id: str, top_k: int | None = None
    ) -> list[DocumentChunk]:
        final_k = top_k or self.config.top_k
        fetch_k = final_k * self.config.overfetch_factor
        expanded = expand_query(query)

        try:
            embedding = await asyncio.wait_for(
                asyncio.to_thread(self.embedder.embed_query, expanded),
                timeout=self.timeout_seconds,
            )
            rows = await asyncio.wait_for(
                asyncio.to_thread(self.vector_store.nearest, tenant_id, embedding, fetch_k),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise RetrievalError("Retrieval timed out") from exc
        except Exception as exc:
            raise RetrievalError(f"Retrieval failed: {exc}") from exc

        kept: list[DocumentChunk] = []
        for row in rows:
            similarity = round(1.0 - row.distance, 9)
            if similarity <= self.config.min_similarity:
                continue
            kept.append(replace(row.chunk, similarity=similarity))

        logger.debug(
            f"Retrieved {len(rows)} candidates, kept {min(len(kept), final_k)} "
            f"for tenant {tenant_id}"
        )
        return kept[:final_k]


def expand_query(query: str) -> str:
    return f"{query.strip()} {QUERY_EXPANSION}"


def build_context(chunks: list[DocumentChunk]) -> str:
    """Render chunks as numbered SOURCE blocks for the answer prompt."""
    return CONTEXT_SEPARATOR.join(
        f"SOURCE {idx} ({chunk.source}#{chunk.chunk_index}):\n{chunk.content}"
        for idx, chunk in enumerate(chunks, start=1)
    )
