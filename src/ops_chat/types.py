"""Shared domain models."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from dataclasses import dataclass, field
from typing import Any, Literal

Role = Literal["user", "assistant", "system"]

FALLBACK_INTENT = "fallback"


@dataclass(frozen=True, slots=True)
class ClassificationResult:
    """What the user wants, as decided by an intent classifier."""

    intent: str
    confidence: float
    parameters: dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        return {
            "intent": self.intent,
            "confidence": self.confidence,
            "parameters": dict(self.parameters),
        }


@dataclass(frozen=True, slots=True)
class ClassificationOutcome:
    """Classification that either succeeded or degraded to the fallback intent."""

    result: ClassificationResult
    degraded_reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.degraded_reason is None

    @classmethod
    def classified(cls, result: ClassificationResult) -> "ClassificationOutcome":
        return cls(result=result)

    @classmethod
    def degraded(cls, reason: str) -> "ClassificationOutcome":
        return cls(
            result=ClassificationResult(intent=FALLBACK_INTENT, confidence=0.3, parameters={}),
            degraded_reason=reason,
        )


@dataclass(slots=True)
class ChatMessage:
    """One turn of caller-supplied conversation history."""

    role: Role
    content: str


@dataclass(slots=True)
class DocumentChunk:
    """A tenant document chunk returned by nearest-neighbour search."""

    id: str
    source: str
    chunk_index: int
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    similarity: float = 0.0

    def to_payload(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "chunkIndex": self.chunk_index,
            "content": self.content,
            "metadata": self.metadata,
            "similarity": self.similarity,
        }


@dataclass(slots=True)
class QueryResult:
    """Outcome of a live-data handler call."""

    success: bool
    data: Any = None
    formatted: str | None = None
    error: str | None = None


@dataclass(frozen=True, slots=True)
class NavigationIntent:
    """A canonical application page."""

    page: str
    url: str
    description: str = ""


@dataclass(slots=True)
class CompanyInfo:
    """Tenant company metadata."""

    name: str
    display_name: str | None = None
    industry: str | None = None
    description: str | None = None


@dataclass(slots=True)
class ResponseEnvelope:
    """Single non-streaming chat response."""

    intent: str
    answer: str
    sources: list[DocumentChunk] = field(default_factory=list)
    action: dict[str, str] | None = None
    data: Any = None

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "intent": self.intent,
            "sources": [chunk.to_payload() for chunk in self.sources],
            "answer": self.answer,
            "action": self.action,
        }
        if self.data is not None:
            payload["data"] = self.data
        return payload


@dataclass(slots=True)
class StreamingAnswer:
    """A grounded answer delivered as an ordered event sequence."""

    intent: str
    sources: list[DocumentChunk]
    events: AsyncGenerator[dict[str, Any], None]
