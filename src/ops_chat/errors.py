"""Exception types for failures the service distinguishes between."""

from __future__ import annotations


class OpsChatError(Exception):
    """Base class for service errors."""


class ClassificationError(OpsChatError):
    """The intent classifier could not produce a valid classification."""


class RetrievalError(OpsChatError):
    """Embedding or vector search failed for a retrieval request."""


class DatabaseUnavailableError(OpsChatError):
    """The configured database could not be reached."""
