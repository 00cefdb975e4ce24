"""Ops chat package."""

from .config import CompletionConfig, RetrievalConfig, Settings

__all__ = ["CompletionConfig", "RetrievalConfig", "Settings"]
