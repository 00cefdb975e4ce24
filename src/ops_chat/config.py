"""Configuration models for the chat routing service."""

from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SYSTEM_PROMPT = (
    "You are a helpful assistant for company data. Answer ONLY based on the "
    "provided context. Do not use external knowledge or make assumptions."
)


class RetrievalConfig(BaseModel):
    """Configures tenant-scoped nearest-neighbour retrieval."""

    top_k: int = Field(default=10, ge=1)
    overfetch_factor: int = Field(default=2, ge=1)
    min_similarity: float = Field(default=0.3, ge=0.0, le=1.0)


class CompletionConfig(BaseModel):
    """Configures classification and answer generation calls."""

    classifier_temperature: float = Field(default=0.0, ge=0.0, le=2.0)
    answer_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    streaming: bool = True
    history_limit: int = Field(default=10, ge=0)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT


class PoolConfig(BaseModel):
    """Configures the Postgres connection pool."""

    min_connections: int = Field(default=1, ge=1)
    max_connections: int = Field(default=10, ge=1)
    checkout_timeout_seconds: float = Field(default=30.0, gt=0.0)


class Settings(BaseSettings):
    """Service settings loaded from the environment or a `.env` file.

    Every option has a default so the service runs without configuration: no
    OpenAI key selects the deterministic classifier and hashing embedder, no
    database URL selects in-memory stores.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", populate_by_name=True)

    env: str = Field(default="dev", validation_alias="OPS_CHAT_ENV")
    openai_api_key: str | None = Field(default=None, validation_alias="OPENAI_API_KEY")
    embedding_model: str = Field(
        default="text-embedding-3-small", validation_alias="OPENAI_EMBEDDING_MODEL"
    )
    completion_model: str = Field(default="gpt-4o-mini", validation_alias="OPENAI_LLM_MODEL")
    intent_model: str = Field(default="gpt-4o-mini", validation_alias="CHATBOT_INTENT_MODEL")
    database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")
    external_timeout_seconds: float = Field(
        default=30.0, gt=0.0, validation_alias="EXTERNAL_TIMEOUT_SECONDS"
    )

    top_k: int = Field(default=10, ge=1, validation_alias="RAG_DEFAULT_TOP_K")
    min_similarity: float = Field(
        default=0.3, ge=0.0, le=1.0, validation_alias="RAG_MIN_SIMILARITY"
    )
    classifier_temperature: float = Field(
        default=0.0, validation_alias="RAG_CLASSIFIER_TEMPERATURE"
    )
    answer_temperature: float = Field(default=0.7, validation_alias="RAG_LLM_TEMPERATURE")
    streaming: bool = Field(default=True, validation_alias="RAG_LLM_STREAMING")
    history_limit: int = Field(default=10, ge=0, validation_alias="RAG_HISTORY_LIMIT")
    system_prompt: str = Field(
        default=DEFAULT_SYSTEM_PROMPT,
        validation_alias=AliasChoices("RAG_PROMPT_TEMPLATE", "RAG_SYSTEM_PROMPT"),
    )
    pool_min: int = Field(default=1, ge=1, validation_alias="DB_POOL_MIN")
    pool_max: int = Field(default=10, ge=1, validation_alias="DB_POOL_MAX")

    @property
    def retrieval(self) -> RetrievalConfig:
        return RetrievalConfig(top_k=self.top_k, min_similarity=self.min_similarity)

    @property
    def completion(self) -> CompletionConfig:
        return CompletionConfig(
            classifier_temperature=self.classifier_temperature,
            answer_temperature=self.answer_temperature,
            streaming=self.streaming,
            history_limit=self.history_limit,
            system_prompt=self.system_prompt,
        )

    @property
    def pool(self) -> PoolConfig:
        return PoolConfig(
            min_connections=self.pool_min,
            max_connections=self.pool_max,
            checkout_timeout_seconds=self.external_timeout_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
