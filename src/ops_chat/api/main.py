"""FastAPI entrypoint for chat, classification and trace endpoints."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass
from functools import lru_cache
from typing import Any, Literal

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field

from ops_chat.agent.classifier import IntentClassifier, LLMIntentClassifier, classify_with_fallback
from ops_chat.agent.fallback import KeywordIntentClassifier
from ops_chat.agent.live_data import LiveDataRegistry
from ops_chat.agent.router import QueryRouter
from ops_chat.api.streaming import event_stream_response
from ops_chat.config import Settings, get_settings
from ops_chat.db.pool import ConnectionPool
from ops_chat.obs.logging import get_logger
from ops_chat.obs.tracing import TraceStore
from ops_chat.retrieval.company import CompanyDirectory, InMemoryCompanyDirectory, PgCompanyDirectory
from ops_chat.retrieval.embedder import Embedder, HashingEmbedder, OpenAIEmbedder
from ops_chat.retrieval.retriever import RetrievalPipeline
from ops_chat.retrieval.vector_store import InMemoryVectorStore, PgVectorStore, VectorStore
from ops_chat.types import ChatMessage, StreamingAnswer

logger = get_logger(__name__)


def _create_llm(settings: Settings, *, model: str, temperature: float, streaming: bool = False) -> Any:
    if not settings.openai_api_key:
        return None

    from langchain_openai import ChatOpenAI

    return ChatOpenAI(
        model=model,
        temperature=temperature,
        api_key=settings.openai_api_key,
        timeout=settings.external_timeout_seconds,
        streaming=streaming,
    )


@dataclass
class Services:
    """Collaborators shared by every request."""

    router: QueryRouter
    classifier: IntentClassifier
    live_data: LiveDataRegistry
    trace_store: TraceStore
    pool: ConnectionPool | None = None
    llm_configured: bool = False


def build_services(settings: Settings) -> Services:
    """Wire the service from settings.

    No OpenAI key selects the keyword classifier, the hashing embedder and
    extractive answers. No database URL selects in-memory stores.
    """
    classifier_llm = _create_llm(
        settings, model=settings.intent_model, temperature=settings.classifier_temperature
    )
    answer_llm = _create_llm(
        settings,
        model=settings.completion_model,
        temperature=settings.answer_temperature,
        streaming=settings.streaming,
    )

    classifier: IntentClassifier
    embedder: Embedder
    if classifier_llm is not None:
        classifier = LLMIntentClassifier(
            llm=classifier_llm, timeout_seconds=settings.external_timeout_seconds
        )
        embedder = OpenAIEmbedder(model=settings.embedding_model, api_key=settings.openai_api_key)
    else:
        classifier = KeywordIntentClassifier()
        embedder = HashingEmbedder()

    pool: ConnectionPool | None = None
    vector_store: VectorStore
    companies: CompanyDirectory
    if settings.database_url:
        pool = ConnectionPool(settings.database_url, settings.pool)
        vector_store = PgVectorStore(pool)
        companies = PgCompanyDirectory(pool)
    else:
        vector_store = InMemoryVectorStore()
        companies = InMemoryCompanyDirectory()

    live_data = LiveDataRegistry(timeout_seconds=settings.external_timeout_seconds)
    trace_store = TraceStore()
    router = QueryRouter(
        classifier=classifier,
        live_data=live_data,
        retrieval=RetrievalPipeline(
            vector_store,
            embedder,
            settings.retrieval,
            timeout_seconds=settings.external_timeout_seconds,
        ),
        companies=companies,
        answer_llm=answer_llm,
        completion=settings.completion,
        trace_store=trace_store,
        timeout_seconds=settings.external_timeout_seconds,
    )
    return Services(
        router=router,
        classifier=classifier,
        live_data=live_data,
        trace_store=trace_store,
        pool=pool,
        llm_configured=answer_llm is not None,
    )


@lru_cache
def get_services() -> Services:
    return build_services(get_settings())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    services = app.dependency_overrides.get(get_services, get_services)()
    if services.pool is not None:
        services.pool.open()
    try:
        yield
    finally:
        if services.pool is not None:
            services.pool.close()


class ChatMessageModel(BaseModel):
    role: Literal["user", "assistant", "system"]
    content: str


class ChatRequest(BaseModel):
    message: str = ""
    tenant_id: str | None = Field(
        default=None, validation_alias=AliasChoices("tenantId", "companyId", "tenant_id")
    )
    history: list[ChatMessageModel] = Field(default_factory=list)


class ClassifyRequest(BaseModel):
    message: str = ""


app = FastAPI(title="Ops Chat", version="0.1.0", lifespan=lifespan)


def _bad_request(error: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": error})


@app.get("/health")
def health(services: Services = Depends(get_services)) -> dict[str, Any]:
    return {
        "status": "ok",
        "llm_configured": services.llm_configured,
        "classifier_mode": "llm"
        if isinstance(services.classifier, LLMIntentClassifier)
        else "keyword",
        "database_configured": services.pool is not None,
        "trace_count": len(services.trace_store.list_recent(limit=1000)),
    }


@app.post("/chat/classify", response_model=None)
async def classify(
    request: ClassifyRequest, services: Services = Depends(get_services)
) -> dict[str, Any] | JSONResponse:
    message = request.message.strip()
    if not message:
        return _bad_request("Missing message")
    try:
        outcome = await classify_with_fallback(services.classifier, message)
    except Exception as exc:
        logger.error(f"Classification endpoint failed: {exc}", exc_info=True)
        return JSONResponse(status_code=500, content={"error": "Failed to classify intent"})
    return outcome.result.to_payload()


@app.post("/chat", response_model=None)
async def chat(request: ChatRequest, services: Services = Depends(get_services)) -> Any:
    message = request.message.strip()
    if not message:
        return _bad_request("Missing message")
    if not request.tenant_id:
        return _bad_request("Missing tenantId")

    history = [ChatMessage(role=turn.role, content=turn.content) for turn in request.history]
    try:
        result = await services.router.handle_message(message, request.tenant_id, history)
    except Exception as exc:
        logger.error(f"Chat endpoint failed: {exc}", exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process chat message", "details": str(exc)},
        )

    if isinstance(result, StreamingAnswer):
        return event_stream_response(result.events)
    return result.to_payload()


@app.get("/traces")
def traces(limit: int = 20, services: Services = Depends(get_services)) -> dict[str, Any]:
    records = [asdict(record) for record in services.trace_store.list_recent(limit=limit)]
    return {"items": records}


@app.get("/traces/{trace_id}")
def trace_detail(trace_id: str, services: Services = Depends(get_services)) -> dict[str, Any]:
    try:
        record = services.trace_store.get(trace_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return asdict(record)


@app.get("/metrics")
def metrics(services: Services = Depends(get_services)) -> dict[str, Any]:
    return services.trace_store.summary()
