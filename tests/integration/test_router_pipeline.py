import pytest
from langchain_core.language_models import FakeListChatModel

from ops_chat.agent.fallback import KeywordIntentClassifier
from ops_chat.agent.heuristics import GREETING_REPLY
from ops_chat.agent.intents import Intent
from ops_chat.agent.live_data import HandlerSpec, LiveDataRegistry, LookupParameters
from ops_chat.agent.router import (
    GENERIC_REPLY,
    KNOWLEDGE_UNAVAILABLE_REPLY,
    PAGE_NOT_FOUND_REPLY,
    SYNCING_REPLY,
    QueryRouter,
)
from ops_chat.errors import RetrievalError
from ops_chat.obs.tracing import TraceStore
from ops_chat.retrieval.company import InMemoryCompanyDirectory
from ops_chat.retrieval.embedder import HashingEmbedder
from ops_chat.retrieval.retriever import RetrievalPipeline
from ops_chat.retrieval.vector_store import InMemoryVectorStore
from ops_chat.types import CompanyInfo, DocumentChunk, QueryResult, ResponseEnvelope, StreamingAnswer

_PO_CHUNK = DocumentChunk(
    id="po-guide-0",
    source="purchasing-guide.md",
    chunk_index=0,
    content="How do I create a purchase order? Open Purchase Orders and click New Purchase Order.",
)


class _FailingRetrieval:
    async def retrieve(self, query: str, tenant_id: str, top_k: int | None = None):
        raise RetrievalError("vector store unreachable")


def _build_router(
    *,
    chunks: dict[str, list[DocumentChunk]] | None = None,
    llm=None,
    live_data: LiveDataRegistry | None = None,
    companies: InMemoryCompanyDirectory | None = None,
    trace_store: TraceStore | None = None,
) -> QueryRouter:
    embedder = HashingEmbedder()
    store = InMemoryVectorStore()
    for tenant_id, tenant_chunks in (chunks or {}).items():
        store.upsert(
            tenant_id, tenant_chunks, embedder.embed_documents([c.content for c in tenant_chunks])
        )
    return QueryRouter(
        classifier=KeywordIntentClassifier(),
        live_data=live_data or LiveDataRegistry(),
        retrieval=RetrievalPipeline(store, embedder),
        companies=companies or InMemoryCompanyDirectory(),
        answer_llm=llm,
        trace_store=trace_store,
    )


@pytest.mark.asyncio
async def test_list_products_calls_live_data_with_tenant() -> None:
    calls = []

    def _list_products(params: LookupParameters, tenant_id: str):
        calls.append(tenant_id)
        return QueryResult(success=True, data=[{"sku": "BOLT-M8"}], formatted="You have 1 product.")

    registry = LiveDataRegistry()
    registry.register(
        HandlerSpec(intent=Intent.PRODUCTS_LIST, description="list products", handler=_list_products)
    )
    traces = TraceStore()
    router = _build_router(live_data=registry, trace_store=traces)

    result = await router.handle_message("List products", "T1")

    assert isinstance(result, ResponseEnvelope)
    assert calls == ["T1"]
    assert result.to_payload() == {
        "intent": "products.list",
        "sources": [],
        "answer": "You have 1 product.",
        "action": None,
        "data": [{"sku": "BOLT-M8"}],
    }
    assert traces.list_recent()[0].strategy == "live_data"


@pytest.mark.asyncio
async def test_how_to_question_streams_grounded_answer() -> None:
    llm = FakeListChatModel(responses=["Open Purchase Orders, then click New Purchase Order."])
    router = _build_router(chunks={"T1": [_PO_CHUNK]}, llm=llm)

    result = await router.handle_message("How do I create a purchase order?", "T1")

    assert isinstance(result, StreamingAnswer)
    events = [event async for event in result.events]
    assert events[0]["intent"] == "knowledge.explainer"
    assert [source["source"] for source in events[0]["sources"]] == ["purchasing-guide.md"]
    assert events[-1] == {
        "answer": "Open Purchase Orders, then click New Purchase Order.",
        "done": True,
        "intent": "knowledge.explainer",
    }


@pytest.mark.asyncio
async def test_retrieval_is_tenant_scoped() -> None:
    router = _build_router(chunks={"T2": [_PO_CHUNK]})

    result = await router.handle_message("How do I create a purchase order?", "T1")

    assert isinstance(result, ResponseEnvelope)
    assert result.answer == SYNCING_REPLY
    assert result.sources == []


@pytest.mark.asyncio
async def test_company_question_without_documents_uses_tenant_metadata() -> None:
    companies = InMemoryCompanyDirectory({"T1": CompanyInfo(name="Acme", industry="Hardware")})
    router = _build_router(companies=companies)

    result = await router.handle_message("What is my company name?", "T1")

    assert isinstance(result, ResponseEnvelope)
    assert result.intent == "knowledge.explainer"
    assert result.answer.startswith("Your company is **Acme**.")


@pytest.mark.asyncio
async def test_navigation_guidance_short_circuits_retrieval() -> None:
    router = _build_router()
    router.retrieval = _FailingRetrieval()

    result = await router.route("knowledge.explainer", {}, "T1", "Where should I go to add suppliers?")

    assert isinstance(result, ResponseEnvelope)
    assert "Inventory → Suppliers" in result.answer


@pytest.mark.asyncio
async def test_retrieval_errors_become_static_replies() -> None:
    router = _build_router()
    router.retrieval = _FailingRetrieval()

    knowledge = await router.route("knowledge.explainer", {}, "T1", "Explain our returns policy")
    fallback = await router.route("fallback", {}, "T1", "tell me something useful")

    assert knowledge.answer == KNOWLEDGE_UNAVAILABLE_REPLY
    assert fallback.answer == GENERIC_REPLY


@pytest.mark.asyncio
async def test_navigation_found_and_missing() -> None:
    router = _build_router()

    found = await router.route("navigation.page", {"page": "suppliers"}, "T1", "go to suppliers")
    missing = await router.route("navigation.page", {}, "T1", "take me to the moon")

    assert found.action == {"type": "navigate", "url": "/inventory/suppliers"}
    assert found.answer == "I'll take you to the Suppliers page."
    assert missing.answer == PAGE_NOT_FOUND_REPLY
    assert missing.action is None


@pytest.mark.asyncio
async def test_live_data_failure_and_unknown_intent() -> None:
    router = _build_router()

    failure = await router.route("orders.recent", {}, "T1", "recent orders")
    unknown = await router.route("billing.refund", {}, "T1", "Hello")

    assert failure.answer == "Sorry, I encountered an error: Unsupported live data intent: orders.recent"
    assert unknown.answer == "Hi! How can I help you today?"


class _RecordingRetrieval(_FailingRetrieval):
    def __init__(self) -> None:
        self.queries: list[str] = []

    async def retrieve(self, query: str, tenant_id: str, top_k: int | None = None):
        self.queries.append(query)
        return await super().retrieve(query, tenant_id, top_k)


@pytest.mark.asyncio
async def test_padded_greeting_is_answered_without_retrieval_or_live_data() -> None:
    registry = LiveDataRegistry()
    router = _build_router(live_data=registry)
    retrieval = _RecordingRetrieval()
    router.retrieval = retrieval

    result = await router.handle_message("  Hello  ", "T1")

    assert isinstance(result, ResponseEnvelope)
    assert result.intent == "fallback"
    assert result.answer == GREETING_REPLY
    assert result.sources == []
    assert retrieval.queries == []
    assert registry.registered_intents() == []
