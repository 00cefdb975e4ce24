"""Routes a classified message to navigation, live data, knowledge or fallback."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Union

from ops_chat.agent.classifier import IntentClassifier, classify_with_fallback
from ops_chat.agent.heuristics import FALLBACK_RULES, first_match, navigation_guidance
from ops_chat.agent.intents import Strategy, strategy_for
from ops_chat.agent.live_data import LiveDataRegistry
from ops_chat.agent.navigation import find_navigation_intent
from ops_chat.agent.responder import build_messages, stream_answer
from ops_chat.config import CompletionConfig
from ops_chat.errors import RetrievalError
from ops_chat.obs.logging import get_logger, log_with_context
from ops_chat.obs.tracing import Timer, TraceStore
from ops_chat.retrieval.company import CompanyDirectory, format_company_info
from ops_chat.retrieval.retriever import RetrievalPipeline, build_context
from ops_chat.types import ChatMessage, DocumentChunk, ResponseEnvelope, StreamingAnswer

logger = get_logger(__name__)

RouteResult = Union[ResponseEnvelope, StreamingAnswer]

PAGE_NOT_FOUND_REPLY = (
    "I couldn't find that page. Try asking for 'dashboard', 'inventory', "
    "'orders', or 'reports'."
)
QUERY_SUCCESS_REPLY = "Query executed successfully."
LIVE_DATA_ERROR_PREFIX = "Sorry, I encountered an error: "
SYNCING_REPLY = (
    "I'm still syncing your knowledge base and couldn't find documentation on "
    "that topic yet. You can upload relevant documents, or ask me to perform the "
    "action directly (e.g., 'list products' instead of 'how do I list products')."
)
KNOWLEDGE_UNAVAILABLE_REPLY = (
    "I can't search your documents right now. Try asking for a specific action "
    "instead, such as 'list products' or 'show recent orders'."
)
GENERIC_REPLY = (
    "I can help you with inventory, orders, products, suppliers, customers, "
    "and more. What would you like to know?"
)

_COMPANY_QUESTION_WORDS = ("name", "what", "who")

StrategyHandler = Callable[
    [str, dict[str, Any], str, str, Sequence[ChatMessage]], Awaitable[RouteResult]
]


class QueryRouter:
    """Dispatches classified messages through one `Strategy -> handler` table.

    Navigation and live-data replies are terminal `ResponseEnvelope`s. Knowledge
    and fallback messages that find tenant documents become a `StreamingAnswer`.
    """

    def __init__(
        self,
        *,
        classifier: IntentClassifier,
        live_data: LiveDataRegistry,
        retrieval: RetrievalPipeline,
        companies: CompanyDirectory,
        answer_llm: Any | None = None,
        completion: CompletionConfig | None = None,
        trace_store: TraceStore | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        self.classifier = classifier
        self.live_data = live_data
        self.retrieval = retrieval
        self.companies = companies
        self.answer_llm = answer_llm
        self.completion = completion or CompletionConfig()
        self.trace_store = trace_store
        self.timeout_seconds = timeout_seconds
        self._handlers: dict[Strategy, StrategyHandler] = {
            Strategy.NAVIGATION: self._navigate,
            Strategy.LIVE_DATA: self._query_live_data,
            Strategy.KNOWLEDGE: self._answer_from_knowledge,
            Strategy.FALLBACK: self._fall_back,
        }

    async def handle_message(
        self,
        message: str,
        tenant_id: str,
        history: Sequence[ChatMessage] | None = None,
    ) -> RouteResult:
        """Classify `message` (degrading on classifier errors), then route it."""
        with Timer() as timer:
            outcome = await classify_with_fallback(self.classifier, message)
            if not outcome.ok:
                logger.warning(f"Routing with degraded classification: {outcome.degraded_reason}")
            classification = outcome.result
            result = await self.route(
                classification.intent,
                classification.parameters,
                tenant_id,
                message,
                history or (),
            )

        strategy = strategy_for(classification.intent)
        log_with_context(
            logger,
            logging.INFO,
            "Chat message routed",
            tenant_id=tenant_id,
            intent=classification.intent,
            strategy=strategy.value,
            source_count=len(result.sources),
        )
        if self.trace_store is not None:
            self.trace_store.create_record(
                message=message,
                tenant_id=tenant_id,
                intent=classification.intent,
                confidence=classification.confidence,
                strategy=strategy.value,
                degraded=not outcome.ok,
                source_count=len(result.sources),
                streamed=isinstance(result, StreamingAnswer),
                latency_ms=timer.elapsed_ms,
            )
        return result

    async def route(
        self,
        intent: str,
        parameters: dict[str, Any],
        tenant_id: str,
        raw_message: str,
        history: Sequence[ChatMessage] = (),
    ) -> RouteResult:
        handler = self._handlers[strategy_for(intent)]
        return await handler(intent, parameters or {}, tenant_id, raw_message, history)

    async def _navigate(
        self,
        intent: str,
        parameters: dict[str, Any],
        tenant_id: str,
        raw_message: str,
        history: Sequence[ChatMessage],
    ) -> RouteResult:
        page = parameters.get("page") or raw_message
        target = find_navigation_intent(str(page))
        if target is None:
            return ResponseEnvelope(intent=intent, answer=PAGE_NOT_FOUND_REPLY)
        return ResponseEnvelope(
            intent=intent,
            answer=f"I'll take you to the {target.page} page.",
            action={"type": "navigate", "url": target.url},
        )

    async def _query_live_data(
        self,
        intent: str,
        parameters: dict[str, Any],
        tenant_id: str,
        raw_message: str,
        history: Sequence[ChatMessage],
    ) -> RouteResult:
        result = await self.live_data.handle(intent, parameters, tenant_id)
        if not result.success:
            return ResponseEnvelope(intent=intent, answer=f"{LIVE_DATA_ERROR_PREFIX}{result.error}")
        return ResponseEnvelope(
            intent=intent,
            answer=result.formatted or QUERY_SUCCESS_REPLY,
            data=result.data,
        )

    async def _answer_from_knowledge(
        self,
        intent: str,
        parameters: dict[str, Any],
        tenant_id: str,
        raw_message: str,
        history: Sequence[ChatMessage],
    ) -> RouteResult:
        guidance = navigation_guidance(raw_message)
        if guidance is not None:
            return ResponseEnvelope(intent=intent, answer=guidance)

        try:
            sources = await self.retrieval.retrieve(raw_message, tenant_id)
        except RetrievalError as exc:
            logger.warning(f"Knowledge retrieval failed for tenant {tenant_id}: {exc}")
            return ResponseEnvelope(intent=intent, answer=KNOWLEDGE_UNAVAILABLE_REPLY)

        if sources:
            return self._stream(intent, raw_message, sources, history)

        company_answer = await self._company_answer(raw_message, tenant_id)
        return ResponseEnvelope(intent=intent, answer=company_answer or SYNCING_REPLY)

    async def _fall_back(
        self,
        intent: str,
        parameters: dict[str, Any],
        tenant_id: str,
        raw_message: str,
        history: Sequence[ChatMessage],
    ) -> RouteResult:
        rule = first_match(FALLBACK_RULES, raw_message)
        if rule is not None:
            logger.debug(f"Fallback rule matched: {rule.name}")
            return ResponseEnvelope(intent=intent, answer=rule.response)

        try:
            sources = await self.retrieval.retrieve(raw_message, tenant_id)
        except RetrievalError as exc:
            logger.warning(f"Best-effort retrieval failed for tenant {tenant_id}: {exc}")
            sources = []

        if sources:
            return self._stream(intent, raw_message, sources, history)
        return ResponseEnvelope(intent=intent, answer=GENERIC_REPLY)

    async def _company_answer(self, message: str, tenant_id: str) -> str | None:
        lower = message.lower()
        if "company" not in lower or not any(word in lower for word in _COMPANY_QUESTION_WORDS):
            return None
        try:
            info = await asyncio.wait_for(
                asyncio.to_thread(self.companies.get_company_info, tenant_id),
                timeout=self.timeout_seconds,
            )
        except Exception as exc:
            logger.warning(f"Company lookup failed for tenant {tenant_id}: {exc}")
            return None
        return format_company_info(info) if info is not None else None

    def _stream(
        self,
        intent: str,
        question: str,
        sources: list[DocumentChunk],
        history: Sequence[ChatMessage],
    ) -> StreamingAnswer:
        messages = build_messages(
            question,
            build_context(sources),
            history,
            system_prompt=self.completion.system_prompt,
            history_limit=self.completion.history_limit,
        )
        events = stream_answer(
            llm=self.answer_llm,
            messages=messages,
            sources=sources,
            intent=intent,
            streaming=self.completion.streaming,
            timeout_seconds=self.timeout_seconds,
        )
        return StreamingAnswer(intent=intent, sources=sources, events=events)
