"""Registry of live operational-data handlers keyed by intent."""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from time import perf_counter
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from ops_chat.agent.intents import LIVE_DATA_INTENTS, Intent, parse_intent
from ops_chat.obs.logging import get_logger
from ops_chat.types import QueryResult

logger = get_logger(__name__)

HandlerResult = Union[QueryResult, Awaitable[QueryResult]]


class LookupParameters(BaseModel):
    """Free-text search terms the classifier may extract.

    Unknown keys are kept so handlers receive the classifier's parameters
    unchanged. Numeric ids are read as strings and limits are not range
    checked; handlers decide what they accept.
    """

    model_config = ConfigDict(extra="allow", coerce_numbers_to_str=True)

    searchTerm: str | None = None
    sku: str | None = None
    orderNumber: str | None = None
    limit: int | None = None


class HandlerSpec(BaseModel):
    """Declarative live-data handler registration."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    intent: Intent
    description: str
    handler: Callable[[LookupParameters, str], HandlerResult]
    params_schema: type[LookupParameters] = LookupParameters


class HandlerCall(BaseModel):
    """Observed handler invocation."""

    intent: str
    tenant_id: str
    success: bool
    latency_ms: float


class LiveDataRegistry:
    """Dispatches `(intent, parameters, tenant_id)` to a registered handler.

    Handlers may be sync or async and always receive the tenant id explicitly.
    Handler exceptions and parameter validation failures are returned as
    unsuccessful `QueryResult`s rather than raised.
    """

    def __init__(self, *, timeout_seconds: float | None = None) -> None:
        self._handlers: dict[Intent, HandlerSpec] = {}
        self._observer: Callable[[HandlerCall], None] | None = None
        self._timeout = timeout_seconds

    def register(self, spec: HandlerSpec) -> None:
        if spec.intent not in LIVE_DATA_INTENTS:
            raise ValueError(f"Not a live-data intent: {spec.intent.value}")
        if spec.intent in self._handlers:
            raise ValueError(f"Handler already registered: {spec.intent.value}")
        self._handlers[spec.intent] = spec

    def set_observer(self, observer: Callable[[HandlerCall], None] | None) -> None:
        """Set an optional callback invoked after each handler call."""
        self._observer = observer

    def registered_intents(self) -> list[Intent]:
        return list(self._handlers)

    async def handle(
        self, intent: str, parameters: dict[str, Any], tenant_id: str
    ) -> QueryResult:
        member = parse_intent(intent)
        spec = self._handlers.get(member) if member is not None else None
        if spec is None:
            return QueryResult(success=False, error=f"Unsupported live data intent: {intent}")

        start = perf_counter()
        result = await self._run(spec, parameters, tenant_id)
        latency_ms = (perf_counter() - start) * 1000.0

        if self._observer is not None:
            self._observer(
                HandlerCall(
                    intent=spec.intent.value,
                    tenant_id=tenant_id,
                    success=result.success,
                    latency_ms=latency_ms,
                )
            )
        return result

    async def _run(
        self, spec: HandlerSpec, parameters: dict[str, Any], tenant_id: str
    ) -> QueryResult:
        try:
            params = spec.params_schema.model_validate(parameters or {})
        except ValidationError as exc:
            return QueryResult(success=False, error=f"Invalid parameters: {exc.error_count()} error(s)")

        try:
            if inspect.iscoroutinefunction(spec.handler):
                call = spec.handler(params, tenant_id)
            else:
                call = asyncio.to_thread(spec.handler, params, tenant_id)
            outcome = await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Live-data handler timed out: {spec.intent.value}")
            return QueryResult(success=False, error="The data source took too long to respond.")
        except Exception as exc:
            logger.error(f"Live-data handler failed: {spec.intent.value}: {exc}")
            return QueryResult(success=False, error=str(exc) or exc.__class__.__name__)
        return outcome
