"""LLM-backed intent classification with local preprocessing and quick matches."""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any, Protocol

from langchain_core.messages import HumanMessage
from pydantic import BaseModel, ValidationError

from ops_chat.agent.intents import INTENT_VALUES, Intent
from ops_chat.errors import ClassificationError
from ops_chat.obs.logging import get_logger
from ops_chat.types import FALLBACK_INTENT, ClassificationOutcome, ClassificationResult

logger = get_logger(__name__)

INTENT_CLASSIFICATION_PROMPT = """
You are an intent classifier for an inventory management chatbot. Classify the
user message into exactly one intent and extract relevant entities.

CRITICAL DISTINCTION:
- If the user asks HOW to do X, WHAT should I do, HOW do I, STEPS to, or asks
  about their company (name, identity, profile) -> knowledge.explainer
- If the user commands DO X, SHOW me X, LIST X, GET X, or asks a bare noun
  question such as "what products" (without asking how) -> the action intent

INTENTS:
knowledge.explainer - how-to questions, processes, policies, company info
inventory.lookup | inventory.lowstock | inventory.movements | inventory.alerts
products.list | products.search | products.details | products.count
orders.status | orders.recent | orders.details | orders.count
purchaseorders.list | purchaseorders.status | purchaseorders.stats | purchaseorders.reorder
audits.recent | audits.status | audits.stats | audits.discrepancies
suppliers.list | suppliers.details | suppliers.count
warehouses.list | warehouses.details | warehouses.stock
customers.list | customers.details | customers.count
categories.list | brands.list
analytics.overview | analytics.revenue | analytics.customers | analytics.products
analytics.orders | analytics.inventory
navigation.page - "open X", "go to X", "show X page"; parameters MUST include {"page": "..."}
fallback - greetings, unclear or unclassifiable messages

ENTITY EXTRACTION:
- Search terms go under "searchTerm", SKU codes under "sku", order numbers
  (#123, ORD-456) under "orderNumber".
- Include limits, statuses and periods when stated.

Examples:
- "How do I create a purchase order?" -> knowledge.explainer
- "List products" -> products.list
- "What products do we have?" -> products.list
- "If I want to see orders, what should I do?" -> knowledge.explainer
- "Status of order ORD-2024-0045" -> orders.status {"orderNumber": "ORD-2024-0045"}
- "Go to suppliers" -> navigation.page {"page": "suppliers"}

Respond ONLY with valid JSON:
{"intent": "intent.type", "confidence": 0.95, "parameters": {}}

User message: {message}
""".strip()

_TYPO_CORRECTIONS = {
    "prodcuts": "products",
    "pruducts": "products",
    "prducts": "products",
    "itmes": "items",
    "iteams": "items",
    "inventry": "inventory",
    "inventroy": "inventory",
    "inventary": "inventory",
    "shwo": "show",
    "hsow": "show",
    "dispaly": "display",
    "dsiplay": "display",
    "lsit": "list",
    "serach": "search",
    "seach": "search",
    "fnd": "find",
    "oders": "orders",
    "ordes": "orders",
    "ordrs": "orders",
    "pruchase": "purchase",
    "puchase": "purchase",
    "purchse": "purchase",
    "stok": "stock",
    "stck": "stock",
    "reoder": "reorder",
    "reordr": "reorder",
    "supliers": "suppliers",
    "suppiers": "suppliers",
    "suplier": "supplier",
    "vender": "vendor",
    "vendrs": "vendors",
    "werehouse": "warehouse",
    "warehose": "warehouse",
    "warehoue": "warehouse",
    "custmers": "customers",
    "costumers": "customers",
    "customrs": "customers",
    "clents": "clients",
    "waht": "what",
    "whta": "what",
    "hwo": "how",
    "teh": "the",
    "recnt": "recent",
    "rcent": "recent",
    "laest": "latest",
    "dtails": "details",
    "detials": "details",
    "statstics": "statistics",
    "statsitics": "statistics",
}

_SYNONYMS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"\b(items?|goods|stuff)\b"), "products"),
    (re.compile(r"\b(display|show me|get me|fetch)\b"), "show"),
    (re.compile(r"\b(clients?)\b"), "customers"),
    (re.compile(r"\b(vendors?)\b"), "suppliers"),
    (re.compile(r"\b(running low|almost out|getting low)\b"), "low stock"),
    (re.compile(r"\b(what do i have|what have i got)\b"), "list products"),
    (re.compile(r"\b(latest|newest) orders?\b"), "recent orders"),
    (re.compile(r"\b(metrics?|stats|statistics)\b"), "analytics"),
)

_PROCEDURAL = re.compile(
    r"\bhow (?:do|should|can|to)\b|\bwhat should i\b|\bsteps? to\b|\bprocess (?:to|for)\b|\bif i want to\b"
)

_QUICK_MATCHES: tuple[tuple[re.Pattern[str], Intent, dict[str, Any]], ...] = (
    (
        re.compile(
            r"(company|business|organization) (name|info|detail|profile)"
            r"|what is my company|who am i|my company"
        ),
        Intent.KNOWLEDGE_EXPLAINER,
        {"topic": "company"},
    ),
    (
        re.compile(r"(list|show|get) (all )?(products|inventory)|what products do|my products"),
        Intent.PRODUCTS_LIST,
        {},
    ),
    (re.compile(r"low stock|need to reorder"), Intent.INVENTORY_LOWSTOCK, {}),
    (re.compile(r"(recent|latest) orders?|show orders|my orders"), Intent.ORDERS_RECENT, {}),
)

_FUZZY_KEYWORDS = (
    "products",
    "inventory",
    "orders",
    "suppliers",
    "customers",
    "warehouses",
    "audits",
    "analytics",
    "stock",
    "reorder",
    "categories",
    "brands",
)


class IntentClassifier(Protocol):
    async def classify(self, message: str) -> ClassificationResult:
        """Classify a trimmed, non-empty message."""


class _ClassifierPayload(BaseModel):
    intent: str
    confidence: float = 0.5
    parameters: Any = None


def preprocess_message(message: str) -> str:
    """Lowercase, fix common typos word by word, then normalise synonyms."""
    words = message.lower().strip().split()
    corrected = []
    for word in words:
        core = word.strip(",.?!:;")
        fixed = _TYPO_CORRECTIONS.get(core)
        corrected.append(word.replace(core, fixed) if fixed else word)
    processed = " ".join(corrected)
    for pattern, replacement in _SYNONYMS:
        processed = pattern.sub(replacement, processed)
    return processed


def is_procedural(processed: str) -> bool:
    return bool(_PROCEDURAL.search(processed))


def quick_match(processed: str) -> ClassificationResult | None:
    """Classify common phrasings locally.

    Procedural questions never quick-match an action intent ("how do I list
    products" is a knowledge question), but company questions always match.
    """
    procedural = is_procedural(processed)
    for pattern, intent, parameters in _QUICK_MATCHES:
        if procedural and intent is not Intent.KNOWLEDGE_EXPLAINER:
            continue
        if pattern.search(processed):
            return ClassificationResult(
                intent=intent.value, confidence=0.95, parameters=dict(parameters)
            )
    return None


def levenshtein(a: str, b: str) -> int:
    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def fuzzy_keyword(processed: str, threshold: float = 0.7) -> str | None:
    """Return the first domain keyword at least `threshold` similar to a word."""
    for word in processed.split():
        word = word.strip(",.?!:;")
        if len(word) < 3:
            continue
        for keyword in _FUZZY_KEYWORDS:
            distance = levenshtein(word, keyword)
            if 1 - distance / max(len(word), len(keyword)) >= threshold:
                return keyword
    return None


def parse_classification(raw_output: str) -> ClassificationResult:
    """Parse provider output into a validated classification.

    Raises:
        ClassificationError: when the output is not JSON of the expected shape.
    """
    cleaned = _strip_llm_fences(raw_output)
    try:
        payload = _ClassifierPayload.model_validate(json.loads(cleaned))
    except (json.JSONDecodeError, ValidationError, TypeError) as exc:
        raise ClassificationError(f"Malformed classification output: {exc}") from exc

    if payload.intent not in INTENT_VALUES:
        return ClassificationResult(intent=FALLBACK_INTENT, confidence=0.5, parameters={})
    confidence = min(1.0, max(0.0, payload.confidence))
    parameters = payload.parameters if isinstance(payload.parameters, dict) else {}
    return ClassificationResult(
        intent=payload.intent, confidence=confidence, parameters=parameters
    )


class LLMIntentClassifier:
    """Classifies with a chat model, after local quick matches."""

    def __init__(self, *, llm: Any, timeout_seconds: float | None = None) -> None:
        self.llm = llm
        self.timeout_seconds = timeout_seconds

    async def classify(self, message: str) -> ClassificationResult:
        processed = preprocess_message(message)
        quick = quick_match(processed)
        if quick is not None:
            logger.debug(f"Quick match: {quick.intent}")
            return quick

        hint = fuzzy_keyword(processed)
        if hint:
            logger.debug(f"Fuzzy keyword hint: {hint}")

        prompt = INTENT_CLASSIFICATION_PROMPT.replace("{message}", processed)
        try:
            response = await asyncio.wait_for(
                self.llm.ainvoke([HumanMessage(content=prompt)]),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise ClassificationError("Intent classification timed out") from exc
        except Exception as exc:
            raise ClassificationError(f"Intent classification failed: {exc}") from exc

        return parse_classification(content_text(response))


async def classify_with_fallback(
    classifier: IntentClassifier, message: str
) -> ClassificationOutcome:
    """Classify `message`, degrading to the low-confidence fallback intent on error."""
    try:
        return ClassificationOutcome.classified(await classifier.classify(message))
    except ClassificationError as exc:
        logger.warning(f"Classification degraded: {exc}")
        return ClassificationOutcome.degraded(str(exc))
    except Exception as exc:
        logger.error(f"Classifier raised unexpectedly: {exc}", exc_info=True)
        return ClassificationOutcome.degraded(f"{exc.__class__.__name__}: {exc}")


def content_text(response: Any) -> str:
    content = getattr(response, "content", response)
    if isinstance(content, list):
        parts = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                parts.append(str(item["text"]))
            else:
                parts.append(str(item))
        return "".join(parts)
    return str(content)


def _strip_llm_fences(raw_output: str) -> str:
    cleaned = raw_output.strip()
    fence_match = re.search(r"```(?:json)?\s*\n?(.*?)```", cleaned, re.DOTALL)
    if fence_match:
        return fence_match.group(1).strip()
    return cleaned
