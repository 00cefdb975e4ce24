"""Deterministic intent classifier used when no completion provider is configured."""

from __future__ import annotations

import re
from typing import Any

from ops_chat.agent.classifier import fuzzy_keyword, is_procedural, preprocess_message, quick_match
from ops_chat.agent.intents import Intent
from ops_chat.obs.logging import get_logger
from ops_chat.types import FALLBACK_INTENT, ClassificationResult

logger = get_logger(__name__)

_NAVIGATE = re.compile(
    r"^(?:please )?(?:go to|open|take me to|navigate to|bring me to)\s+(?:the\s+)?(?P<page>.+?)(?:\s+page)?[.!?]*$"
)
_ORDER_NUMBER = re.compile(r"(#\d+|\bord-[\w-]+|\border\s+\d+)")
_WHERE_QUESTION = re.compile(r"\bwhere\b|\bcan i find\b|\b(?:do|should) i go\b")
_SEARCH = re.compile(r"^(?:search for|search|find|looking for)\s+(?P<term>.+?)[.!?]*$")

# Ordered: the first pattern found in the preprocessed message wins.
_KEYWORD_RULES: tuple[tuple[re.Pattern[str], Intent], ...] = (
    (re.compile(r"purchase orders?|\bpos?\b"), Intent.PURCHASE_ORDERS_LIST),
    (re.compile(r"\breorder"), Intent.PURCHASE_ORDERS_REORDER),
    (re.compile(r"discrepanc"), Intent.AUDITS_DISCREPANCIES),
    (re.compile(r"\baudits?\b"), Intent.AUDITS_RECENT),
    (re.compile(r"movements?"), Intent.INVENTORY_MOVEMENTS),
    (re.compile(r"\balerts?\b"), Intent.INVENTORY_ALERTS),
    (re.compile(r"\b(?:count|how many)\b.*\bproducts\b"), Intent.PRODUCTS_COUNT),
    (re.compile(r"\b(?:count|how many)\b.*\borders\b"), Intent.ORDERS_COUNT),
    (re.compile(r"\b(?:count|how many)\b.*\bcustomers\b"), Intent.CUSTOMERS_COUNT),
    (re.compile(r"\b(?:count|how many)\b.*\bsuppliers\b"), Intent.SUPPLIERS_COUNT),
    (re.compile(r"\borders?\b"), Intent.ORDERS_RECENT),
    (re.compile(r"\bsuppliers?\b"), Intent.SUPPLIERS_LIST),
    (re.compile(r"\bwarehouses?\b"), Intent.WAREHOUSES_LIST),
    (re.compile(r"\bcustomers?\b"), Intent.CUSTOMERS_LIST),
    (re.compile(r"\bcategor(?:y|ies)\b"), Intent.CATEGORIES_LIST),
    (re.compile(r"\bbrands?\b"), Intent.BRANDS_LIST),
    (re.compile(r"\b(?:revenue|sales)\b"), Intent.ANALYTICS_REVENUE),
    (re.compile(r"\b(?:analytics|overview|kpis?)\b"), Intent.ANALYTICS_OVERVIEW),
    (re.compile(r"\b(?:inventory|stock)\b"), Intent.INVENTORY_LOOKUP),
    (re.compile(r"\bproducts?\b"), Intent.PRODUCTS_LIST),
)

_FUZZY_INTENTS = {
    "products": Intent.PRODUCTS_LIST,
    "inventory": Intent.INVENTORY_LOOKUP,
    "orders": Intent.ORDERS_RECENT,
    "suppliers": Intent.SUPPLIERS_LIST,
    "customers": Intent.CUSTOMERS_LIST,
    "warehouses": Intent.WAREHOUSES_LIST,
    "audits": Intent.AUDITS_RECENT,
    "analytics": Intent.ANALYTICS_OVERVIEW,
    "stock": Intent.INVENTORY_LOOKUP,
    "reorder": Intent.PURCHASE_ORDERS_REORDER,
    "categories": Intent.CATEGORIES_LIST,
    "brands": Intent.BRANDS_LIST,
}


class KeywordIntentClassifier:
    """Classifier that answers from local patterns without an LLM dependency.

    Keeps the same contract as `LLMIntentClassifier` and is useful for
    local/offline environments where `OPENAI_API_KEY` is not configured. It
    never raises; anything it cannot place is the fallback intent.
    """

    async def classify(self, message: str) -> ClassificationResult:
        processed = preprocess_message(message)

        quick = quick_match(processed)
        if quick is not None:
            return quick

        if is_procedural(processed) or _WHERE_QUESTION.search(processed):
            return _result(Intent.KNOWLEDGE_EXPLAINER, 0.8)

        navigate = _NAVIGATE.match(processed)
        if navigate:
            return _result(Intent.NAVIGATION_PAGE, 0.85, {"page": navigate.group("page")})

        search = _SEARCH.match(processed)
        if search:
            return _result(Intent.PRODUCTS_SEARCH, 0.75, {"searchTerm": search.group("term")})

        order_number = _ORDER_NUMBER.search(processed)
        if order_number and "order" in processed:
            number = order_number.group(1).replace("order", "").strip().upper()
            return _result(Intent.ORDERS_STATUS, 0.75, {"orderNumber": number})

        for pattern, intent in _KEYWORD_RULES:
            if pattern.search(processed):
                return _result(intent, 0.7)

        keyword = fuzzy_keyword(processed)
        if keyword is not None:
            logger.debug(f"Fuzzy keyword match: {keyword}")
            return _result(_FUZZY_INTENTS[keyword], 0.6)

        return ClassificationResult(intent=FALLBACK_INTENT, confidence=0.3, parameters={})


def _result(intent: Intent, confidence: float, parameters: dict[str, Any] | None = None) -> ClassificationResult:
    return ClassificationResult(intent=intent.value, confidence=confidence, parameters=parameters or {})
