"""Cheap local checks that answer common message shapes without provider calls.

Each heuristic is a `Rule`: a named predicate over the raw message plus the
static response it produces. Rules are evaluated in order by `first_match`, so
new checks are added by extending a rule list rather than touching the router.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

GREETING_REPLY = "Hi! How can I help you today?"
NOT_UNDERSTOOD_REPLY = "I'm sorry, I don't understand. Could you rephrase your question?"

GREETINGS = frozenset(
    {"hi", "hello", "hey", "good morning", "good afternoon", "good evening"}
)

_GIBBERISH_PATTERN = re.compile(r"^[a-z]{6,}$", re.IGNORECASE)

_NAVIGATION_PHRASES = ("should i go", "do i go", "can i go", "can i find", "to find")
_WEAK_NAVIGATION_PHRASES = ("should i", "do i")
_PROCEDURAL_QUESTION = re.compile(r"\bhow (?:do|should|can) i\b")


@dataclass(frozen=True, slots=True)
class Rule:
    name: str
    predicate: Callable[[str], bool]
    response: str


def first_match(rules: Sequence[Rule], message: str) -> Rule | None:
    for rule in rules:
        if rule.predicate(message):
            return rule
    return None


def is_greeting(message: str) -> bool:
    """Exact (trimmed, case-insensitive) greeting; "hi there" does not count."""
    return message.strip().lower() in GREETINGS


def is_gibberish(message: str) -> bool:
    text = message.strip()
    if len(text) < 3:
        return True
    return " " not in text and bool(_GIBBERISH_PATTERN.match(text))


FALLBACK_RULES: tuple[Rule, ...] = (
    Rule("greeting", is_greeting, GREETING_REPLY),
    Rule("gibberish", is_gibberish, NOT_UNDERSTOOD_REPLY),
)


def is_navigational_question(message: str) -> bool:
    """True for "where is X" / "where can I find X" style questions.

    Bare "do I" / "should I" only count when they are not part of a procedural
    "how do I ..." question, which belongs to document retrieval.
    """
    lower = message.lower()
    if "where" in lower:
        return True
    if any(phrase in lower for phrase in _NAVIGATION_PHRASES):
        return True
    if _PROCEDURAL_QUESTION.search(lower):
        return False
    return any(phrase in lower for phrase in _WEAK_NAVIGATION_PHRASES)


def _mentions(*keywords: str) -> Callable[[str], bool]:
    def _predicate(message: str) -> bool:
        lower = message.lower()
        return any(keyword in lower for keyword in keywords)

    return _predicate


def _mentions_sales_order(message: str) -> bool:
    lower = message.lower()
    return "order" in lower and "purchase" not in lower


GUIDANCE_RULES: tuple[Rule, ...] = (
    Rule(
        "products",
        _mentions("product", "produt", "item", "catalog"),
        "📦 To manage products, go to **Inventory → Products**. There you can:\n\n"
        "• View all products\n• Add new products\n• Edit product details\n"
        "• Manage product variants\n• Update pricing and stock levels",
    ),
    Rule(
        "orders",
        _mentions_sales_order,
        "📋 To manage orders, go to **Orders**. There you can:\n\n"
        "• View all orders\n• Create new orders\n• Update order status\n"
        "• Track fulfillment\n• Manage customer orders",
    ),
    Rule(
        "purchase_orders",
        _mentions("purchase order", "po "),
        "📦 To manage purchase orders, go to **Purchase Orders**. There you can:\n\n"
        "• View all POs\n• Create new purchase orders\n• Track deliveries\n"
        "• Manage supplier orders\n• Receive goods",
    ),
    Rule(
        "inventory",
        _mentions("inventory", "stock"),
        "📊 To manage inventory, go to **Inventory → Stock**. There you can:\n\n"
        "• View stock levels\n• Check warehouse quantities\n• Transfer stock\n"
        "• Adjust inventory\n• Monitor stock movements",
    ),
    Rule(
        "suppliers",
        _mentions("supplier", "vendor"),
        "🏢 To manage suppliers, go to **Inventory → Suppliers**. There you can:\n\n"
        "• View all suppliers\n• Add new suppliers\n• Update supplier info\n"
        "• Manage contacts\n• Track supplier performance",
    ),
    Rule(
        "warehouses",
        _mentions("warehouse", "location"),
        "🏭 To manage warehouses, go to **Inventory → Warehouses**. There you can:\n\n"
        "• View all locations\n• Add new warehouses\n• Manage warehouse details\n"
        "• Track inventory by location",
    ),
    Rule(
        "audits",
        _mentions("audit"),
        "📊 To manage audits, go to **Audits**. There you can:\n\n"
        "• View audit history\n• Create new audits\n• Track audit progress\n"
        "• Review discrepancies\n• Generate audit reports",
    ),
    Rule(
        "reports",
        _mentions("report", "analytic", "dashboard"),
        "📈 To view reports and analytics:\n\n"
        "• **Dashboard** - Overview and key metrics\n"
        "• **Reports** - Detailed reports and insights",
    ),
)


def navigation_guidance(message: str) -> str | None:
    """Canned "where do I find X" answer, or None when the message is not one."""
    if not is_navigational_question(message):
        return None
    rule = first_match(GUIDANCE_RULES, message)
    return rule.response if rule else None
