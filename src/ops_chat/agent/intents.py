"""Intent taxonomy and the intent-to-strategy dispatch table."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType


class Intent(str, Enum):
    KNOWLEDGE_EXPLAINER = "knowledge.explainer"

    INVENTORY_LOOKUP = "inventory.lookup"
    INVENTORY_LOWSTOCK = "inventory.lowstock"
    INVENTORY_MOVEMENTS = "inventory.movements"
    INVENTORY_ALERTS = "inventory.alerts"

    PRODUCTS_LIST = "products.list"
    PRODUCTS_SEARCH = "products.search"
    PRODUCTS_DETAILS = "products.details"
    PRODUCTS_COUNT = "products.count"

    ORDERS_STATUS = "orders.status"
    ORDERS_RECENT = "orders.recent"
    ORDERS_DETAILS = "orders.details"
    ORDERS_COUNT = "orders.count"

    PURCHASE_ORDERS_LIST = "purchaseorders.list"
    PURCHASE_ORDERS_STATUS = "purchaseorders.status"
    PURCHASE_ORDERS_STATS = "purchaseorders.stats"
    PURCHASE_ORDERS_REORDER = "purchaseorders.reorder"

    AUDITS_RECENT = "audits.recent"
    AUDITS_STATUS = "audits.status"
    AUDITS_STATS = "audits.stats"
    AUDITS_DISCREPANCIES = "audits.discrepancies"

    SUPPLIERS_LIST = "suppliers.list"
    SUPPLIERS_DETAILS = "suppliers.details"
    SUPPLIERS_COUNT = "suppliers.count"

    WAREHOUSES_LIST = "warehouses.list"
    WAREHOUSES_DETAILS = "warehouses.details"
    WAREHOUSES_STOCK = "warehouses.stock"

    CUSTOMERS_LIST = "customers.list"
    CUSTOMERS_DETAILS = "customers.details"
    CUSTOMERS_COUNT = "customers.count"

    CATEGORIES_LIST = "categories.list"
    BRANDS_LIST = "brands.list"

    ANALYTICS_OVERVIEW = "analytics.overview"
    ANALYTICS_REVENUE = "analytics.revenue"
    ANALYTICS_CUSTOMERS = "analytics.customers"
    ANALYTICS_PRODUCTS = "analytics.products"
    ANALYTICS_ORDERS = "analytics.orders"
    ANALYTICS_INVENTORY = "analytics.inventory"

    NAVIGATION_PAGE = "navigation.page"
    FALLBACK = "fallback"


class Strategy(str, Enum):
    NAVIGATION = "navigation"
    LIVE_DATA = "live_data"
    KNOWLEDGE = "knowledge"
    FALLBACK = "fallback"


_LIVE_DATA = (
    Intent.INVENTORY_LOOKUP,
    Intent.INVENTORY_LOWSTOCK,
    Intent.INVENTORY_MOVEMENTS,
    Intent.INVENTORY_ALERTS,
    Intent.PRODUCTS_LIST,
    Intent.PRODUCTS_SEARCH,
    Intent.PRODUCTS_DETAILS,
    Intent.PRODUCTS_COUNT,
    Intent.ORDERS_STATUS,
    Intent.ORDERS_RECENT,
    Intent.ORDERS_DETAILS,
    Intent.ORDERS_COUNT,
    Intent.PURCHASE_ORDERS_LIST,
    Intent.PURCHASE_ORDERS_STATUS,
    Intent.PURCHASE_ORDERS_STATS,
    Intent.PURCHASE_ORDERS_REORDER,
    Intent.AUDITS_RECENT,
    Intent.AUDITS_STATUS,
    Intent.AUDITS_STATS,
    Intent.AUDITS_DISCREPANCIES,
    Intent.SUPPLIERS_LIST,
    Intent.SUPPLIERS_DETAILS,
    Intent.SUPPLIERS_COUNT,
    Intent.WAREHOUSES_LIST,
    Intent.WAREHOUSES_DETAILS,
    Intent.WAREHOUSES_STOCK,
    Intent.CUSTOMERS_LIST,
    Intent.CUSTOMERS_DETAILS,
    Intent.CUSTOMERS_COUNT,
    Intent.CATEGORIES_LIST,
    Intent.BRANDS_LIST,
    Intent.ANALYTICS_OVERVIEW,
    Intent.ANALYTICS_REVENUE,
    Intent.ANALYTICS_CUSTOMERS,
    Intent.ANALYTICS_PRODUCTS,
    Intent.ANALYTICS_ORDERS,
    Intent.ANALYTICS_INVENTORY,
)

# Single source of truth for dispatch. Intents missing here fall back.
INTENT_STRATEGIES: Mapping[Intent, Strategy] = MappingProxyType(
    {
        Intent.NAVIGATION_PAGE: Strategy.NAVIGATION,
        Intent.KNOWLEDGE_EXPLAINER: Strategy.KNOWLEDGE,
        **{intent: Strategy.LIVE_DATA for intent in _LIVE_DATA},
        Intent.FALLBACK: Strategy.FALLBACK,
    }
)

LIVE_DATA_INTENTS: frozenset[Intent] = frozenset(
    intent for intent, strategy in INTENT_STRATEGIES.items() if strategy is Strategy.LIVE_DATA
)

INTENT_VALUES: frozenset[str] = frozenset(intent.value for intent in Intent)


def parse_intent(value: str) -> Intent | None:
    """Return the taxonomy member for `value`, or None when it is not declared."""
    try:
        return Intent(value)
    except ValueError:
        return None


def strategy_for(intent: str | Intent) -> Strategy:
    """Resolve the handling strategy; undeclared intents fall back."""
    member = intent if isinstance(intent, Intent) else parse_intent(intent)
    if member is None:
        return Strategy.FALLBACK
    return INTENT_STRATEGIES.get(member, Strategy.FALLBACK)
