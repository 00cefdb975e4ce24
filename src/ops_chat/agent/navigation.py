"""Static registry of application pages addressable by fuzzy page names."""

from __future__ import annotations

from ops_chat.types import NavigationIntent

NAVIGATION_MAP: dict[str, NavigationIntent] = {
    "dashboard": NavigationIntent("Dashboard", "/dashboard", "Main dashboard with overview and analytics"),
    "home": NavigationIntent("Home", "/dashboard", "Main dashboard home page"),
    "inventory": NavigationIntent("Inventory", "/inventory", "Main inventory management page"),
    "products": NavigationIntent("Products", "/inventory/products", "View and manage products"),
    "stock": NavigationIntent("Stock", "/inventory/stock", "Stock levels and management"),
    "categories": NavigationIntent("Categories", "/inventory/categories", "Product categories management"),
    "suppliers": NavigationIntent("Suppliers", "/inventory/suppliers", "Supplier management"),
    "warehouses": NavigationIntent("Warehouses", "/inventory/warehouses", "Warehouse management"),
    "orders": NavigationIntent("Orders", "/orders", "View and manage orders"),
    "new-order": NavigationIntent("New Order", "/orders/new", "Create a new order"),
    "purchase-orders": NavigationIntent("Purchase Orders", "/purchase-orders", "Manage purchase orders"),
    "new-purchase-order": NavigationIntent(
        "New Purchase Order", "/purchase-orders/new", "Create a new purchase order"
    ),
    "reports": NavigationIntent("Reports", "/reports", "View reports and analytics"),
    "audits": NavigationIntent("Audits", "/audits", "Inventory audits and history"),
    "company-profile": NavigationIntent("Company Profile", "/company-profile", "Company settings and profile"),
    "user-profile": NavigationIntent("User Profile", "/user-profile", "User account settings and profile"),
    "rag-chat": NavigationIntent("RAG Chat", "/rag", "AI-powered chat assistant"),
    "chat": NavigationIntent("Chat", "/rag", "AI-powered chat assistant"),
}


_KEYS_LONGEST_FIRST = sorted(NAVIGATION_MAP, key=len, reverse=True)


def find_navigation_intent(query: str) -> NavigationIntent | None:
    """Resolve a free-text page name to a canonical page.

    Tries an exact key match, then whole keys or page titles contained in the
    query (longest first, so "purchase orders" beats "orders"), then any
    hyphen-separated key part.
    """
    normalized = query.lower().strip()
    if not normalized:
        return None

    direct = NAVIGATION_MAP.get(normalized)
    if direct is not None:
        return direct

    for key in _KEYS_LONGEST_FIRST:
        intent = NAVIGATION_MAP[key]
        if key in normalized or intent.page.lower() in normalized:
            return intent

    for key, intent in NAVIGATION_MAP.items():
        if any(part in normalized for part in key.split("-")):
            return intent
    return None
