from ops_chat.agent.heuristics import (
    FALLBACK_RULES,
    GREETING_REPLY,
    NOT_UNDERSTOOD_REPLY,
    first_match,
    is_gibberish,
    is_greeting,
    is_navigational_question,
    navigation_guidance,
)


def test_greeting_requires_exact_trimmed_match() -> None:
    assert is_greeting("  Hello  ")
    assert is_greeting("Good Morning")
    assert not is_greeting("hello there")
    assert not is_greeting("hi?")


def test_gibberish_rule() -> None:
    assert is_gibberish("asdfgh")
    assert is_gibberish("ok")
    assert is_gibberish("  a ")
    assert not is_gibberish("hi?")
    assert not is_gibberish("list products")
    assert not is_gibberish("abc12345")


def test_fallback_rules_are_evaluated_in_order() -> None:
    assert first_match(FALLBACK_RULES, "hey").response == GREETING_REPLY
    assert first_match(FALLBACK_RULES, "qwertyuiop").response == NOT_UNDERSTOOD_REPLY
    assert first_match(FALLBACK_RULES, "tell me about shipping") is None


def test_procedural_how_do_i_is_not_navigational() -> None:
    assert not is_navigational_question("How do I create a purchase order?")
    assert is_navigational_question("Where are my suppliers?")
    assert is_navigational_question("Which page should I open for stock?")
    assert is_navigational_question("how do I go to the audits page")


def test_navigation_guidance_picks_first_matching_domain() -> None:
    products = navigation_guidance("Where can I find my items?")
    assert products is not None and "Inventory → Products" in products

    orders = navigation_guidance("where do I see customer orders")
    assert orders is not None and "**Orders**" in orders

    purchase_orders = navigation_guidance("where are purchase orders kept")
    assert purchase_orders is not None and "**Purchase Orders**" in purchase_orders


def test_navigation_guidance_needs_a_domain_keyword() -> None:
    assert navigation_guidance("where is the nearest cafe") is None
    assert navigation_guidance("list suppliers") is None
