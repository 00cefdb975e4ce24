from ops_chat.agent.intents import (
    INTENT_STRATEGIES,
    LIVE_DATA_INTENTS,
    Intent,
    Strategy,
    parse_intent,
    strategy_for,
)


def test_every_declared_intent_has_exactly_one_strategy() -> None:
    for intent in Intent:
        assert strategy_for(intent) in set(Strategy)
        assert strategy_for(intent.value) is strategy_for(intent)


def test_strategy_assignment_is_stable() -> None:
    first = {intent: strategy_for(intent) for intent in Intent}
    second = {intent: strategy_for(intent.value) for intent in Intent}
    assert first == second


def test_partition_sizes() -> None:
    assert len(LIVE_DATA_INTENTS) == 37
    assert strategy_for("navigation.page") is Strategy.NAVIGATION
    assert strategy_for("knowledge.explainer") is Strategy.KNOWLEDGE
    assert strategy_for("fallback") is Strategy.FALLBACK
    assert set(INTENT_STRATEGIES) == set(Intent)


def test_unknown_intent_falls_back() -> None:
    assert parse_intent("billing.refund") is None
    assert strategy_for("billing.refund") is Strategy.FALLBACK
    assert strategy_for("") is Strategy.FALLBACK
