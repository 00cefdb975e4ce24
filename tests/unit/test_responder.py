from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from ops_chat.agent.responder import build_messages, extractive_lines
from ops_chat.types import ChatMessage, DocumentChunk


def test_build_messages_orders_system_history_then_prompt() -> None:
    history = [ChatMessage(role="user", content=f"q{idx}") for idx in range(12)]
    history.append(ChatMessage(role="assistant", content="a12"))

    messages = build_messages(
        "How do I receive goods?",
        "SOURCE 1 (po.md#0):\nScan the delivery note.",
        history,
        system_prompt="Answer from context.",
    )

    assert isinstance(messages[0], SystemMessage)
    assert messages[0].content == "Answer from context."
    assert len(messages) == 1 + 10 + 1
    assert messages[1].content == "q3"
    assert isinstance(messages[10], AIMessage)
    assert isinstance(messages[-1], HumanMessage)
    assert "Scan the delivery note." in messages[-1].content
    assert "QUESTION: How do I receive goods?" in messages[-1].content


def test_history_limit_zero_drops_history() -> None:
    messages = build_messages(
        "q", "ctx", [ChatMessage(role="system", content="be brief")], history_limit=0
    )
    assert len(messages) == 2


def test_extractive_lines_cite_sources() -> None:
    chunks = [
        DocumentChunk(id="a", source="po.md", chunk_index=2, content="Open   Purchase\nOrders."),
    ]
    assert extractive_lines(chunks) == ["1. Open Purchase Orders. [po.md#2]"]
