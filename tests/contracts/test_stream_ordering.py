import pytest
from langchain_core.language_models import FakeListChatModel
from langchain_core.messages import AIMessageChunk, HumanMessage

from ops_chat.agent.responder import EMPTY_ANSWER_REPLY, stream_answer
from ops_chat.api.streaming import sse_lines
from ops_chat.types import DocumentChunk

_SOURCES = [
    DocumentChunk(
        id="po-1",
        source="purchasing-guide.md",
        chunk_index=0,
        content="Open Purchase Orders and click New.",
        similarity=0.82,
    )
]


class _FlakyStreamLLM:
    def __init__(self) -> None:
        self.closed = False

    async def astream(self, messages):
        try:
            yield AIMessageChunk(content="Open ")
            yield AIMessageChunk(content="")
            yield AIMessageChunk(content="Purchase Orders")
            raise ConnectionError("stream reset")
        finally:
            self.closed = True


async def _collect(events) -> list[dict]:
    return [event async for event in events]


def _assert_three_phases(events: list[dict], intent: str) -> None:
    assert set(events[0]) == {"sources", "intent"}
    assert events[0]["intent"] == intent
    assert events[-1]["done"] is True
    assert events[-1]["intent"] == intent
    middle = events[1:-1]
    assert all(event["done"] is False for event in middle)
    answers = [event["answer"] for event in events[1:]]
    for current, following in zip(answers, answers[1:]):
        assert following.startswith(current)


@pytest.mark.asyncio
async def test_streamed_events_are_ordered_and_cumulative() -> None:
    llm = FakeListChatModel(responses=["Open Purchase Orders and click New."])

    events = await _collect(
        stream_answer(
            llm=llm,
            messages=[HumanMessage(content="How do I create a purchase order?")],
            sources=_SOURCES,
            intent="knowledge.explainer",
        )
    )

    _assert_three_phases(events, "knowledge.explainer")
    assert events[0]["sources"][0]["source"] == "purchasing-guide.md"
    assert events[0]["sources"][0]["chunkIndex"] == 0
    assert events[-1]["answer"] == "Open Purchase Orders and click New."


@pytest.mark.asyncio
async def test_non_streaming_mode_emits_same_phases() -> None:
    llm = FakeListChatModel(responses=["Use the Purchase Orders page."])

    events = await _collect(
        stream_answer(
            llm=llm,
            messages=[HumanMessage(content="q")],
            sources=_SOURCES,
            intent="fallback",
            streaming=False,
        )
    )

    _assert_three_phases(events, "fallback")
    assert len(events) == 3
    assert events[-1]["answer"] == "Use the Purchase Orders page."


@pytest.mark.asyncio
async def test_without_llm_answer_is_extracted_from_sources() -> None:
    events = await _collect(
        stream_answer(llm=None, messages=[], sources=_SOURCES, intent="knowledge.explainer")
    )

    _assert_three_phases(events, "knowledge.explainer")
    assert "[purchasing-guide.md#0]" in events[-1]["answer"]


@pytest.mark.asyncio
async def test_provider_error_terminates_stream_and_closes_provider() -> None:
    llm = _FlakyStreamLLM()
    received = []

    with pytest.raises(ConnectionError):
        async for event in stream_answer(
            llm=llm, messages=[], sources=_SOURCES, intent="knowledge.explainer"
        ):
            received.append(event)

    assert [event.get("answer") for event in received] == [None, "Open ", "Open Purchase Orders"]
    assert all(event.get("done") is not True for event in received)
    assert llm.closed


@pytest.mark.asyncio
async def test_consumer_disconnect_closes_provider_stream() -> None:
    llm = _FlakyStreamLLM()
    events = stream_answer(llm=llm, messages=[], sources=_SOURCES, intent="knowledge.explainer")

    await events.__anext__()
    await events.__anext__()
    await events.aclose()

    assert llm.closed


class _SilentStreamLLM:
    async def astream(self, messages):
        for _ in ():
            yield AIMessageChunk(content="")


@pytest.mark.asyncio
async def test_empty_model_output_still_ends_with_an_answer() -> None:
    streamed = await _collect(
        stream_answer(llm=_SilentStreamLLM(), messages=[], sources=_SOURCES, intent="knowledge.explainer")
    )
    invoked = await _collect(
        stream_answer(
            llm=FakeListChatModel(responses=[""]),
            messages=[HumanMessage(content="q")],
            sources=_SOURCES,
            intent="fallback",
            streaming=False,
        )
    )

    for events, intent in ((streamed, "knowledge.explainer"), (invoked, "fallback")):
        _assert_three_phases(events, intent)
        assert len(events) == 2
        assert events[-1] == {"answer": EMPTY_ANSWER_REPLY, "done": True, "intent": intent}


@pytest.mark.asyncio
async def test_closing_sse_frames_closes_provider_stream() -> None:
    llm = _FlakyStreamLLM()
    lines = sse_lines(stream_answer(llm=llm, messages=[], sources=_SOURCES, intent="knowledge.explainer"))

    first = await lines.__anext__()
    second = await lines.__anext__()
    await lines.aclose()

    assert first.startswith('data: {"sources"')
    assert second == 'data: {"answer": "Open ", "done": false}\n\n'
    assert llm.closed
