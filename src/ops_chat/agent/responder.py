"""Grounded answer generation delivered as an ordered event sequence."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, Sequence
from typing import Any

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from ops_chat.agent.classifier import content_text
from ops_chat.config import DEFAULT_SYSTEM_PROMPT
from ops_chat.obs.logging import get_logger
from ops_chat.types import ChatMessage, DocumentChunk

logger = get_logger(__name__)

ANSWER_TEMPLATE = """
You are a professional AI assistant for inventory management. Provide clear, well-formatted responses.

CONTEXT:
{context}

QUESTION: {question}

Provide a clear, structured response based on the available data. Use proper formatting and be specific when referencing information.
""".strip()

EMPTY_ANSWER_REPLY = (
    "I found related documents but couldn't put together an answer. "
    "Please try rephrasing your question."
)

_ROLE_MESSAGES: dict[str, type[BaseMessage]] = {
    "user": HumanMessage,
    "assistant": AIMessage,
    "system": SystemMessage,
}


def build_messages(
    question: str,
    context: str,
    history: Sequence[ChatMessage] | None = None,
    *,
    system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    history_limit: int = 10,
    template: str = ANSWER_TEMPLATE,
) -> list[BaseMessage]:
    """Assemble the provider input for one grounded answer.

    Order: system prompt, the most recent `history_limit` history turns tagged
    by role, then the filled answer template as the final human message.
    """
    messages: list[BaseMessage] = [SystemMessage(content=system_prompt)]
    recent = list(history or [])[-history_limit:] if history_limit > 0 else []
    for turn in recent:
        messages.append(_ROLE_MESSAGES[turn.role](content=turn.content))
    prompt = template.replace("{context}", context).replace("{question}", question)
    messages.append(HumanMessage(content=prompt))
    return messages


async def stream_answer(
    *,
    llm: Any | None,
    messages: list[BaseMessage],
    sources: list[DocumentChunk],
    intent: str,
    streaming: bool = True,
    timeout_seconds: float | None = None,
) -> AsyncGenerator[dict[str, Any], None]:
    """Yield `{sources, intent}`, cumulative `{answer, done: False}` events, then
    one `{answer, done: True, intent}`.

    Without a chat model the answer is built from the sources themselves.
    Provider errors are logged and re-raised, which ends the event sequence.
    """
    yield {"sources": [chunk.to_payload() for chunk in sources], "intent": intent}

    answer = ""
    if llm is None:
        for line in extractive_lines(sources):
            answer = f"{answer}\n{line}" if answer else line
            yield {"answer": answer, "done": False}
    elif not streaming:
        try:
            response = await asyncio.wait_for(llm.ainvoke(messages), timeout=timeout_seconds)
        except Exception as exc:
            logger.error(f"Answer generation failed: {exc}")
            raise
        answer = content_text(response)
        if answer:
            yield {"answer": answer, "done": False}
    else:
        stream = llm.astream(messages)
        try:
            async for chunk in stream:
                text = content_text(chunk)
                if not text:
                    continue
                answer += text
                yield {"answer": answer, "done": False}
        except Exception as exc:
            logger.error(f"Answer stream failed after {len(answer)} chars: {exc}")
            raise
        finally:
            await stream.aclose()

    if not answer:
        answer = EMPTY_ANSWER_REPLY
    yield {"answer": answer, "done": True, "intent": intent}


def extractive_lines(sources: list[DocumentChunk], limit: int = 3) -> list[str]:
    """Numbered source excerpts with `[source#chunk]` citations."""
    lines = []
    for idx, chunk in enumerate(sources[:limit], start=1):
        excerpt = " ".join(chunk.content.split())
        if len(excerpt) > 300:
            excerpt = excerpt[:297].rstrip() + "..."
        lines.append(f"{idx}. {excerpt} [{chunk.source}#{chunk.chunk_index}]")
    return lines
