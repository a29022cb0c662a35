"""Streaming chat completions built on OpenAI's chat completions API."""

import logging
from typing import Any, AsyncIterator, Sequence

from openai import AsyncOpenAI

from models.chat_models import ChatMessage

DEFAULT_MODEL = "gpt-3.5-turbo"


class CompletionGateway:
    """Send a conversation to OpenAI and expose the reply as text fragments."""

    def __init__(self, client: AsyncOpenAI, model: str = DEFAULT_MODEL) -> None:
        """Initialize the gateway with a shared OpenAI client."""
        if client is None:
            raise ValueError("OpenAI client is required for chat completions.")
        self.client = client
        self.model = model

    async def complete(self, history: Sequence[ChatMessage]) -> AsyncIterator[str]:
        """Open a streaming completion for `history` and return its fragments.

        The request is issued before this coroutine returns, so connection,
        auth, and provider errors raise here instead of producing an empty
        stream. Fragments may be empty strings.
        """
        try:
            stream = await self.client.chat.completions.create(
                model=self.model,
                messages=[msg.to_dict() for msg in history],
                stream=True,
            )
        except Exception as exc:
            logging.error("OpenAI chat completion request failed: %s", exc)
            raise
        return _fragments(stream)


def _delta_text(chunk: Any) -> str:
    """Return the text delta of a chat completion chunk, or ''."""
    choices = getattr(chunk, "choices", None)
    if not choices:
        return ""
    delta = getattr(choices[0], "delta", None)
    return getattr(delta, "content", None) or ""


async def _fragments(stream: Any) -> AsyncIterator[str]:
    try:
        async for chunk in stream:
            yield _delta_text(chunk)
    finally:
        close = getattr(stream, "close", None)
        if close is not None:
            await close()
