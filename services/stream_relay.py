"""Relay streamed completion fragments to the client and persist the finished turn."""

from __future__ import annotations

import logging
from typing import AsyncIterator, List, Sequence

from fastapi.responses import StreamingResponse

from dal.history_dal import HistoryDAL
from models.chat_models import ChatMessage

LOGGER = logging.getLogger(__name__)

STREAM_MEDIA_TYPE = "text/event-stream"
STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


class StreamRelay:
    """Forward fragments as raw bytes while accumulating the assistant reply.

    History is saved once, after the fragment stream is exhausted. Any
    failure before that point (provider error, client disconnect, store
    error) leaves the previously persisted history untouched.
    """

    def __init__(self, history: HistoryDAL) -> None:
        self.history = history

    async def relay(
        self,
        fragments: AsyncIterator[str],
        history: Sequence[ChatMessage],
        session_id: str,
    ) -> AsyncIterator[bytes]:
        """Yield each non-empty fragment as UTF-8, then save the completed exchange.

        Args:
            fragments: Lazy fragment sequence from the completion gateway.
            history: Conversation including the user message for this turn.
            session_id: Storage key for the conversation.
        """
        parts: List[str] = []
        try:
            async for fragment in fragments:
                if not fragment:
                    continue
                parts.append(fragment)
                yield fragment.encode("utf-8")

            reply = ChatMessage(role="assistant", content="".join(parts))
            updated = [*history, reply]
            await self.history.save(session_id, updated)
        except Exception:
            # Propagate: the response must be aborted, not ended cleanly.
            LOGGER.exception("Streaming relay failed for session %s; history not saved", session_id)
            raise

        LOGGER.info("Saved session %s with %s messages", session_id, len(updated))

    def response(
        self,
        fragments: AsyncIterator[str],
        history: Sequence[ChatMessage],
        session_id: str,
    ) -> StreamingResponse:
        """Wrap `relay` in a streaming HTTP response."""
        return StreamingResponse(
            self.relay(fragments, history, session_id),
            media_type=STREAM_MEDIA_TYPE,
            headers=dict(STREAM_HEADERS),
        )
