"""Validation helpers that turn raw chat request bodies into typed intents."""

import json

from pydantic import ValidationError

from models.chat_models import (
    ChatIntent,
    ChatPayload,
    InvalidRequest,
    NewConversation,
    SendMessage,
)

MESSAGE_REQUIRED = "Message is required"
INVALID_BODY = "Invalid request body"


def parse_chat_payload(raw: bytes) -> ChatPayload:
    """Decode a request body into a ChatPayload.

    An empty body is treated as an empty JSON object.

    Raises:
        ValueError: If the body is not a JSON object matching the schema.
    """
    text = raw.decode("utf-8").strip() if raw else ""
    try:
        data = json.loads(text or "{}")
    except json.JSONDecodeError as exc:
        raise ValueError(f"Body is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError("Body must be a JSON object.")

    try:
        return ChatPayload.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Body does not match the chat schema: {exc}") from exc


def resolve_intent(payload: ChatPayload) -> ChatIntent:
    """Map a validated payload onto the flow the router should run."""
    if payload.newConversation:
        return NewConversation()
    if not payload.message:
        return InvalidRequest(detail=MESSAGE_REQUIRED)
    return SendMessage(message=payload.message)

