"""Chat request routing: new conversations and streamed replies."""

from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from dal.history_dal import HistoryDAL
from models.chat_models import ChatIntent, ChatMessage, InvalidRequest, NewConversation
from services.openai.completion_gateway import CompletionGateway
from services.session_manager import SessionManager
from services.stream_relay import StreamRelay
from utils.request_validation import INVALID_BODY, parse_chat_payload, resolve_intent

LOGGER = logging.getLogger(__name__)


async def handle_chat(request: Request) -> Response:
	"""Validate the request, run the matching flow, and attach the session cookie.

	Only POST is accepted. Failures past validation are logged and answered
	with an opaque 500; the session cookie is still set on that response.
	"""
	if request.method != "POST":
		return PlainTextResponse("Method Not Allowed", status_code=405)

	try:
		raw = await request.body()
	except Exception:
		LOGGER.exception("Failed to read chat request body")
		return JSONResponse({"error": "Internal Server Error"}, status_code=500)

	try:
		payload = parse_chat_payload(raw)
	except ValueError as exc:
		LOGGER.info("Rejected chat request body: %s", exc)
		return PlainTextResponse(INVALID_BODY, status_code=400)

	sessions: SessionManager = request.app.state.session_manager
	try:
		response = await _dispatch(request, sessions, resolve_intent(payload))
	except Exception:
		LOGGER.exception("Chat request failed")
		response = JSONResponse({"error": "Internal Server Error"}, status_code=500)
	return sessions.apply(request, response)


async def _dispatch(request: Request, sessions: SessionManager, intent: ChatIntent) -> Response:
	if isinstance(intent, NewConversation):
		await sessions.rotate(request)
		return JSONResponse({"success": True})

	session = sessions.resolve_or_create(request)
	if isinstance(intent, InvalidRequest):
		return PlainTextResponse(intent.detail, status_code=intent.status_code)
	return await send_message(request, session.session_id, intent.message)


async def send_message(request: Request, session_id: str, message: str) -> Response:
	"""Append the user message to history and stream the model's reply.

	Nothing is written here; the relay saves the full exchange once the
	reply has been streamed completely.
	"""
	store: HistoryDAL = request.app.state.history_store
	gateway: CompletionGateway = request.app.state.completion_gateway

	history = await store.load(session_id)
	updated = [*history, ChatMessage(role="user", content=message)]
	fragments = await gateway.complete(updated)
	return StreamRelay(store).response(fragments, updated, session_id)
