"""Routes for the streaming chat endpoint."""

from fastapi import FastAPI, Request

from controllers.chat_controller import handle_chat

CHAT_PATHS = ["/api/chat", "/.netlify/functions/chat"]


async def chat_route(request: Request):
	"""Start a new conversation or stream a reply to the posted message."""
	return await handle_chat(request)


def register_chat_routes(app: FastAPI) -> None:
	"""Mount the chat endpoint on every path it is served from.

	Added as plain routes without a method list so any verb, custom ones
	included, reaches the controller and gets its plain-text 405.
	"""
	for path in CHAT_PATHS:
		app.add_route(path, chat_route, include_in_schema=False)
