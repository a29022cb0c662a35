"""Cookie-backed chat sessions."""

from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from fastapi import Request
from fastapi.responses import Response

from dal.history_dal import HistoryDAL
from models.chat_models import ChatSession

LOGGER = logging.getLogger(__name__)

SESSION_COOKIE = "session_id"
SESSION_MAX_AGE = 24 * 60 * 60


class SessionManager:
	"""Mint, read, and rotate the session id carried in the client cookie."""

	def __init__(self, history: HistoryDAL, *, secure: bool = True) -> None:
		self.history = history
		self.secure = secure

	def current(self, request: Request) -> Optional[str]:
		"""Return the session id sent by the client, if any."""
		return request.cookies.get(SESSION_COOKIE) or None

	def resolve_or_create(self, request: Request) -> ChatSession:
		"""Reuse the cookie's session id or mint a new one that must be set on the response."""
		session_id = self.current(request)
		if session_id:
			session = ChatSession(session_id=session_id)
		else:
			session = self._mint()
			LOGGER.info("Created session %s", session.session_id)
		request.state.chat_session = session
		return session

	async def rotate(self, request: Request) -> ChatSession:
		"""Drop the current session's history and issue a fresh session id.

		The new session is recorded on `request.state` before the delete so
		the cookie still reaches the client when the store call fails.
		"""
		old_session_id = self.current(request)
		session = self._mint()
		request.state.chat_session = session
		if old_session_id:
			await self.history.delete(old_session_id)
		LOGGER.info("Rotated session %s -> %s", old_session_id, session.session_id)
		return session

	def apply(self, request: Request, response: Response) -> Response:
		"""Write the session cookie to `response` when this request minted a new id."""
		session: Optional[ChatSession] = getattr(request.state, "chat_session", None)
		if session is not None and session.issued:
			response.set_cookie(
				SESSION_COOKIE,
				session.session_id,
				max_age=SESSION_MAX_AGE,
				expires=SESSION_MAX_AGE,
				path="/",
				secure=self.secure,
				samesite="strict",
			)
		return response

	@staticmethod
	def _mint() -> ChatSession:
		return ChatSession(session_id=str(uuid4()), issued=True)
