"""Async Data Access Layer for conversation history.

History records live in the KV_STORE table managed by
`utils.database_init.AsyncDatabaseInitializer`. Each record holds the full
ordered message list for one session as a JSON array, scoped to a fixed
namespace shared by all sessions.
"""

from __future__ import annotations

import json
import time
from typing import Any, List, Optional, Sequence

from models.chat_models import ChatMessage
from utils.database_init import AsyncDatabaseInitializer

DEFAULT_NAMESPACE = "chat-history"


class HistoryDAL:
    """Read, overwrite, and delete per-session conversation history.

    The constructor accepts an `AsyncDatabaseInitializer` (or any object
    exposing an async `connection()` context manager that yields an
    `aiosqlite.Connection`).

    No locking is done between concurrent requests for the same session;
    the last `save` wins.
    """

    def __init__(self, db_initializer: AsyncDatabaseInitializer, namespace: str = DEFAULT_NAMESPACE) -> None:
        self._db = db_initializer
        self.namespace = namespace

    async def load(self, session_id: str) -> List[ChatMessage]:
        """Return the stored history for `session_id`, or [] if none exists.

        Raises:
            ValueError: If the stored record is not a JSON list of messages.
        """
        data = await self._get_json(session_id, default=[])
        if not isinstance(data, list):
            raise ValueError(f"History record for {session_id} is not a list")
        return [ChatMessage.from_dict(item) for item in data]

    async def save(self, session_id: str, history: Sequence[ChatMessage]) -> None:
        """Overwrite the full history record for `session_id`."""
        await self._set_json(session_id, [msg.to_dict() for msg in history])

    async def delete(self, session_id: str) -> bool:
        """Delete the record for `session_id`. Returns True if a row was deleted."""
        async with self._db.connection() as conn:
            await conn.execute(
                "DELETE FROM KV_STORE WHERE namespace = ? AND key = ?",
                (self.namespace, session_id),
            )
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            changed = await cur.fetchone()
            return bool(changed and changed[0] > 0)

    async def list_sessions(self, limit: int = 100, offset: int = 0) -> List[str]:
        """List session ids with stored history, most recently updated first."""
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "SELECT key FROM KV_STORE WHERE namespace = ? ORDER BY updated_at DESC LIMIT ? OFFSET ?",
                (self.namespace, limit, offset),
            )
            rows = await cur.fetchall()
            return [r[0] for r in rows]

    async def _get_json(self, key: str, default: Any = None) -> Any:
        async with self._db.connection() as conn:
            cur = await conn.execute(
                "SELECT value FROM KV_STORE WHERE namespace = ? AND key = ?",
                (self.namespace, key),
            )
            row = await cur.fetchone()
        if row is None:
            return default
        return json.loads(row[0])

    async def _set_json(self, key: str, value: Any, updated_at: Optional[int] = None) -> None:
        updated_at = updated_at or int(time.time())
        async with self._db.connection() as conn:
            await conn.execute(
                """
                INSERT INTO KV_STORE (namespace, key, value, updated_at) VALUES (?, ?, ?, ?)
                ON CONFLICT(namespace, key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (self.namespace, key, json.dumps(value), updated_at),
            )
            await conn.commit()
