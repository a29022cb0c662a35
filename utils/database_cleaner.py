"""Helpers to remove expired conversation history from the SQLite store."""

import asyncio
import logging
import time

from utils.database_init import AsyncDatabaseInitializer

LOGGER = logging.getLogger(__name__)


class DatabaseCleaner:
    """Delete history records not updated within the retention window.

    Session cookies expire after a day, so records older than that can no
    longer be reached by any client.
    """

    def __init__(
        self,
        db_initializer: AsyncDatabaseInitializer,
        namespace: str,
        retention_seconds: int = 86_400,
    ) -> None:
        """
        Args:
            db_initializer: Shared database initializer/connection provider.
            namespace: Key namespace whose records are pruned.
            retention_seconds: Age threshold in seconds; records older than this are removed.
        """
        self._db = db_initializer
        self.namespace = namespace
        self.retention_seconds = retention_seconds

    async def prune_expired_history(self) -> int:
        """Delete records older than the retention window and return count removed."""
        cutoff = int(time.time()) - self.retention_seconds
        async with self._db.connection() as conn:
            await conn.execute(
                "DELETE FROM KV_STORE WHERE namespace = ? AND updated_at < ?",
                (self.namespace, cutoff),
            )
            await conn.commit()
            cur = await conn.execute("SELECT changes()")
            deleted = await cur.fetchone()
            return int(deleted[0]) if deleted and deleted[0] is not None else 0

    async def run_periodic_cleanup(self, interval_seconds: int = 3_600) -> None:
        """
        Repeatedly prune expired records at the given interval until cancelled.

        Args:
            interval_seconds: Seconds to sleep between cleanup runs.
        """
        while True:
            try:
                removed = await self.prune_expired_history()
                if removed:
                    LOGGER.info("Pruned %s expired history records", removed)
                await asyncio.sleep(interval_seconds)
            except asyncio.CancelledError:
                break
            except Exception:
                LOGGER.exception("History cleanup failed; retrying next interval")
                await asyncio.sleep(interval_seconds)
