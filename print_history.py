"""Print conversation history stored in the project's SQLite database.

Lists every session in the history namespace (most recently updated first)
and prints its messages in chronological order. It reuses the same
`DATABASE_DIR` behavior as the application via
`utils.database_init.AsyncDatabaseInitializer`.

Run: set the `DATABASE_DIR` environment variable and run
      `python print_history.py [session_id ...]`.
"""
import asyncio
import os
import sys
from typing import List, Sequence

from dotenv import load_dotenv

from dal.history_dal import DEFAULT_NAMESPACE, HistoryDAL
from models.chat_models import ChatMessage
from utils.database_init import AsyncDatabaseInitializer


def _format_history(session_id: str, history: Sequence[ChatMessage]) -> List[str]:
    """Return printable lines for one session's history.

    Args:
        session_id: Session key the history is stored under.
        history: Messages in chronological order.

    Returns:
        A header line followed by one line per non-empty message.
    """
    lines = [f"Session: {session_id} ({len(history)} messages)"]
    for idx, msg in enumerate(history, start=1):
        text = msg.content.strip()
        if not text:
            continue
        lines.append(f"  {idx}. {msg.role.upper()}: {text!r}")
    return lines


async def main(session_ids: Sequence[str]) -> None:
    """Print the requested sessions, or every stored session when none are given."""
    store = HistoryDAL(AsyncDatabaseInitializer(), namespace=os.getenv("HISTORY_NAMESPACE", DEFAULT_NAMESPACE))
    targets = list(session_ids) or await store.list_sessions(limit=-1)
    for session_id in targets:
        history = await store.load(session_id)
        print("\n".join(_format_history(session_id, history)))
        print()


if __name__ == "__main__":
    load_dotenv()  # Load environment variables from .env file if present
    asyncio.run(main(sys.argv[1:]))
