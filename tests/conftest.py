"""
Shared pytest configuration and fakes.

This file ensures the project root is on sys.path so that `import main`,
`import services` and friends work consistently in all tests.
"""

import sys
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Sequence

import pytest

# Ensure project root is importable for test modules.
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from models.chat_models import ChatMessage  # noqa: E402


class FakeHistoryStore:
    """
    In-memory replacement for HistoryDAL that records every call.
    """

    def __init__(self) -> None:
        self.records: Dict[str, List[ChatMessage]] = {}
        self.calls: List[tuple] = []
        self.fail_on_save = False

    async def load(self, session_id: str) -> List[ChatMessage]:
        self.calls.append(("load", session_id))
        return list(self.records.get(session_id, []))

    async def save(self, session_id: str, history: Sequence[ChatMessage]) -> None:
        self.calls.append(("save", session_id))
        if self.fail_on_save:
            raise RuntimeError("store unavailable")
        self.records[session_id] = list(history)

    async def delete(self, session_id: str) -> bool:
        self.calls.append(("delete", session_id))
        return self.records.pop(session_id, None) is not None

    def call_names(self) -> List[str]:
        return [name for name, _ in self.calls]


def make_chunk(content: Optional[str]) -> Any:
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=content))])


class FakeChunkStream:
    """Async iterator over scripted chunks, optionally failing part-way."""

    def __init__(self, fragments: Sequence[Optional[str]], fail_after: Optional[int] = None) -> None:
        self._chunks = [make_chunk(f) for f in fragments]
        self._fail_after = fail_after
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for idx, chunk in enumerate(self._chunks):
            if self._fail_after is not None and idx >= self._fail_after:
                raise RuntimeError("provider stream dropped")
            yield chunk
        if self._fail_after is not None and self._fail_after >= len(self._chunks):
            raise RuntimeError("provider stream dropped")

    async def close(self) -> None:
        self.closed = True


class FakeCompletions:
    def __init__(self) -> None:
        self.requests: List[Dict[str, Any]] = []
        self.fragments: Sequence[Optional[str]] = ["Hello", "!"]
        self.fail_after: Optional[int] = None
        self.error: Optional[Exception] = None
        self.streams: List[FakeChunkStream] = []

    async def create(self, **kwargs: Any) -> FakeChunkStream:
        self.requests.append(kwargs)
        if self.error is not None:
            raise self.error
        stream = FakeChunkStream(self.fragments, fail_after=self.fail_after)
        self.streams.append(stream)
        return stream


class FakeOpenAIClient:
    """
    Minimal AsyncOpenAI stand-in exposing `chat.completions.create`.
    """

    def __init__(self) -> None:
        self.completions = FakeCompletions()
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def history_store() -> FakeHistoryStore:
    return FakeHistoryStore()


@pytest.fixture
def openai_client() -> FakeOpenAIClient:
    return FakeOpenAIClient()


@pytest.fixture
def db_dir(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_DIR", str(tmp_path))
    return tmp_path
