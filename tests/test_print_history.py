import pytest

import print_history
from dal.history_dal import HistoryDAL
from models.chat_models import ChatMessage
from utils.database_init import AsyncDatabaseInitializer


@pytest.mark.asyncio
async def test_namespace_is_read_when_run(db_dir, monkeypatch, capsys):
    monkeypatch.setenv("HISTORY_NAMESPACE", "custom")
    await HistoryDAL(AsyncDatabaseInitializer(), namespace="custom").save(
        "s1", [ChatMessage(role="user", content="Hi"), ChatMessage(role="assistant", content="Hello")]
    )

    await print_history.main([])

    out = capsys.readouterr().out
    assert "Session: s1 (2 messages)" in out
    assert "1. USER: 'Hi'" in out
    assert "2. ASSISTANT: 'Hello'" in out


@pytest.mark.asyncio
async def test_explicit_session_ids(db_dir, capsys):
    await print_history.main(["missing"])
    assert "Session: missing (0 messages)" in capsys.readouterr().out
