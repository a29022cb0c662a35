import pytest
from fastapi.responses import Response
from starlette.requests import Request

from models.chat_models import ChatMessage
from services.session_manager import SESSION_COOKIE, SESSION_MAX_AGE, SessionManager


def _request(cookie: str = "") -> Request:
    headers = [(b"cookie", cookie.encode("latin-1"))] if cookie else []
    return Request({"type": "http", "method": "POST", "path": "/api/chat", "headers": headers})


def test_resolve_reuses_cookie_session(history_store):
    manager = SessionManager(history_store)
    request = _request(f"{SESSION_COOKIE}=abc")

    session = manager.resolve_or_create(request)

    assert session.session_id == "abc"
    assert not session.issued
    response = manager.apply(request, Response())
    assert "set-cookie" not in response.headers


def test_resolve_mints_unique_sessions(history_store):
    manager = SessionManager(history_store)

    first = manager.resolve_or_create(_request())
    second = manager.resolve_or_create(_request())

    assert first.issued and second.issued
    assert first.session_id != second.session_id


def test_apply_sets_cookie_attributes(history_store):
    manager = SessionManager(history_store, secure=True)
    request = _request()
    session = manager.resolve_or_create(request)

    header = manager.apply(request, Response()).headers["set-cookie"]

    assert header.startswith(f"{SESSION_COOKIE}={session.session_id};")
    assert f"Max-Age={SESSION_MAX_AGE}" in header
    assert "Path=/" in header
    assert "Secure" in header
    assert "samesite=strict" in header.lower()


def test_insecure_cookie_for_local_development(history_store):
    manager = SessionManager(history_store, secure=False)
    request = _request()
    manager.resolve_or_create(request)

    header = manager.apply(request, Response()).headers["set-cookie"]
    assert "Secure" not in header


def test_apply_without_resolved_session_is_noop(history_store):
    manager = SessionManager(history_store)
    response = manager.apply(_request(), Response())
    assert "set-cookie" not in response.headers


@pytest.mark.asyncio
async def test_rotate_deletes_old_history_and_issues_new_id(history_store):
    history_store.records["old"] = [ChatMessage(role="user", content="Hi")]
    manager = SessionManager(history_store)

    session = await manager.rotate(_request(f"{SESSION_COOKIE}=old"))

    assert session.issued
    assert session.session_id != "old"
    assert "old" not in history_store.records


@pytest.mark.asyncio
async def test_rotate_keeps_new_cookie_when_delete_fails(history_store):
    async def failing_delete(session_id):
        raise RuntimeError("store unavailable")

    history_store.delete = failing_delete
    manager = SessionManager(history_store)
    request = _request(f"{SESSION_COOKIE}=old")

    with pytest.raises(RuntimeError):
        await manager.rotate(request)

    header = manager.apply(request, Response()).headers["set-cookie"]
    assert header.startswith(f"{SESSION_COOKIE}=")
    assert f"{SESSION_COOKIE}=old" not in header
