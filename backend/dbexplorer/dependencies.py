from fastapi import Depends, Header, Query, Request

from dbexplorer.middleware.error_handler import SessionNotFoundError, ValidationError
from dbexplorer.models.session import SessionContext
from dbexplorer.repositories.connection_registry import ConnectionRegistry
from dbexplorer.repositories.session_store import SessionStore


def get_session_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_connection_registry(request: Request) -> ConnectionRegistry:
    return request.app.state.connection_registry


def get_session_context(
    x_db_session: str | None = Header(default=None),
    session_id: str | None = Query(default=None, alias="sessionId"),
    store: SessionStore = Depends(get_session_store),
) -> SessionContext:
    """Resolve the session from the X-DB-Session header or the sessionId query parameter."""
    sid = x_db_session or session_id
    if not sid:
        raise ValidationError(
            "Missing session ID",
            detail="Provide sessionId via X-DB-Session header or query param",
        )

    context = store.get(sid)
    if context is None:
        raise SessionNotFoundError(
            sid, detail="Create a new session with POST /api/database/confirm"
        )
    return context
