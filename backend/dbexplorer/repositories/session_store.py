import logging
import threading
import time
import uuid
from datetime import datetime, timezone
from typing import Any

from dbexplorer.models.schema import BackendKind, SchemaDescription
from dbexplorer.models.session import SessionContext, SessionSummary

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    return f"session_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


class SessionStore:
    """In-memory exploration results keyed by session id.

    Lives as long as the process; there is no TTL or eviction, callers delete
    sessions they no longer need. Reads hand out copies so the stored
    exploration cannot be modified through a returned context.
    """

    def __init__(self):
        self._sessions: dict[str, SessionContext] = {}
        self._lock = threading.Lock()

    def create(
        self,
        connection_string: str,
        backend_kind: BackendKind,
        exploration: SchemaDescription,
        extra_config: dict[str, Any] | None = None,
    ) -> str:
        session_id = new_session_id()
        now = datetime.now(timezone.utc)
        context = SessionContext(
            session_id=session_id,
            connection_string=connection_string,
            backend_kind=backend_kind,
            exploration=exploration,
            extra_config=dict(extra_config or {}),
            created_at=now,
            last_accessed=now,
        )
        with self._lock:
            self._sessions[session_id] = context
        logger.info("Context created: %s (%s)", session_id, backend_kind.value)
        return session_id

    def get(self, session_id: str) -> SessionContext | None:
        """Return a copy of the context and bump its last-accessed time."""
        with self._lock:
            context = self._sessions.get(session_id)
            if context is None:
                return None
            # never move backwards, even if the wall clock does
            context.last_accessed = max(context.last_accessed, datetime.now(timezone.utc))
            return context.model_copy(deep=True)

    def exists(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def delete(self, session_id: str) -> bool:
        with self._lock:
            removed = self._sessions.pop(session_id, None)
        if removed is None:
            return False
        logger.info("Context closed: %s", session_id)
        return True

    def list(self) -> list[SessionSummary]:
        with self._lock:
            contexts = list(self._sessions.values())
        return [
            SessionSummary(
                session_id=c.session_id,
                backend_kind=c.backend_kind,
                created_at=c.created_at,
                last_accessed=c.last_accessed,
            )
            for c in contexts
        ]
