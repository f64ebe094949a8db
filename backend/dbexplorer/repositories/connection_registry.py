import json
import logging
import os
import re
import tempfile
import threading
import time
import uuid
from pathlib import Path
from typing import Any

from dbexplorer.models.connection import Connection, ConnectionSummary

logger = logging.getLogger(__name__)

# Only an explicit password=/password: segment is redacted. Secrets embedded
# any other way (URL userinfo, tokens) pass through unmasked.
_PASSWORD_RE = re.compile(r"password[=:]([^&\s]+)", re.IGNORECASE)


def mask_connection_string(connection_string: str) -> str:
    return _PASSWORD_RE.sub("password=***", connection_string, count=1)


class ConnectionRegistry:
    """Saved connection strings in one JSON file keyed by connection id.

    Every operation reads the whole file; every mutation rewrites it through a
    temp file and an atomic rename. Meant for a handful of entries.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def add(self, name: str, connection_string: str, metadata: dict[str, Any] | None = None) -> str:
        with self._lock:
            connections = self._load()
            connection_id = f"conn_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"
            connections[connection_id] = Connection(
                id=connection_id,
                name=name,
                connection_string=connection_string,
                masked_password=mask_connection_string(connection_string),
                metadata=metadata or {},
            )
            self._store(connections)
        logger.info("Connection saved: %s (%s)", connection_id, name)
        return connection_id

    def get(self, connection_id: str) -> Connection | None:
        """Return the connection with its raw connection string."""
        with self._lock:
            return self._load().get(connection_id)

    def get_masked(self, connection_id: str) -> Connection | None:
        conn = self.get(connection_id)
        if conn is None:
            return None
        return conn.model_copy(update={"connection_string": conn.masked_password})

    def list(self) -> list[ConnectionSummary]:
        with self._lock:
            connections = self._load()
        return [
            ConnectionSummary(
                id=c.id,
                name=c.name,
                masked_password=c.masked_password,
                saved_at=c.saved_at,
            )
            for c in connections.values()
        ]

    def delete(self, connection_id: str) -> bool:
        with self._lock:
            connections = self._load()
            if connection_id not in connections:
                return False
            del connections[connection_id]
            self._store(connections)
        logger.info("Connection deleted: %s", connection_id)
        return True

    def _load(self) -> dict[str, Connection]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            return {key: Connection.model_validate(value) for key, value in raw.items()}
        except (OSError, ValueError, AttributeError) as e:
            logger.warning("Could not load connections from %s: %s", self.path, e)
            return {}

    def _store(self, connections: dict[str, Connection]) -> None:
        payload = {key: c.model_dump(mode="json") for key, c in connections.items()}
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".connections-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            os.unlink(tmp_name)
            raise
