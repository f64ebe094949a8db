from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from dbexplorer.models.schema import BackendKind, SchemaDescription


class SessionContext(BaseModel):
    session_id: str
    connection_string: str
    backend_kind: BackendKind
    exploration: SchemaDescription
    extra_config: dict[str, Any] = Field(default_factory=dict)  # e.g. {"api_key": ...}
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_accessed: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SessionSummary(BaseModel):
    session_id: str
    backend_kind: BackendKind
    created_at: datetime
    last_accessed: datetime
