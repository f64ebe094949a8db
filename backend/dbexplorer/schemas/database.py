from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from dbexplorer.models.connection import Connection, ConnectionSummary
from dbexplorer.models.schema import BackendKind, SchemaDescription, TableDescription
from dbexplorer.models.session import SessionSummary


class _Request(BaseModel):
    # Accept both camelCase and snake_case field names
    model_config = ConfigDict(populate_by_name=True)


class ConnectionStringRequest(_Request):
    connection_string: str | None = Field(default=None, alias="connectionString")
    api_key: str | None = Field(default=None, alias="apiKey")


class RestRequest(_Request):
    url: str | None = None


class SaveConnectionRequest(_Request):
    name: str | None = None
    connection_string: str | None = Field(default=None, alias="connectionString")
    db_type: str | None = Field(default=None, alias="dbType")
    metadata: dict[str, Any] = Field(default_factory=dict)


class DetectResponse(BaseModel):
    success: bool = True
    backend_kind: BackendKind
    connection_string: str  # masked


class ConnectionCheckResponse(BaseModel):
    success: bool = True
    backend_kind: BackendKind
    message: str


class SessionCreatedResponse(BaseModel):
    success: bool = True
    session_id: str
    backend_kind: BackendKind
    message: str


class SessionView(BaseModel):
    session_id: str
    backend_kind: BackendKind
    connection_string: str  # masked
    configured: list[str]  # names of extra config entries, values withheld
    created_at: datetime
    last_accessed: datetime
    exploration: SchemaDescription


class CurrentContextResponse(BaseModel):
    success: bool = True
    session_id: str
    context: SessionView


class ContextListResponse(BaseModel):
    success: bool = True
    active_contexts: list[SessionSummary]
    count: int


class ExploreResponse(BaseModel):
    success: bool = True
    session_id: str
    backend_kind: BackendKind
    schema_description: SchemaDescription


class TableResponse(BaseModel):
    success: bool = True
    table: TableDescription


class MessageResponse(BaseModel):
    success: bool = True
    message: str


class SaveConnectionResponse(MessageResponse):
    id: str


class ConnectionListResponse(BaseModel):
    success: bool = True
    connections: list[ConnectionSummary]
    count: int


class ConnectionResponse(BaseModel):
    success: bool = True
    connection: Connection


class RestExplorationResponse(BaseModel):
    success: bool = True
    metadata: SchemaDescription
