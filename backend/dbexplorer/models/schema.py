from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator


class BackendKind(str, Enum):
    POSTGRESQL = "postgresql"  # relational, namespaced
    MYSQL = "mysql"  # relational, flat
    MONGODB = "mongodb"
    FIREBASE = "firebase"
    SUPABASE = "supabase"
    REST_API = "rest_api"
    UNKNOWN = "unknown"


class ConnectionStatus(str, Enum):
    CONNECTED = "connected"
    FAILED = "failed"


class InferredType(str, Enum):
    """Runtime type of a sampled value. Best-effort only; documents and REST
    payloads carry no declared schema."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    ARRAY = "array"
    OBJECT = "object"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ColumnDescription(_Frozen):
    name: str
    data_type: str  # native type, or an InferredType value for documents/REST
    nullable: bool = True
    default: str | None = None
    max_length: int | None = None
    precision: int | None = None
    scale: int | None = None
    key: str | None = None  # MySQL COLUMN_KEY: PRI, UNI, MUL
    example: Any = None
    is_primary_key: bool = False


class ForeignKey(_Frozen):
    name: str | None = None
    column: str
    referenced_table: str | None = None
    referenced_column: str | None = None


class IndexDescription(_Frozen):
    name: str
    definition: str


class TableDescription(_Frozen):
    name: str
    columns: list[ColumnDescription] = Field(default_factory=list)
    row_count: int = 0
    primary_keys: list[str] = Field(default_factory=list)
    foreign_keys: list[ForeignKey] = Field(default_factory=list)
    indexes: list[IndexDescription] = Field(default_factory=list)
    sample_rows: list[dict[str, Any]] = Field(default_factory=list)
    engine: str | None = None
    collation: str | None = None
    path: str | None = None  # Firestore document path
    note: str | None = None

    @model_validator(mode="after")
    def _primary_key_flags_match(self):
        pk = set(self.primary_keys)
        for col in self.columns:
            if col.is_primary_key != (col.name in pk):
                raise ValueError(
                    f"Column '{col.name}' primary key flag disagrees with primary_keys"
                )
        return self


def _require_unique_names(tables: list[TableDescription], where: str) -> None:
    seen = set()
    for table in tables:
        if table.name in seen:
            raise ValueError(f"Duplicate table name '{table.name}' in {where}")
        seen.add(table.name)


class SchemaGroup(_Frozen):
    name: str
    tables: list[TableDescription] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_tables(self):
        _require_unique_names(self.tables, f"schema '{self.name}'")
        return self

    @computed_field
    @property
    def total_tables(self) -> int:
        return len(self.tables)


class EndpointDescription(_Frozen):
    path: str
    method: str = "GET"
    response_type: Literal["array", "object", "other"]
    fields: list[ColumnDescription] = Field(default_factory=list)


class NamespacedPayload(_Frozen):
    layout: Literal["namespaced"] = "namespaced"
    schemas: list[SchemaGroup] = Field(default_factory=list)


class FlatPayload(_Frozen):
    layout: Literal["flat"] = "flat"
    database: str | None = None
    project_id: str | None = None
    tables: list[TableDescription] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_tables(self):
        _require_unique_names(self.tables, "table list")
        return self


class EndpointsPayload(_Frozen):
    layout: Literal["endpoints"] = "endpoints"
    url: str
    endpoints: list[EndpointDescription] = Field(default_factory=list)


Payload = Annotated[
    Union[NamespacedPayload, FlatPayload, EndpointsPayload],
    Field(discriminator="layout"),
]


class Statistics(_Frozen):
    total_schemas: int | None = None
    total_tables: int | None = None
    total_collections: int | None = None
    total_endpoints: int | None = None
    total_rows: int | None = None
    total_documents: int | None = None


# Backends whose flat entries are collections rather than tables.
_COLLECTION_BACKENDS = {BackendKind.MONGODB, BackendKind.FIREBASE}


class SchemaDescription(_Frozen):
    backend_kind: BackendKind
    connection_status: ConnectionStatus = ConnectionStatus.CONNECTED
    payload: Payload

    @computed_field
    @property
    def statistics(self) -> Statistics:
        payload = self.payload
        if isinstance(payload, NamespacedPayload):
            return Statistics(
                total_schemas=len(payload.schemas),
                total_tables=sum(len(s.tables) for s in payload.schemas),
            )
        if isinstance(payload, EndpointsPayload):
            return Statistics(total_endpoints=len(payload.endpoints))

        if self.backend_kind == BackendKind.MONGODB:
            return Statistics(
                total_collections=len(payload.tables),
                total_documents=sum(t.row_count for t in payload.tables),
            )
        if self.backend_kind in _COLLECTION_BACKENDS:
            return Statistics(total_collections=len(payload.tables))
        if self.backend_kind == BackendKind.MYSQL:
            return Statistics(
                total_tables=len(payload.tables),
                total_rows=sum(t.row_count for t in payload.tables),
            )
        return Statistics(total_tables=len(payload.tables))

    def iter_tables(self):
        """Yield every table regardless of payload layout."""
        payload = self.payload
        if isinstance(payload, NamespacedPayload):
            for group in payload.schemas:
                yield from group.tables
        elif isinstance(payload, FlatPayload):
            yield from payload.tables
