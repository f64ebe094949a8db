import logging
from typing import Any, Callable

from dbexplorer.explorers.base import Explorer
from dbexplorer.explorers.firestore import FirestoreExplorer
from dbexplorer.explorers.mongodb import MongoExplorer
from dbexplorer.explorers.mysql import MySQLExplorer
from dbexplorer.explorers.postgres import PostgresExplorer
from dbexplorer.explorers.rest import RestExplorer
from dbexplorer.explorers.supabase import SupabaseExplorer
from dbexplorer.middleware.error_handler import (
    ConnectionNotFoundError,
    TableNotFoundError,
    UnsupportedBackendError,
)
from dbexplorer.models.schema import BackendKind, SchemaDescription, TableDescription
from dbexplorer.models.session import SessionContext
from dbexplorer.repositories.connection_registry import (
    ConnectionRegistry,
    mask_connection_string,
)
from dbexplorer.repositories.session_store import SessionStore
from dbexplorer.services.detector import detect

logger = logging.getLogger(__name__)

EXPLORERS: dict[BackendKind, Callable[[], Explorer]] = {
    BackendKind.POSTGRESQL: PostgresExplorer,
    BackendKind.MYSQL: MySQLExplorer,
    BackendKind.MONGODB: MongoExplorer,
    BackendKind.FIREBASE: FirestoreExplorer,
    BackendKind.SUPABASE: SupabaseExplorer,
    BackendKind.REST_API: RestExplorer,
}


def get_explorer(kind: BackendKind) -> Explorer:
    factory = EXPLORERS.get(kind)
    if factory is None:
        raise UnsupportedBackendError(kind.value)
    return factory()


async def explore(
    connection_string: str, api_key: str | None = None
) -> tuple[BackendKind, SchemaDescription]:
    kind = detect(connection_string)
    explorer = get_explorer(kind)
    exploration = await explorer.explore(connection_string, api_key)
    logger.info("Explored %s source", kind.value)
    return kind, exploration


async def check_connection(connection_string: str, api_key: str | None = None) -> BackendKind:
    kind = detect(connection_string)
    await get_explorer(kind).check_connection(connection_string, api_key)
    return kind


async def open_session(
    store: SessionStore, connection_string: str, api_key: str | None = None
) -> tuple[str, BackendKind]:
    """Explore the source, then register the result under a new session id."""
    kind, exploration = await explore(connection_string, api_key)
    extra_config = {"api_key": api_key} if api_key else {}
    session_id = store.create(connection_string, kind, exploration, extra_config)
    return session_id, kind


async def open_saved_connection(
    store: SessionStore, registry: ConnectionRegistry, connection_id: str
) -> tuple[str, BackendKind]:
    conn = registry.get(connection_id)
    if conn is None:
        raise ConnectionNotFoundError(connection_id)
    return await open_session(store, conn.connection_string)


def find_table(exploration: SchemaDescription, table_name: str) -> TableDescription:
    for table in exploration.iter_tables():
        if table.name == table_name:
            return table
    raise TableNotFoundError(table_name)


def describe_session(context: SessionContext) -> dict[str, Any]:
    """Public view of a session: secrets masked or reduced to key names."""
    return {
        "session_id": context.session_id,
        "backend_kind": context.backend_kind,
        "connection_string": mask_connection_string(context.connection_string),
        "configured": sorted(context.extra_config),
        "created_at": context.created_at,
        "last_accessed": context.last_accessed,
        "exploration": context.exploration,
    }
