from fastapi import APIRouter, Depends

from dbexplorer.dependencies import (
    get_connection_registry,
    get_session_context,
    get_session_store,
)
from dbexplorer.middleware.error_handler import (
    ConnectionNotFoundError,
    SessionNotFoundError,
    ValidationError,
)
from dbexplorer.middleware.input_guard import (
    validate_connection_name,
    validate_connection_string,
)
from dbexplorer.models.schema import BackendKind
from dbexplorer.models.session import SessionContext
from dbexplorer.repositories.connection_registry import (
    ConnectionRegistry,
    mask_connection_string,
)
from dbexplorer.repositories.session_store import SessionStore
from dbexplorer.schemas.database import (
    ConnectionCheckResponse,
    ConnectionListResponse,
    ConnectionResponse,
    ConnectionStringRequest,
    ContextListResponse,
    CurrentContextResponse,
    DetectResponse,
    ExploreResponse,
    MessageResponse,
    RestExplorationResponse,
    RestRequest,
    SaveConnectionRequest,
    SaveConnectionResponse,
    SessionCreatedResponse,
    TableResponse,
)
from dbexplorer.services import exploration_service
from dbexplorer.services.detector import detect

router = APIRouter(prefix="/database", tags=["database"])


# --- Detection & testing ---


@router.post("/detect", response_model=DetectResponse)
async def detect_backend(body: ConnectionStringRequest):
    connection_string = validate_connection_string(body.connection_string)
    return {
        "backend_kind": detect(connection_string),
        "connection_string": mask_connection_string(connection_string),
    }


@router.post("/test", response_model=ConnectionCheckResponse)
async def check_connection(body: ConnectionStringRequest):
    """Check that the source is reachable without creating a session."""
    connection_string = validate_connection_string(body.connection_string)
    kind = await exploration_service.check_connection(connection_string, body.api_key)
    return {"backend_kind": kind, "message": f"{kind.value} connection successful"}


# --- Sessions ---


@router.post("/confirm", response_model=SessionCreatedResponse)
async def confirm(
    body: ConnectionStringRequest,
    store: SessionStore = Depends(get_session_store),
):
    """Explore the source and keep the result under a new session."""
    connection_string = validate_connection_string(body.connection_string)
    session_id, kind = await exploration_service.open_session(
        store, connection_string, body.api_key
    )
    return {
        "session_id": session_id,
        "backend_kind": kind,
        "message": "Session created successfully",
    }


@router.get("/context/current", response_model=CurrentContextResponse)
async def current_context(context: SessionContext = Depends(get_session_context)):
    return {
        "session_id": context.session_id,
        "context": exploration_service.describe_session(context),
    }


@router.get("/contexts", response_model=ContextListResponse)
async def list_contexts(store: SessionStore = Depends(get_session_store)):
    contexts = store.list()
    return {"active_contexts": contexts, "count": len(contexts)}


@router.get("/explore/{session_id}", response_model=ExploreResponse)
async def explore_session(session_id: str, store: SessionStore = Depends(get_session_store)):
    context = store.get(session_id)
    if context is None:
        raise SessionNotFoundError(session_id)
    return {
        "session_id": session_id,
        "backend_kind": context.backend_kind,
        "schema_description": context.exploration,
    }


@router.get("/explore/table/{session_id}/{table_name}", response_model=TableResponse)
async def explore_table(
    session_id: str,
    table_name: str,
    store: SessionStore = Depends(get_session_store),
):
    context = store.get(session_id)
    if context is None:
        raise SessionNotFoundError(session_id)
    return {"table": exploration_service.find_table(context.exploration, table_name)}


@router.delete("/context/{session_id}", response_model=MessageResponse)
async def close_context(session_id: str, store: SessionStore = Depends(get_session_store)):
    if not store.delete(session_id):
        raise SessionNotFoundError(session_id)
    return {"message": "Context closed"}


# --- Saved connections ---


@router.post("/save-connection", response_model=SaveConnectionResponse)
async def save_connection(
    body: SaveConnectionRequest,
    registry: ConnectionRegistry = Depends(get_connection_registry),
):
    name = validate_connection_name(body.name)
    connection_string = validate_connection_string(body.connection_string)
    metadata = {**body.metadata, "db_type": body.db_type or detect(connection_string).value}
    connection_id = registry.add(name, connection_string, metadata)
    return {"id": connection_id, "message": "Connection saved"}


@router.get("/list-connections", response_model=ConnectionListResponse)
async def list_connections(registry: ConnectionRegistry = Depends(get_connection_registry)):
    connections = registry.list()
    return {"connections": connections, "count": len(connections)}


@router.get("/get-connection/{connection_id}", response_model=ConnectionResponse)
async def get_connection(
    connection_id: str,
    masked: bool = False,
    registry: ConnectionRegistry = Depends(get_connection_registry),
):
    """Return a saved connection. The raw connection string is included unless masked=true."""
    conn = registry.get_masked(connection_id) if masked else registry.get(connection_id)
    if conn is None:
        raise ConnectionNotFoundError(connection_id)
    return {"connection": conn}


@router.delete("/delete-connection/{connection_id}", response_model=MessageResponse)
async def delete_connection(
    connection_id: str,
    registry: ConnectionRegistry = Depends(get_connection_registry),
):
    if not registry.delete(connection_id):
        raise ConnectionNotFoundError(connection_id)
    return {"message": "Connection deleted"}


@router.post("/use-saved-connection/{connection_id}", response_model=SessionCreatedResponse)
async def use_saved_connection(
    connection_id: str,
    store: SessionStore = Depends(get_session_store),
    registry: ConnectionRegistry = Depends(get_connection_registry),
):
    """Explore a saved connection and open a session for it."""
    session_id, kind = await exploration_service.open_saved_connection(
        store, registry, connection_id
    )
    return {
        "session_id": session_id,
        "backend_kind": kind,
        "message": "Saved connection loaded",
    }


# --- Ad-hoc REST ---


@router.post("/rest", response_model=RestExplorationResponse)
async def explore_rest(body: RestRequest):
    """Describe an arbitrary REST endpoint without creating a session."""
    if not body.url or not body.url.strip():
        raise ValidationError("Missing URL")
    url = validate_connection_string(body.url)
    explorer = exploration_service.get_explorer(BackendKind.REST_API)
    exploration = await explorer.explore(url)
    return {"metadata": exploration}
