from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from dbexplorer.middleware.error_handler import (
    BackendConnectionError,
    ConnectionNotFoundError,
    TableNotFoundError,
    UnsupportedBackendError,
)
from dbexplorer.models.schema import (
    BackendKind,
    FlatPayload,
    NamespacedPayload,
    SchemaDescription,
    SchemaGroup,
    TableDescription,
)
from dbexplorer.services import exploration_service

PG_EXPLORATION = SchemaDescription(
    backend_kind=BackendKind.POSTGRESQL,
    payload=NamespacedPayload(
        schemas=[
            SchemaGroup(name="public", tables=[TableDescription(name="users", row_count=3)]),
            SchemaGroup(name="audit", tables=[TableDescription(name="events")]),
        ]
    ),
)


def _fake_explorer(exploration=PG_EXPLORATION, error=None):
    explorer = MagicMock()
    explorer.explore = AsyncMock(return_value=exploration, side_effect=error)
    explorer.check_connection = AsyncMock(side_effect=error)
    return explorer


def _patched(kind, explorer):
    return patch.dict(exploration_service.EXPLORERS, {kind: lambda: explorer})


class TestGetExplorer:
    def test_every_detectable_kind_is_registered(self):
        for kind in BackendKind:
            if kind is BackendKind.UNKNOWN:
                continue
            assert exploration_service.get_explorer(kind).kind == kind

    def test_unknown_is_unsupported(self):
        with pytest.raises(UnsupportedBackendError, match="Unsupported database type: unknown"):
            exploration_service.get_explorer(BackendKind.UNKNOWN)


class TestExplore:
    @pytest.mark.asyncio
    async def test_dispatches_on_detected_kind(self):
        explorer = _fake_explorer()
        with _patched(BackendKind.POSTGRESQL, explorer):
            kind, exploration = await exploration_service.explore("postgresql://localhost/app", "k")

        assert kind == BackendKind.POSTGRESQL
        assert exploration is PG_EXPLORATION
        explorer.explore.assert_awaited_once_with("postgresql://localhost/app", "k")

    @pytest.mark.asyncio
    async def test_unknown_source(self):
        with pytest.raises(UnsupportedBackendError):
            await exploration_service.explore("sqlite:///tmp/x.db")

    @pytest.mark.asyncio
    async def test_check_connection(self):
        explorer = _fake_explorer()
        with _patched(BackendKind.MYSQL, explorer):
            kind = await exploration_service.check_connection("mysql://root@localhost/shop")

        assert kind == BackendKind.MYSQL
        explorer.check_connection.assert_awaited_once()
        explorer.explore.assert_not_awaited()


class TestOpenSession:
    @pytest.mark.asyncio
    async def test_session_holds_exploration(self, session_store):
        with _patched(BackendKind.POSTGRESQL, _fake_explorer()):
            session_id, kind = await exploration_service.open_session(
                session_store, "postgresql://localhost/app"
            )

        context = session_store.get(session_id)
        assert kind == BackendKind.POSTGRESQL
        assert context.backend_kind == BackendKind.POSTGRESQL
        assert context.exploration == PG_EXPLORATION
        assert context.extra_config == {}

    @pytest.mark.asyncio
    async def test_api_key_goes_to_extra_config(self, session_store):
        exploration = SchemaDescription(backend_kind=BackendKind.SUPABASE, payload=FlatPayload(project_id="abc"))
        with _patched(BackendKind.SUPABASE, _fake_explorer(exploration)):
            session_id, _ = await exploration_service.open_session(
                session_store, "https://abc.supabase.co", "anon-key"
            )

        assert session_store.get(session_id).extra_config == {"api_key": "anon-key"}

    @pytest.mark.asyncio
    async def test_failed_exploration_creates_no_session(self, session_store):
        error = BackendConnectionError("postgresql", "refused")
        with _patched(BackendKind.POSTGRESQL, _fake_explorer(error=error)):
            with pytest.raises(BackendConnectionError):
                await exploration_service.open_session(session_store, "postgresql://localhost/app")

        assert session_store.list() == []

    @pytest.mark.asyncio
    async def test_open_saved_connection(self, session_store, registry):
        connection_id = registry.add("Prod", "postgresql://localhost/app")
        explorer = _fake_explorer()

        with _patched(BackendKind.POSTGRESQL, explorer):
            session_id, kind = await exploration_service.open_saved_connection(
                session_store, registry, connection_id
            )

        assert kind == BackendKind.POSTGRESQL
        assert session_store.exists(session_id)
        explorer.explore.assert_awaited_once_with("postgresql://localhost/app", None)

    @pytest.mark.asyncio
    async def test_open_missing_saved_connection(self, session_store, registry):
        with pytest.raises(ConnectionNotFoundError):
            await exploration_service.open_saved_connection(session_store, registry, "conn_missing")


class TestFindTable:
    def test_searches_all_schemas(self):
        assert exploration_service.find_table(PG_EXPLORATION, "events").name == "events"
        assert exploration_service.find_table(PG_EXPLORATION, "users").row_count == 3

    def test_missing_table(self):
        with pytest.raises(TableNotFoundError, match="Table orders not found"):
            exploration_service.find_table(PG_EXPLORATION, "orders")


def test_describe_session_hides_secrets(session_store):
    session_id = session_store.create(
        "host=db password=hunter2", BackendKind.POSTGRESQL, PG_EXPLORATION, {"api_key": "secret-key"}
    )

    view = exploration_service.describe_session(session_store.get(session_id))

    assert view["connection_string"] == "host=db password=***"
    assert view["configured"] == ["api_key"]
    assert "secret-key" not in str(view)
    assert "hunter2" not in str(view)
