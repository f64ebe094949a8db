from abc import abstractmethod
from typing import Any, Callable

from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from dbexplorer.config import settings
from dbexplorer.db.sql import create_explorer_engine
from dbexplorer.explorers.base import Explorer
from dbexplorer.middleware.error_handler import (
    BackendConnectionError,
    ExplorationError,
    InvalidURLError,
)
from dbexplorer.models.schema import SchemaDescription


class SqlExplorer(Explorer):
    """Base for relational drivers backed by a SQLAlchemy asyncio engine."""

    driver_name: str = ""

    def __init__(
        self,
        engine_factory: Callable[[URL], AsyncEngine] = create_explorer_engine,
        sample_limit: int | None = None,
    ):
        self._engine_factory = engine_factory
        self._sample_limit = sample_limit if sample_limit is not None else settings.sample_row_limit

    def engine_url(self, connection_string: str) -> URL:
        try:
            url = make_url(self._normalize(connection_string))
        except ArgumentError as e:
            raise InvalidURLError(self.kind.value, e) from e
        return url.set(drivername=self.driver_name)

    async def explore(self, connection_string: str, api_key: str | None = None) -> SchemaDescription:
        url = self.engine_url(connection_string)
        return await self._with_connection(url, lambda conn: self._explore(conn, url))

    async def check_connection(self, connection_string: str, api_key: str | None = None) -> None:
        url = self.engine_url(connection_string)
        await self._with_connection(url, lambda conn: self._scalar(conn, "SELECT 1"))

    async def _with_connection(self, url: URL, work):
        engine = self._engine_factory(url)
        try:
            try:
                conn = await engine.connect()
            except Exception as e:
                raise BackendConnectionError(self.kind.value, e) from e

            try:
                # Each statement commits on its own so a failed sub-query
                # does not abort the ones after it.
                conn = await conn.execution_options(isolation_level="AUTOCOMMIT")
                return await work(conn)
            except ExplorationError:
                raise
            except Exception as e:
                raise ExplorationError(self.kind.value, e) from e
            finally:
                await conn.close()
        finally:
            await engine.dispose()

    @abstractmethod
    async def _explore(self, conn: AsyncConnection, url: URL) -> SchemaDescription:
        ...

    def _normalize(self, connection_string: str) -> str:
        return connection_string

    async def _fetch_all(
        self, conn: AsyncConnection, sql: str, params: dict | None = None
    ) -> list[dict[str, Any]]:
        result = await conn.execute(text(sql), params or {})
        return [dict(row) for row in result.mappings().all()]

    async def _scalar(self, conn: AsyncConnection, sql: str, params: dict | None = None) -> Any:
        result = await conn.execute(text(sql), params or {})
        return result.scalar()
