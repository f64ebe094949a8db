from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncConnection

from dbexplorer.explorers.base import to_jsonable
from dbexplorer.explorers.sql import SqlExplorer
from dbexplorer.middleware.error_handler import InvalidURLError
from dbexplorer.models.schema import (
    BackendKind,
    ColumnDescription,
    FlatPayload,
    SchemaDescription,
    TableDescription,
)

TABLES_SQL = """
    SELECT TABLE_NAME AS table_name FROM INFORMATION_SCHEMA.TABLES
    WHERE TABLE_SCHEMA = :database
    ORDER BY TABLE_NAME
"""

COLUMNS_SQL = """
    SELECT
        COLUMN_NAME AS column_name,
        COLUMN_TYPE AS column_type,
        IS_NULLABLE AS is_nullable,
        COLUMN_KEY AS column_key,
        COLUMN_DEFAULT AS column_default
    FROM INFORMATION_SCHEMA.COLUMNS
    WHERE TABLE_SCHEMA = :database AND TABLE_NAME = :table
    ORDER BY ORDINAL_POSITION
"""

TABLE_INFO_SQL = """
    SELECT ENGINE AS engine, TABLE_COLLATION AS collation
    FROM INFORMATION_SCHEMA.TABLES
    WHERE TABLE_SCHEMA = :database AND TABLE_NAME = :table
"""


def quote_ident(name: str) -> str:
    return "`" + name.replace("`", "``") + "`"


class MySQLExplorer(SqlExplorer):
    """Flat exploration of the single database named in the connection string."""

    kind = BackendKind.MYSQL
    driver_name = "mysql+aiomysql"

    def _normalize(self, connection_string: str) -> str:
        # "user:pw@host/db" is accepted without a scheme
        if "://" not in connection_string:
            return f"mysql://{connection_string}"
        return connection_string

    def engine_url(self, connection_string: str) -> URL:
        url = super().engine_url(connection_string)
        if not url.database:
            raise InvalidURLError(self.kind.value, "connection string must name a database")
        return url

    async def _explore(self, conn: AsyncConnection, url: URL) -> SchemaDescription:
        database = url.database
        table_rows = await self._fetch_all(conn, TABLES_SQL, {"database": database})

        tables = []
        for table_name in [r["table_name"] for r in table_rows]:
            tables.append(await self._describe_table(conn, database, table_name))

        return SchemaDescription(
            backend_kind=self.kind,
            payload=FlatPayload(database=database, tables=tables),
        )

    async def _describe_table(
        self, conn: AsyncConnection, database: str, table: str
    ) -> TableDescription:
        target = f"{database}.{table}"
        params = {"database": database, "table": table}
        quoted = quote_ident(table)

        columns = await self._step(
            "columns", target, lambda: self._fetch_all(conn, COLUMNS_SQL, params)
        )
        row_count = await self._step(
            "row_count", target,
            lambda: self._scalar(conn, f"SELECT COUNT(*) AS count FROM {quoted}"),
        )
        table_info = await self._step(
            "engine", target, lambda: self._fetch_all(conn, TABLE_INFO_SQL, params)
        )
        samples = await self._step(
            "sample_rows", target,
            lambda: self._fetch_all(
                conn, f"SELECT * FROM {quoted} LIMIT :limit", {"limit": self._sample_limit}
            ),
        )

        column_rows = columns.or_default([])
        pk_names = [c["column_name"] for c in column_rows if c["column_key"] == "PRI"]
        info = (table_info.or_default([]) or [{}])[0]

        return TableDescription(
            name=table,
            row_count=int(row_count.or_default(0) or 0),
            engine=info.get("engine"),
            collation=info.get("collation"),
            columns=[
                ColumnDescription(
                    name=c["column_name"],
                    data_type=c["column_type"],
                    nullable=c["is_nullable"] == "YES",
                    default=None if c["column_default"] is None else str(c["column_default"]),
                    key=c["column_key"] or None,
                    is_primary_key=c["column_name"] in pk_names,
                )
                for c in column_rows
            ],
            primary_keys=pk_names,
            sample_rows=[to_jsonable(row) for row in samples.or_default([])],
        )
