from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncConnection

from dbexplorer.explorers.base import to_jsonable
from dbexplorer.explorers.sql import SqlExplorer
from dbexplorer.models.schema import (
    BackendKind,
    ColumnDescription,
    ForeignKey,
    IndexDescription,
    NamespacedPayload,
    SchemaDescription,
    SchemaGroup,
    TableDescription,
)

SCHEMAS_SQL = """
    SELECT schema_name FROM information_schema.schemata
    WHERE schema_name NOT IN ('pg_catalog', 'information_schema')
    ORDER BY schema_name
"""

TABLES_SQL = """
    SELECT table_name FROM information_schema.tables
    WHERE table_schema = :schema AND table_type = 'BASE TABLE'
    ORDER BY table_name
"""

COLUMNS_SQL = """
    SELECT
        column_name,
        data_type,
        is_nullable,
        column_default,
        character_maximum_length,
        numeric_precision,
        numeric_scale
    FROM information_schema.columns
    WHERE table_schema = :schema AND table_name = :table
    ORDER BY ordinal_position
"""

PRIMARY_KEYS_SQL = """
    SELECT column_name
    FROM information_schema.constraint_column_usage
    WHERE table_schema = :schema AND table_name = :table
    AND constraint_name IN (
        SELECT constraint_name FROM information_schema.table_constraints
        WHERE table_schema = :schema AND table_name = :table
        AND constraint_type = 'PRIMARY KEY'
    )
"""

FOREIGN_KEYS_SQL = """
    SELECT
        kcu.constraint_name,
        kcu.column_name,
        ccu.table_name AS referenced_table,
        ccu.column_name AS referenced_column
    FROM information_schema.key_column_usage kcu
    LEFT JOIN information_schema.constraint_column_usage ccu
        ON kcu.constraint_name = ccu.constraint_name
    JOIN information_schema.table_constraints tc
        ON kcu.constraint_name = tc.constraint_name
    WHERE tc.table_schema = :schema
        AND kcu.table_name = :table
        AND tc.constraint_type = 'FOREIGN KEY'
"""

INDEXES_SQL = """
    SELECT indexname, indexdef
    FROM pg_indexes
    WHERE schemaname = :schema AND tablename = :table
"""


def quote_ident(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class PostgresExplorer(SqlExplorer):
    """Namespaced exploration: schemas -> base tables -> per-table metadata."""

    kind = BackendKind.POSTGRESQL
    driver_name = "postgresql+asyncpg"

    def engine_url(self, connection_string: str) -> URL:
        url = super().engine_url(connection_string)
        # asyncpg takes "ssl" where libpq URLs say "sslmode"
        sslmode = url.query.get("sslmode")
        if sslmode:
            url = url.difference_update_query(["sslmode"]).update_query_dict({"ssl": sslmode})
        return url

    async def _explore(self, conn: AsyncConnection, url: URL) -> SchemaDescription:
        schema_rows = await self._fetch_all(conn, SCHEMAS_SQL)

        groups = []
        for schema_name in [r["schema_name"] for r in schema_rows]:
            table_rows = await self._fetch_all(conn, TABLES_SQL, {"schema": schema_name})
            tables = []
            for table_name in [r["table_name"] for r in table_rows]:
                tables.append(await self._describe_table(conn, schema_name, table_name))
            groups.append(SchemaGroup(name=schema_name, tables=tables))

        return SchemaDescription(
            backend_kind=self.kind,
            payload=NamespacedPayload(schemas=groups),
        )

    async def _describe_table(
        self, conn: AsyncConnection, schema: str, table: str
    ) -> TableDescription:
        target = f"{schema}.{table}"
        params = {"schema": schema, "table": table}
        qualified = f"{quote_ident(schema)}.{quote_ident(table)}"

        columns = await self._step(
            "columns", target, lambda: self._fetch_all(conn, COLUMNS_SQL, params)
        )
        row_count = await self._step(
            "row_count", target,
            lambda: self._scalar(conn, f"SELECT COUNT(*) AS count FROM {qualified}"),
        )
        primary_keys = await self._step(
            "primary_keys", target, lambda: self._fetch_all(conn, PRIMARY_KEYS_SQL, params)
        )
        foreign_keys = await self._step(
            "foreign_keys", target, lambda: self._fetch_all(conn, FOREIGN_KEYS_SQL, params)
        )
        indexes = await self._step(
            "indexes", target, lambda: self._fetch_all(conn, INDEXES_SQL, params)
        )
        samples = await self._step(
            "sample_rows", target,
            lambda: self._fetch_all(
                conn, f"SELECT * FROM {qualified} LIMIT :limit", {"limit": self._sample_limit}
            ),
        )

        pk_names = []
        for r in primary_keys.or_default([]):
            if r["column_name"] not in pk_names:
                pk_names.append(r["column_name"])

        return TableDescription(
            name=table,
            row_count=int(row_count.or_default(0) or 0),
            columns=[
                ColumnDescription(
                    name=c["column_name"],
                    data_type=c["data_type"],
                    nullable=c["is_nullable"] == "YES",
                    default=c["column_default"],
                    max_length=c["character_maximum_length"],
                    precision=c["numeric_precision"],
                    scale=c["numeric_scale"],
                    is_primary_key=c["column_name"] in pk_names,
                )
                for c in columns.or_default([])
            ],
            primary_keys=pk_names,
            foreign_keys=[
                ForeignKey(
                    name=fk["constraint_name"],
                    column=fk["column_name"],
                    referenced_table=fk["referenced_table"],
                    referenced_column=fk["referenced_column"],
                )
                for fk in foreign_keys.or_default([])
            ],
            indexes=[
                IndexDescription(name=idx["indexname"], definition=idx["indexdef"])
                for idx in indexes.or_default([])
            ],
            sample_rows=[to_jsonable(row) for row in samples.or_default([])],
        )
