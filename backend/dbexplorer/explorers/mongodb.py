from typing import Any, Callable

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from dbexplorer.config import settings
from dbexplorer.db.mongodb import create_mongo_client
from dbexplorer.explorers.base import Explorer, infer_fields, to_jsonable
from dbexplorer.middleware.error_handler import (
    BackendConnectionError,
    ExplorationError,
    InvalidURLError,
)
from dbexplorer.models.schema import (
    BackendKind,
    FlatPayload,
    SchemaDescription,
    TableDescription,
)


class MongoExplorer(Explorer):
    """Collections of the URI's default database, with fields inferred from one
    sample document each. There is no declared schema to read."""

    kind = BackendKind.MONGODB

    def __init__(
        self,
        client_factory: Callable[[str], AsyncIOMotorClient] = create_mongo_client,
        default_database: str | None = None,
    ):
        self._client_factory = client_factory
        self._default_database = default_database or settings.mongodb_default_database

    async def explore(self, connection_string: str, api_key: str | None = None) -> SchemaDescription:
        client = self._connect(connection_string)
        try:
            await self._ping(client)
            db = client.get_default_database(default=self._default_database)
            try:
                names = await db.list_collection_names()
            except Exception as e:
                raise ExplorationError(self.kind.value, e) from e

            collections = []
            for name in names:
                collections.append(await self._describe_collection(db, name))

            return SchemaDescription(
                backend_kind=self.kind,
                payload=FlatPayload(database=db.name, tables=collections),
            )
        finally:
            client.close()

    async def check_connection(self, connection_string: str, api_key: str | None = None) -> None:
        client = self._connect(connection_string)
        try:
            await self._ping(client)
        finally:
            client.close()

    def _connect(self, connection_string: str) -> AsyncIOMotorClient:
        # pymongo validates the URI eagerly but only dials on first command
        try:
            return self._client_factory(connection_string)
        except Exception as e:
            raise InvalidURLError(self.kind.value, e) from e

    async def _ping(self, client: AsyncIOMotorClient) -> None:
        try:
            await client.admin.command("ping")
        except Exception as e:
            raise BackendConnectionError(self.kind.value, e) from e

    async def _describe_collection(self, db: AsyncIOMotorDatabase, name: str) -> TableDescription:
        target = f"{db.name}.{name}"
        collection = db[name]

        count = await self._step("document_count", target, lambda: collection.count_documents({}))
        sample = await self._step("sample_document", target, lambda: collection.find_one())

        document: dict[str, Any] | None = sample.or_default(None)
        return TableDescription(
            name=name,
            row_count=count.or_default(0),
            columns=infer_fields(document),
            sample_rows=[to_jsonable(document)] if document else [],
        )
