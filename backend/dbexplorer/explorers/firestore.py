import logging
import re
from typing import Callable

import httpx

from dbexplorer.explorers.base import Explorer
from dbexplorer.middleware.error_handler import InvalidURLError
from dbexplorer.models.schema import (
    BackendKind,
    FlatPayload,
    SchemaDescription,
    TableDescription,
)

logger = logging.getLogger(__name__)

_PROJECT_RE = re.compile(r"firestore\.googleapis\.com/v1/projects/([^/]+)")
_DOCUMENTS_URL = "https://firestore.googleapis.com/v1/projects/{project_id}/databases/(default)/documents"

PLACEHOLDER_NAME = "Note: Add collection names manually"
PLACEHOLDER_NOTE = "Firebase Firestore API restrictions prevent automatic collection discovery"


def extract_project_id(url: str) -> str | None:
    match = _PROJECT_RE.search(url)
    return match.group(1) if match else None


class FirestoreExplorer(Explorer):
    """Lists documents at the default database root. Firestore usually refuses
    collection discovery, in which case a placeholder entry is returned."""

    kind = BackendKind.FIREBASE

    def __init__(self, client_factory: Callable[..., httpx.AsyncClient] = httpx.AsyncClient):
        self._client_factory = client_factory

    async def explore(self, connection_string: str, api_key: str | None = None) -> SchemaDescription:
        project_id = extract_project_id(connection_string)
        if not project_id:
            raise InvalidURLError(self.kind.value, "Invalid Firebase URL format")

        listing = await self._step(
            "list_collections", project_id, lambda: self._list_documents(project_id, api_key)
        )
        if listing.warning is not None:
            collections = [TableDescription(name=PLACEHOLDER_NAME, note=PLACEHOLDER_NOTE)]
        else:
            collections = listing.value

        return SchemaDescription(
            backend_kind=self.kind,
            payload=FlatPayload(project_id=project_id, tables=collections),
        )

    async def _list_documents(self, project_id: str, api_key: str | None) -> list[TableDescription]:
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        async with self._client_factory() as client:
            response = await client.get(_DOCUMENTS_URL.format(project_id=project_id), headers=headers)
            response.raise_for_status()

        data = response.json()
        documents = data.get("documents", []) if isinstance(data, dict) else []
        # first document wins when several share a final path segment
        collections: dict[str, TableDescription] = {}
        for doc in documents:
            name = doc["name"].rsplit("/", 1)[-1]
            if name not in collections:
                collections[name] = TableDescription(name=name, path=doc["name"])
        return list(collections.values())
