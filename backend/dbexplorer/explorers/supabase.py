import re
from typing import Callable

import httpx

from dbexplorer.explorers.base import Explorer
from dbexplorer.middleware.error_handler import BackendConnectionError, InvalidURLError
from dbexplorer.models.schema import (
    BackendKind,
    FlatPayload,
    SchemaDescription,
    TableDescription,
)

_PROJECT_RE = re.compile(r"https://([a-z0-9]+)\.supabase\.co")


def extract_project_id(url: str) -> str | None:
    match = _PROJECT_RE.search(url)
    return match.group(1) if match else None


class SupabaseExplorer(Explorer):
    """Reads the REST root of a Supabase project: each top-level key is a table."""

    kind = BackendKind.SUPABASE

    def __init__(self, client_factory: Callable[..., httpx.AsyncClient] = httpx.AsyncClient):
        self._client_factory = client_factory

    async def explore(self, connection_string: str, api_key: str | None = None) -> SchemaDescription:
        project_id = extract_project_id(connection_string)
        if not project_id:
            raise InvalidURLError(self.kind.value, "Invalid Supabase URL format")

        headers = {}
        if api_key:
            headers["apikey"] = api_key
            headers["Authorization"] = f"Bearer {api_key}"

        try:
            async with self._client_factory() as client:
                response = await client.get(f"https://{project_id}.supabase.co/rest/v1/", headers=headers)
                response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise BackendConnectionError(self.kind.value, e) from e

        tables = []
        if isinstance(data, dict):
            tables = [
                TableDescription(name=name, row_count=len(value) if isinstance(value, list) else 0)
                for name, value in data.items()
            ]

        return SchemaDescription(
            backend_kind=self.kind,
            payload=FlatPayload(project_id=project_id, tables=tables),
        )
