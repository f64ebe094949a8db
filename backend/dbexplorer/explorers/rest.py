from typing import Any, Callable

import httpx

from dbexplorer.config import settings
from dbexplorer.explorers.base import Explorer, infer_fields
from dbexplorer.middleware.error_handler import BackendConnectionError, InvalidURLError
from dbexplorer.models.schema import (
    BackendKind,
    EndpointDescription,
    EndpointsPayload,
    SchemaDescription,
)

_NO_BODY = object()


class RestExplorer(Explorer):
    """One GET against the URL; fields are inferred from the decoded body."""

    kind = BackendKind.REST_API

    def __init__(
        self,
        client_factory: Callable[..., httpx.AsyncClient] = httpx.AsyncClient,
        timeout: float | None = None,
    ):
        self._client_factory = client_factory
        self._timeout = timeout if timeout is not None else settings.rest_timeout_seconds

    async def explore(self, connection_string: str, api_key: str | None = None) -> SchemaDescription:
        url = connection_string
        try:
            async with self._client_factory(timeout=self._timeout) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.InvalidURL as e:
            raise InvalidURLError(self.kind.value, e) from e
        except httpx.HTTPError as e:
            raise BackendConnectionError(self.kind.value, e) from e

        return SchemaDescription(
            backend_kind=self.kind,
            payload=EndpointsPayload(url=url, endpoints=[describe_response(url, _decode(response))]),
        )


def _decode(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return _NO_BODY


def describe_response(url: str, body: Any) -> EndpointDescription:
    if isinstance(body, list):
        sample = body[0] if body else None
        return EndpointDescription(path=url, response_type="array", fields=infer_fields(sample))
    if isinstance(body, dict):
        return EndpointDescription(path=url, response_type="object", fields=infer_fields(body))
    return EndpointDescription(path=url, response_type="other")
