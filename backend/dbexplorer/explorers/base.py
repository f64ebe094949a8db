"""Shared pieces of the exploration protocol.

Every driver connects, lists its tables/collections, then describes each one
through :func:`fetch_step`. A failing step never raises: it yields a
:class:`StepResult` carrying a :class:`MetadataFetchWarning`, and the caller
falls back to an empty default for that single field.
"""

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, NamedTuple

from dbexplorer.models.schema import (
    BackendKind,
    ColumnDescription,
    InferredType,
    SchemaDescription,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MetadataFetchWarning:
    backend_kind: BackendKind
    step: str  # e.g. "row_count", "primary_keys"
    target: str  # e.g. "public.users"
    message: str


class StepResult(NamedTuple):
    value: Any
    warning: MetadataFetchWarning | None

    def or_default(self, default: Any) -> Any:
        return default if self.warning is not None else self.value


async def fetch_step(
    backend_kind: BackendKind,
    step: str,
    target: str,
    fetch: Callable[[], Awaitable[Any]],
) -> StepResult:
    """Run one introspection sub-query, turning any failure into a warning."""
    try:
        return StepResult(await fetch(), None)
    except Exception as e:
        warning = MetadataFetchWarning(
            backend_kind=backend_kind, step=step, target=target, message=str(e)[:300]
        )
        logger.warning(
            "Could not fetch %s for %s (%s): %s",
            step, target, backend_kind.value, warning.message,
        )
        return StepResult(None, warning)


def infer_type(value: Any) -> InferredType:
    if value is None:
        return InferredType.NULL
    # bool before int: bool is a subclass of int
    if isinstance(value, bool):
        return InferredType.BOOLEAN
    if isinstance(value, (int, float)):
        return InferredType.NUMBER
    if isinstance(value, str):
        return InferredType.STRING
    if isinstance(value, (list, tuple)):
        return InferredType.ARRAY
    # dicts, ObjectId, datetime, Decimal128 and anything else decoded by a driver
    return InferredType.OBJECT


def to_jsonable(value: Any) -> Any:
    """Coerce driver values (ObjectId, datetime, Decimal, ...) to plain JSON types."""
    return json.loads(json.dumps(value, default=str))


def infer_fields(record: Any) -> list[ColumnDescription]:
    """Describe the keys of one sample record. Non-dict records have no fields."""
    if not isinstance(record, dict):
        return []
    return [
        ColumnDescription(
            name=str(key),
            data_type=infer_type(value).value,
            example=to_jsonable(value),
        )
        for key, value in record.items()
    ]


class Explorer(ABC):
    kind: BackendKind = BackendKind.UNKNOWN

    @abstractmethod
    async def explore(self, connection_string: str, api_key: str | None = None) -> SchemaDescription:
        """Connect and describe the source. Raises ExplorationError if the
        initial connection step fails."""

    async def check_connection(self, connection_string: str, api_key: str | None = None) -> None:
        """Verify the source is reachable. HTTP backends have no cheaper probe
        than a full (single-request) exploration."""
        await self.explore(connection_string, api_key)

    async def _step(self, step: str, target: str, fetch: Callable[[], Awaitable[Any]]) -> StepResult:
        return await fetch_step(self.kind, step, target, fetch)
