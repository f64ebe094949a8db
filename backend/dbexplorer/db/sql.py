from sqlalchemy.engine import URL
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import NullPool

from dbexplorer.config import settings

# Driver-specific name of the connect timeout argument.
_TIMEOUT_ARG = {
    "asyncpg": "timeout",
    "aiomysql": "connect_timeout",
}


def create_explorer_engine(url: URL) -> AsyncEngine:
    """Build a one-shot engine for a single exploration; disposed by the caller."""
    connect_args = {}
    timeout_arg = _TIMEOUT_ARG.get(url.get_driver_name())
    if timeout_arg:
        connect_args[timeout_arg] = settings.sql_connect_timeout_seconds
    return create_async_engine(url, echo=False, poolclass=NullPool, connect_args=connect_args)
