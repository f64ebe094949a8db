from motor.motor_asyncio import AsyncIOMotorClient

from dbexplorer.config import settings


def create_mongo_client(uri: str) -> AsyncIOMotorClient:
    """Build a client for a single exploration; closed by the caller."""
    return AsyncIOMotorClient(
        uri,
        serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
    )
