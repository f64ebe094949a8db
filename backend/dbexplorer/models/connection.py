from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


class Connection(BaseModel):
    """One entry of the saved-connections file."""
    id: str
    name: str
    connection_string: str  # raw, secrets included
    masked_password: str  # display form of connection_string
    metadata: dict[str, Any] = Field(default_factory=dict)
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ConnectionSummary(BaseModel):
    id: str
    name: str
    masked_password: str
    saved_at: datetime
