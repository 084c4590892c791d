"""Session management models."""

from datetime import datetime

from pydantic import ConfigDict, Field

from mediagate.core.db import MongoModel


class Session(MongoModel):
    """Authenticated browser session.

    Never mutated after creation; renewal creates a new session.
    Indexed on subject_id and expires_at (TTL).
    """

    id: str = Field(alias="_id", serialization_alias="id")  # type: ignore[assignment]
    subject_id: str
    user_agent: str | None = None
    ip_address: str | None = None
    created_at: datetime
    expires_at: datetime

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def is_valid_at(self, moment: datetime) -> bool:
        return moment < self.expires_at
