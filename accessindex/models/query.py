"""Filter and pagination parameters for reading entities back out of a store."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_validator

from accessindex.models.entities import EventType


class EntityQuery(BaseModel):
    """Parameters for querying a repository.

    Every filter is optional; unset filters match everything. Results are
    sorted by the entity's timestamp, newest first, then paginated with
    ``first``/``offset``.
    """

    model_config = ConfigDict(frozen=True)

    network: str | None = None
    contract: str | None = None
    account: str | None = None
    role: str | None = None
    event_type: EventType | None = None
    since: datetime | None = None  # inclusive
    until: datetime | None = None  # inclusive
    first: int = Field(default=100, ge=1, le=1000)
    offset: int = Field(default=0, ge=0)

    @field_validator("since", "until")
    @classmethod
    def _assume_utc(cls, v: datetime | None) -> datetime | None:
        # Stored timestamps are always UTC-aware.
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v
