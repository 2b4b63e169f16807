from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel as PydanticBaseModel
from pydantic import ConfigDict, Field


def utc_now() -> datetime:
    return datetime.now(UTC)


class AppBaseModel(PydanticBaseModel):
    """Base model for memos, parsed content nodes, tag results and API schemas.

    Unknown fields are rejected, and models validate from attributes so
    repository rows and domain objects convert into API schemas directly.
    """

    model_config = ConfigDict(
        from_attributes=True,
        extra="forbid",
        populate_by_name=True,
    )


class TimestampedModel(AppBaseModel):
    """Model stamped on creation; `updated_at` stays None until the first write."""

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime | None = None
