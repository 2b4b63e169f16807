from __future__ import annotations

from datetime import datetime  # noqa: TCH003
from uuid import UUID  # noqa: TCH003

from pydantic import Field, model_validator

from app.core.models.base import AppBaseModel
from app.core.models.memo import MemoProperties, MemoVisibility  # noqa: TCH001


class MemoCreate(AppBaseModel):
    content: str = Field(min_length=1, description="Memo content; #tags are extracted from it")
    visibility: MemoVisibility = Field(default=MemoVisibility.PRIVATE)
    parent_id: UUID | None = Field(default=None, description="Memo to comment on")

    @model_validator(mode="after")
    def validate_content(self) -> MemoCreate:
        if not self.content.strip():
            raise ValueError("content must be non-empty")
        self.content = self.content.strip()
        return self


class MemoUpdate(AppBaseModel):
    content: str | None = None
    visibility: MemoVisibility | None = None

    @model_validator(mode="after")
    def normalize_optional_strings(self) -> MemoUpdate:
        if self.content is not None and self.content.strip() == "":
            raise ValueError("content must be non-empty when provided")
        return self


class MemoRead(AppBaseModel):
    id: UUID
    creator_id: UUID
    parent_id: UUID | None
    content: str
    visibility: MemoVisibility
    tags: list[str]
    properties: MemoProperties
    created_at: datetime
    updated_at: datetime | None
