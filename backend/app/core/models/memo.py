from __future__ import annotations

from enum import Enum
from uuid import UUID, uuid4

from pydantic import Field, field_validator

from .base import AppBaseModel, TimestampedModel


class MemoVisibility(str, Enum):
    """Who can see a memo."""

    PRIVATE = "private"
    PROTECTED = "protected"
    PUBLIC = "public"


class MemoProperties(AppBaseModel):
    """Structural facts derived from memo content at write time."""

    has_link: bool = False
    has_task_list: bool = False
    has_code: bool = False
    has_incomplete_tasks: bool = False
    references: list[str] = Field(default_factory=list)


class Memo(TimestampedModel):
    """Memo domain model.

    `tags` is the memo's tag cache: canonical tag paths extracted from `content`,
    rebuilt wholesale whenever the content is written. There is no separate tag
    table; tag listings are aggregated from these caches on every read.
    """

    id: UUID = Field(default_factory=uuid4, description="Unique memo identifier")
    creator_id: UUID = Field(default_factory=uuid4, description="Owner of the memo")
    parent_id: UUID | None = Field(default=None, description="Memo this one comments on")

    content: str = Field(default="", description="Raw memo content")
    visibility: MemoVisibility = Field(default=MemoVisibility.PRIVATE)

    tags: list[str] = Field(default_factory=list, description="Cached canonical tag paths")
    properties: MemoProperties = Field(default_factory=MemoProperties)

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        """Keep the cache canonical: leading slash, no blanks, no duplicates."""
        normalized: list[str] = []
        for tag in v:
            if not tag or not tag.strip():
                continue
            path = tag.strip()
            if not path.startswith("/"):
                path = "/" + path
            if path not in normalized:
                normalized.append(path)
        return normalized

    @property
    def is_comment(self) -> bool:
        return self.parent_id is not None

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "id": str(uuid4()),
                    "creator_id": str(uuid4()),
                    "content": "Standup notes #work/project1/backend\n- [ ] review PR #work/project1",
                    "visibility": "private",
                    "tags": ["/work/project1/backend", "/work/project1"],
                    "properties": {
                        "has_link": False,
                        "has_task_list": True,
                        "has_code": False,
                        "has_incomplete_tasks": True,
                        "references": [],
                    },
                }
            ]
        }
    }
