from __future__ import annotations

from enum import Enum
from uuid import UUID  # noqa: TCH003

from pydantic import Field

from app.core.models.base import AppBaseModel


class DeleteTagStrategy(str, Enum):
    """What happens to memos carrying a tag that is deleted globally."""

    REMOVE_FROM_CONTENT = "remove_from_content"
    DELETE_RELATED_MEMOS = "delete_related_memos"


class TagNode(AppBaseModel):
    """A tag aggregated from memo tag caches.

    Built per request and never persisted. `memo_ids` is None when the caller
    did not ask for memo ids.
    """

    path: str
    segments: list[str] = Field(default_factory=list)
    memo_ids: list[UUID] | None = Field(default_factory=list)
    direct_count: int = 0
    total_count: int = 0
    parent_path: str | None = None
    child_paths: list[str] = Field(default_factory=list)


class TagListResult(AppBaseModel):
    tags: list[TagNode] = Field(default_factory=list)
    total_count: int = 0


class RenameTagResult(AppBaseModel):
    affected_memo_ids: list[UUID] = Field(default_factory=list)
    renamed_paths: dict[str, str] = Field(default_factory=dict)


class DeleteTagResult(AppBaseModel):
    affected_memo_ids: list[UUID] = Field(default_factory=list)
    deleted_tag_paths: list[str] = Field(default_factory=list)


class BatchDeleteResult(AppBaseModel):
    """Outcome of deleting memos by tag; for dry runs, what would be deleted."""

    deleted_memo_ids: list[UUID] = Field(default_factory=list)
    deleted_count: int = 0
    affected_tag_paths: list[str] = Field(default_factory=list)
    dry_run: bool = False
