from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TCH003

from pydantic import Field

from app.core.models.base import AppBaseModel
from app.core.tags.paths import is_same_or_descendant

if TYPE_CHECKING:
    from collections.abc import Sequence


class TagFilter(AppBaseModel):
    """Tag membership predicate over a memo's tag cache.

    Exact membership by default; with `include_children` the cache may instead
    hold any path below `path`.
    """

    path: str
    include_children: bool = False

    def matches(self, tags: Sequence[str]) -> bool:
        if self.include_children:
            return any(is_same_or_descendant(self.path, tag) for tag in tags)
        return self.path in tags


class MemoFind(AppBaseModel):
    """Query used by services to select memos from the repository."""

    creator_id: UUID | None = None
    memo_id: UUID | None = None
    tag_filter: TagFilter | None = None
    exclude_comments: bool = True
    limit: int | None = Field(default=None, ge=1)
    offset: int = Field(default=0, ge=0)
