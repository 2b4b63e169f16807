from __future__ import annotations

from pydantic import Field

from app.core.models.base import AppBaseModel


class RenameTagRequest(AppBaseModel):
    old_tag_path: str = Field(description="Tag to rename, e.g. /work/project1")
    new_tag_path: str = Field(description="New path; a leading slash is added when missing")
    move_children: bool = Field(
        default=False,
        description="Accepted for compatibility; selection stays an exact match on old_tag_path",
    )


class BatchDeleteMemosByTagRequest(AppBaseModel):
    tag_path: str
    include_children: bool = False
    dry_run: bool = False


class RenameMemoTagRequest(AppBaseModel):
    old_tag: str
    new_tag: str
