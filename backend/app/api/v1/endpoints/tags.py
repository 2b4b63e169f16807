from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from app.api.v1.errors import to_http_exception
from app.api.v1.schemas.tag import RenameTagRequest  # noqa: TCH001
from app.core.errors import ServiceError
from app.core.schemas.auth import AuthUser  # noqa: TCH001
from app.core.schemas.tag import (
    DeleteTagResult,
    DeleteTagStrategy,
    RenameTagResult,
    TagListResult,
    TagNode,
)
from app.core.services.tag_service import TagService  # noqa: TCH001
from app.dependencies import get_current_user, get_tag_service

router = APIRouter()


@router.get("/", response_model=TagListResult)
async def list_tags(
    path_prefix: str | None = None,
    include_memo_ids: bool = False,
    include_hierarchy: bool = True,
    current_user: AuthUser = Depends(get_current_user),
    service: TagService = Depends(get_tag_service),
):
    """List the user's tags aggregated from their memos, sorted by path."""
    try:
        return await service.list_tags(
            current_user.id,
            path_prefix=path_prefix,
            include_memo_ids=include_memo_ids,
            include_hierarchy=include_hierarchy,
        )
    except ServiceError as err:
        raise to_http_exception(err, operation="list tags") from err


@router.post("/rename", response_model=RenameTagResult)
async def rename_tag(
    payload: RenameTagRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: TagService = Depends(get_tag_service),
):
    """Rename a tag in every memo carrying it exactly."""
    try:
        return await service.rename_tag(
            current_user.id,
            payload.old_tag_path,
            payload.new_tag_path,
            move_children=payload.move_children,
        )
    except ServiceError as err:
        raise to_http_exception(err, operation="rename tag") from err


@router.get("/{tag_path:path}", response_model=TagNode)
async def get_tag(
    tag_path: str,
    include_memo_ids: bool = True,
    current_user: AuthUser = Depends(get_current_user),
    service: TagService = Depends(get_tag_service),
):
    try:
        return await service.get_tag(current_user.id, tag_path, include_memo_ids=include_memo_ids)
    except ServiceError as err:
        raise to_http_exception(err, operation="get tag") from err


@router.delete("/{tag_path:path}", response_model=DeleteTagResult)
async def delete_tag(
    tag_path: str,
    strategy: str = Query(
        default=DeleteTagStrategy.REMOVE_FROM_CONTENT.value,
        description="remove_from_content or delete_related_memos",
    ),
    current_user: AuthUser = Depends(get_current_user),
    service: TagService = Depends(get_tag_service),
):
    """Delete a tag from all memos, either editing them or deleting them."""
    try:
        return await service.delete_tag(current_user.id, tag_path, strategy)
    except ServiceError as err:
        raise to_http_exception(err, operation="delete tag") from err
