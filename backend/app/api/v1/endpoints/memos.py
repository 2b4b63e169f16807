from __future__ import annotations

from uuid import UUID  # noqa: TCH003

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.v1.errors import to_http_exception
from app.api.v1.schemas.memo import MemoCreate, MemoRead, MemoUpdate
from app.api.v1.schemas.tag import BatchDeleteMemosByTagRequest, RenameMemoTagRequest
from app.core.errors import ServiceError
from app.core.schemas.auth import AuthUser  # noqa: TCH001
from app.core.schemas.tag import BatchDeleteResult
from app.core.services.memo_service import MemoService  # noqa: TCH001
from app.dependencies import get_current_user, get_memo_service

router = APIRouter()


@router.post("/", response_model=MemoRead, status_code=status.HTTP_201_CREATED)
async def create_memo(
    payload: MemoCreate,
    current_user: AuthUser = Depends(get_current_user),
    service: MemoService = Depends(get_memo_service),
):
    try:
        memo = await service.create_memo(payload, user_id=current_user.id)
    except ServiceError as err:
        raise to_http_exception(err, operation="create memo") from err
    return MemoRead.model_validate(memo)


@router.get("/", response_model=list[MemoRead])
async def list_memos(
    limit: int = 50,
    tag: str | None = None,
    current_user: AuthUser = Depends(get_current_user),
    service: MemoService = Depends(get_memo_service),
):
    try:
        memos = await service.list_memos(user_id=current_user.id, limit=limit, tag=tag)
    except ServiceError as err:
        raise to_http_exception(err, operation="list memos") from err
    return [MemoRead.model_validate(m) for m in memos]


@router.post("/batch-delete-by-tag", response_model=BatchDeleteResult)
async def batch_delete_memos_by_tag(
    payload: BatchDeleteMemosByTagRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: MemoService = Depends(get_memo_service),
):
    """Delete all memos carrying a tag (optionally its descendants); supports dry runs."""
    try:
        return await service.batch_delete_memos_by_tag(
            current_user.id,
            payload.tag_path,
            include_children=payload.include_children,
            dry_run=payload.dry_run,
        )
    except ServiceError as err:
        raise to_http_exception(err, operation="batch delete memos by tag") from err


@router.get("/{memo_id}", response_model=MemoRead)
async def get_memo(
    memo_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    service: MemoService = Depends(get_memo_service),
):
    memo = await service.get_memo(memo_id, user_id=current_user.id)
    if not memo:
        raise HTTPException(status_code=404, detail="Memo not found")
    return MemoRead.model_validate(memo)


@router.patch("/{memo_id}", response_model=MemoRead)
async def update_memo(
    memo_id: UUID,
    payload: MemoUpdate,
    current_user: AuthUser = Depends(get_current_user),
    service: MemoService = Depends(get_memo_service),
):
    try:
        memo = await service.update_memo(memo_id, payload, user_id=current_user.id)
    except ServiceError as err:
        raise to_http_exception(err, operation="update memo") from err
    if not memo:
        raise HTTPException(status_code=404, detail="Memo not found")
    return MemoRead.model_validate(memo)


@router.delete("/{memo_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_memo(
    memo_id: UUID,
    current_user: AuthUser = Depends(get_current_user),
    service: MemoService = Depends(get_memo_service),
):
    try:
        deleted = await service.delete_memo(memo_id, user_id=current_user.id)
    except ServiceError as err:
        raise to_http_exception(err, operation="delete memo") from err
    if not deleted:
        raise HTTPException(status_code=404, detail="Memo not found")
    return None


@router.post("/{memo_ref}/tags/rename", response_model=MemoRead)
async def rename_memo_tag(
    memo_ref: str,
    payload: RenameMemoTagRequest,
    current_user: AuthUser = Depends(get_current_user),
    service: MemoService = Depends(get_memo_service),
):
    """Rename a tag inside one memo. `memo_ref` is the memo id; `-` is rejected."""
    try:
        memo = await service.rename_memo_tag(
            f"memos/{memo_ref}", payload.old_tag, payload.new_tag, user_id=current_user.id
        )
    except ServiceError as err:
        raise to_http_exception(err, operation="rename memo tag") from err
    return MemoRead.model_validate(memo)


@router.delete("/{memo_ref}/tags/{tag:path}", response_model=MemoRead | None)
async def delete_memo_tag(
    memo_ref: str,
    tag: str,
    delete_related_memo: bool = False,
    current_user: AuthUser = Depends(get_current_user),
    service: MemoService = Depends(get_memo_service),
):
    """Remove a tag from one memo, or delete that memo with `delete_related_memo=true`."""
    try:
        memo = await service.delete_memo_tag(
            f"memos/{memo_ref}", tag, user_id=current_user.id, delete_related_memo=delete_related_memo
        )
    except ServiceError as err:
        raise to_http_exception(err, operation="delete memo tag") from err
    return MemoRead.model_validate(memo) if memo else None
