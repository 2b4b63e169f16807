from __future__ import annotations

from typing import TYPE_CHECKING, Any

from app.core.errors import ContentParseError, InternalError, PersistenceError
from app.core.tags.extraction import MemoPayload, build_memo_payload

if TYPE_CHECKING:
    from uuid import UUID

    from app.core.models.memo import Memo
    from app.core.repositories.memo_repository import MemoRepository


def payload_for(content: str, memo_id: UUID | None = None) -> MemoPayload:
    """Build the tag cache for `content`, reporting parse failures as internal errors."""
    try:
        return build_memo_payload(content)
    except ContentParseError as err:
        target = f"memo {memo_id}" if memo_id else "memo content"
        raise InternalError(f"failed to parse {target}: {err}") from err


def payload_changes(payload: MemoPayload) -> dict[str, Any]:
    return {"tags": payload.tags, "properties": payload.properties.model_dump()}


async def commit_memo_content(repo: MemoRepository, memo: Memo, content: str) -> Memo:
    """Write new content for `memo` together with its recomputed tag cache."""
    payload = payload_for(content, memo.id)
    changes = {"content": content, **payload_changes(payload)}
    updated = await repo.update_fields(memo.id, changes)
    if updated is None:
        raise PersistenceError(f"failed to update memo {memo.id}: memo no longer exists")
    return updated
