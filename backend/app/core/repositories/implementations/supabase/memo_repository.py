from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import httpx
from postgrest.exceptions import APIError

from app.config import settings
from app.core.errors import PermissionDeniedError, PersistenceError
from app.core.models.base import utc_now
from app.core.models.memo import Memo, MemoProperties, MemoVisibility
from app.core.repositories.memo_repository import MemoRepository
from app.utils.logging import get_logger

logger = get_logger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from uuid import UUID

    from supabase import Client

    from app.core.schemas.memo_find import MemoFind

# PostgreSQL insufficient_privilege, raised when RLS rejects a write
_PERMISSION_DENIED_CODE = "42501"


class SupabaseMemoRepository(MemoRepository):
    """Supabase implementation of the MemoRepository.

    Assumes a `memos` table with columns matching the `Memo` model, `tags` as a
    `text[]` column and `properties` as `jsonb`. Comments reference their memo
    through `parent_id`.
    """

    def __init__(self, client: Client, *, table_name: str | None = None, page_size: int | None = None) -> None:
        self._client: Client = client
        self._table = table_name or settings.memos_table
        self._page_size = page_size or settings.repository_page_size

    async def create(self, memo: Memo) -> Memo:
        row = self._memo_to_row(memo)
        resp = await self._run(
            lambda: self._client.table(self._table)
            .insert(row)
            .execute()
        )
        data = self._first(resp.data)
        if not data:
            raise PersistenceError(f"failed to create memo {memo.id}")
        return self._row_to_memo(data)

    async def get(self, memo_id: UUID) -> Memo | None:
        resp = await self._run(
            lambda: self._client.table(self._table)
            .select("*")
            .eq("id", str(memo_id))
            .limit(1)
            .execute()
        )
        items = resp.data or []
        if not items:
            return None
        return self._row_to_memo(items[0])

    async def find(self, query: MemoFind) -> Sequence[Memo]:
        tag_filter = query.tag_filter
        memos: list[Memo] = []
        offset = query.offset

        def _fetch_page(start: int, size: int) -> Any:
            q = self._client.table(self._table).select("*")
            if query.creator_id is not None:
                q = q.eq("creator_id", str(query.creator_id))
            if query.memo_id is not None:
                q = q.eq("id", str(query.memo_id))
            if query.exclude_comments:
                q = q.is_("parent_id", "null")
            if tag_filter is not None and not tag_filter.include_children:
                q = q.contains("tags", [tag_filter.path])
            return (
                q
                .order("created_at", desc=True)
                .range(start, start + size - 1)
                .execute()
            )

        while True:
            size = self._page_size
            if query.limit is not None:
                size = min(size, query.limit - len(memos))
            resp = await self._run(lambda start=offset, size=size: _fetch_page(start, size))
            rows: list[dict[str, Any]] = resp.data or []
            if not rows:
                break

            for row in rows:
                memo = self._row_to_memo(row)
                # Array prefix matching has no PostgREST operator; descendants are filtered here
                if tag_filter is None or tag_filter.matches(memo.tags):
                    memos.append(memo)

            if len(rows) < size:
                break
            if query.limit is not None and len(memos) >= query.limit:
                break
            offset += len(rows)

        return memos

    async def update_fields(self, memo_id: UUID, changes: dict[str, Any]) -> Memo | None:
        sanitized: dict[str, Any] = {
            k: v for k, v in (changes or {}).items()
            if k not in {"id", "creator_id", "created_at", "updated_at"}
        }
        if not sanitized:
            return await self.get(memo_id)

        if isinstance(sanitized.get("properties"), MemoProperties):
            sanitized["properties"] = sanitized["properties"].model_dump()
        if isinstance(sanitized.get("visibility"), MemoVisibility):
            sanitized["visibility"] = sanitized["visibility"].value
        sanitized["updated_at"] = utc_now().isoformat()

        resp = await self._run(
            lambda: self._client.table(self._table)
            .update(sanitized)
            .eq("id", str(memo_id))
            .execute()
        )
        items = resp.data or []
        if not items:
            return None
        return self._row_to_memo(items[0])

    async def delete(self, memo_id: UUID) -> bool:
        # Comments go first so no row is left pointing at a deleted memo
        await self._run(
            lambda: self._client.table(self._table)
            .delete()
            .eq("parent_id", str(memo_id))
            .execute()
        )
        resp = await self._run(
            lambda: self._client.table(self._table)
            .delete()
            .eq("id", str(memo_id))
            .execute()
        )
        items = resp.data or []
        return len(items) > 0

    @staticmethod
    async def _run(func: Callable[[], Any]) -> Any:
        try:
            return await asyncio.to_thread(func)
        except APIError as err:
            if getattr(err, "code", None) == _PERMISSION_DENIED_CODE:
                raise PermissionDeniedError("operation not permitted for the current user") from err
            logger.error("Supabase request failed", extra={"code": getattr(err, "code", None), "error": str(err)})
            raise PersistenceError(f"memo store request failed: {err}") from err
        except httpx.HTTPError as err:
            logger.error("Supabase transport error", extra={"error_type": type(err).__name__, "error": str(err)})
            raise PersistenceError(f"memo store unreachable: {err}") from err

    @staticmethod
    def _first(data: Any) -> dict[str, Any]:
        if isinstance(data, list) and data:
            return data[0]
        if isinstance(data, dict):
            return data
        return {}

    @staticmethod
    def _row_to_memo(row: dict[str, Any]) -> Memo:
        normalized = dict(row)
        # Columns maintained by the database that are not part of the model
        for field in ("row_status", "display_time"):
            normalized.pop(field, None)
        if normalized.get("tags") is None:
            normalized["tags"] = []
        if normalized.get("properties") is None:
            normalized["properties"] = {}
        if normalized.get("content") is None:
            normalized["content"] = ""
        return Memo.model_validate(normalized)

    @staticmethod
    def _memo_to_row(memo: Memo) -> dict[str, Any]:
        data = memo.model_dump(mode="json")
        if data.get("parent_id") is None:
            data.pop("parent_id", None)
        if data.get("updated_at") is None:
            data.pop("updated_at", None)
        return data
