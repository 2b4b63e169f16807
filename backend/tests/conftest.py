"""
Shared pytest fixtures for the memo tags API tests.

Provides an in-memory memo repository so services and endpoints run without
Supabase.
"""

import os
from typing import Any
from uuid import UUID, uuid4

import pytest

# Settings are read at import time; give the required Supabase fields harmless values.
os.environ.setdefault("APP_SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("APP_SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("APP_SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")

from app.core.errors import PersistenceError  # noqa: E402
from app.core.models.base import utc_now  # noqa: E402
from app.core.models.memo import Memo  # noqa: E402
from app.core.repositories.memo_repository import MemoRepository  # noqa: E402
from app.core.schemas.auth import AuthUser  # noqa: E402
from app.core.schemas.memo_find import MemoFind  # noqa: E402
from app.core.services.memo_service import MemoService  # noqa: E402
from app.core.services.tag_service import TagService  # noqa: E402
from app.core.tags.extraction import build_memo_payload  # noqa: E402


class InMemoryMemoRepository(MemoRepository):
    """
    Dict-backed MemoRepository.

    Returns copies so callers cannot mutate stored memos, orders results newest
    first (by insertion), and can be told to fail updates or deletes for
    specific memo ids.
    """

    def __init__(self):
        self._memos: dict[UUID, Memo] = {}
        self._order: dict[UUID, int] = {}
        self._seq = 0
        self.fail_update_ids: set[UUID] = set()
        self.fail_delete_ids: set[UUID] = set()
        self.update_calls: list[UUID] = []
        self.delete_calls: list[UUID] = []

    # -- seeding helpers (sync, for tests) --

    def add(self, content: str, creator_id: UUID, *, parent_id: UUID | None = None) -> Memo:
        """Store a memo with its tag cache built from content."""
        payload = build_memo_payload(content)
        memo = Memo(
            creator_id=creator_id,
            parent_id=parent_id,
            content=content,
            tags=payload.tags,
            properties=payload.properties,
        )
        self._store(memo)
        return memo.model_copy(deep=True)

    def add_raw(self, memo: Memo) -> Memo:
        """Store a memo exactly as given, without rebuilding its tag cache."""
        self._store(memo)
        return memo.model_copy(deep=True)

    def peek(self, memo_id: UUID) -> Memo | None:
        memo = self._memos.get(memo_id)
        return memo.model_copy(deep=True) if memo else None

    def count(self) -> int:
        return len(self._memos)

    def _store(self, memo: Memo) -> None:
        self._seq += 1
        self._memos[memo.id] = memo.model_copy(deep=True)
        self._order[memo.id] = self._seq

    # -- MemoRepository --

    async def create(self, memo: Memo) -> Memo:
        self._store(memo)
        return memo.model_copy(deep=True)

    async def get(self, memo_id: UUID) -> Memo | None:
        return self.peek(memo_id)

    async def find(self, query: MemoFind) -> list[Memo]:
        memos = sorted(self._memos.values(), key=lambda m: self._order[m.id], reverse=True)
        result = []
        for memo in memos:
            if query.creator_id is not None and memo.creator_id != query.creator_id:
                continue
            if query.memo_id is not None and memo.id != query.memo_id:
                continue
            if query.exclude_comments and memo.parent_id is not None:
                continue
            if query.tag_filter is not None and not query.tag_filter.matches(memo.tags):
                continue
            result.append(memo.model_copy(deep=True))
        result = result[query.offset:]
        if query.limit is not None:
            result = result[:query.limit]
        return result

    async def update_fields(self, memo_id: UUID, changes: dict[str, Any]) -> Memo | None:
        self.update_calls.append(memo_id)
        if memo_id in self.fail_update_ids:
            raise PersistenceError(f"simulated update failure for memo {memo_id}")
        memo = self._memos.get(memo_id)
        if memo is None:
            return None
        data = memo.model_dump()
        data.update(changes)
        data["updated_at"] = utc_now()
        updated = Memo.model_validate(data)
        self._memos[memo_id] = updated
        return updated.model_copy(deep=True)

    async def delete(self, memo_id: UUID) -> bool:
        self.delete_calls.append(memo_id)
        if memo_id in self.fail_delete_ids:
            raise PersistenceError(f"simulated delete failure for memo {memo_id}")
        if memo_id not in self._memos:
            return False
        for comment_id in [m.id for m in self._memos.values() if m.parent_id == memo_id]:
            del self._memos[comment_id]
        del self._memos[memo_id]
        return True


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def other_user_id() -> UUID:
    return uuid4()


@pytest.fixture
def repo() -> InMemoryMemoRepository:
    return InMemoryMemoRepository()


@pytest.fixture
def tag_service(repo) -> TagService:
    return TagService(repo)


@pytest.fixture
def memo_service(repo) -> MemoService:
    return MemoService(repo)


@pytest.fixture
def api_client(repo, user_id):
    """TestClient with the repository and authenticated user overridden."""
    from fastapi.testclient import TestClient

    from app.dependencies import get_current_user, get_memo_repository
    from app.main import app

    app.dependency_overrides[get_current_user] = lambda: AuthUser(id=user_id, email="user@example.com")
    app.dependency_overrides[get_memo_repository] = lambda: repo
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
