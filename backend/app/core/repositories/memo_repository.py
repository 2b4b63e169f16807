from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from app.core.models.memo import Memo
    from app.core.schemas.memo_find import MemoFind


class MemoRepository(ABC):
    """Abstract repository interface for memos.

    Contract used by services and dependency injection. Implementations perform
    I/O and raise `PersistenceError` (or `PermissionDeniedError`) when the store
    fails; they never return partial results silently.
    """

    @abstractmethod
    async def create(self, memo: Memo) -> Memo:  # pragma: no cover - interface only
        """Persist a new memo and return the stored entity."""

    @abstractmethod
    async def get(self, memo_id: UUID) -> Memo | None:  # pragma: no cover
        """Fetch a memo by id or return None if not found."""

    @abstractmethod
    async def find(self, query: MemoFind) -> Sequence[Memo]:  # pragma: no cover
        """Return memos matching `query`, newest first.

        Without `query.limit` every matching memo is returned.
        """

    @abstractmethod
    async def update_fields(self, memo_id: UUID, changes: dict[str, Any]) -> Memo | None:  # pragma: no cover
        """Partially update fields on a memo and return the updated entity, or None if missing."""

    @abstractmethod
    async def delete(self, memo_id: UUID) -> bool:  # pragma: no cover
        """Delete a memo and its comments. Return True if the memo was removed."""
