from __future__ import annotations

import re
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from app.config import settings
from app.core.content.parser import parse
from app.core.content.restore import restore
from app.core.errors import (
    ContentParseError,
    InternalError,
    InvalidArgumentError,
    NotFoundError,
    PersistenceError,
)
from app.core.models.memo import Memo, MemoVisibility
from app.core.schemas.memo_find import MemoFind, TagFilter
from app.core.schemas.tag import BatchDeleteResult
from app.core.services.memo_payload import commit_memo_content, payload_changes, payload_for
from app.core.tags.paths import canonical_tag_path, is_same_or_descendant
from app.core.tags.removal import remove_tag_from_nodes, rename_tag_in_nodes
from app.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from app.core.content.nodes import Node
    from app.core.repositories.memo_repository import MemoRepository


logger = get_logger(__name__)

GLOBAL_MEMO_NAME = "memos/-"
_MEMO_NAME_RE = re.compile(r"^memos/(?P<memo_id>[^/]+)$")


class MemoService:
    """Service for managing memos with user-scoped access (RLS friendly).

    Every content write recomputes the memo's tag cache. Tag operations scoped
    to a single memo live here; the global ones are on `TagService`.
    """

    def __init__(self, repo: MemoRepository) -> None:
        self._repo = repo

    async def create_memo(self, create_dto, user_id: UUID) -> Memo:
        """Create a memo for a specific user with its tag cache filled in."""
        content = self._validate_content(create_dto.content)
        parent_id = getattr(create_dto, "parent_id", None)
        if parent_id is not None and await self.get_memo(parent_id, user_id) is None:
            raise NotFoundError(f"memo not found: {parent_id}")

        memo_id = uuid4()
        payload = payload_for(content, memo_id)
        memo = Memo(
            id=memo_id,
            creator_id=user_id,
            parent_id=parent_id,
            content=content,
            visibility=create_dto.visibility or MemoVisibility.PRIVATE,
            tags=payload.tags,
            properties=payload.properties,
        )
        return await self._repo.create(memo)

    async def get_memo(self, memo_id: str | UUID, user_id: UUID) -> Memo | None:
        """Return memo if it exists and belongs to the user; otherwise None."""
        try:
            memo_uuid = UUID(str(memo_id))
        except ValueError:
            return None
        memo = await self._repo.get(memo_uuid)
        if memo and memo.creator_id == user_id:
            return memo
        return None

    async def list_memos(self, user_id: UUID, limit: int = 50, tag: str | None = None) -> Sequence[Memo]:
        """List memos for the given user, newest first, optionally carrying `tag`."""
        tag_filter = TagFilter(path=canonical_tag_path(tag)) if tag else None
        return await self._repo.find(MemoFind(creator_id=user_id, tag_filter=tag_filter, limit=limit))

    async def update_memo(self, memo_id: str | UUID, update_dto, user_id: UUID) -> Memo | None:
        """Update a user's memo with a partial changes dict.

        A content change rebuilds the tag cache in the same write.
        """
        existing = await self.get_memo(memo_id, user_id)
        if not existing:
            return None

        raw_changes = update_dto.model_dump(exclude_unset=True)
        allowed_fields = {"content", "visibility"}
        changes: dict = {k: v for k, v in raw_changes.items() if k in allowed_fields and v is not None}

        if "content" in changes:
            content = self._validate_content(changes["content"])
            changes["content"] = content
            changes.update(payload_changes(payload_for(content, existing.id)))

        updated = await self._repo.update_fields(existing.id, changes)
        return updated

    async def delete_memo(self, memo_id: str | UUID, user_id: UUID) -> bool:
        """Delete a user's memo (and its comments) if it exists and belongs to them."""
        memo = await self.get_memo(memo_id, user_id)
        if not memo:
            return False
        return await self._repo.delete(memo.id)

    async def rename_memo_tag(self, parent: str, old_tag: str, new_tag: str, user_id: UUID) -> Memo:
        """Rename a tag inside one memo by editing its parsed content.

        `parent` is the memo name (`memos/<id>`). A memo that does not carry
        `old_tag` is returned unchanged.
        """
        if parent == GLOBAL_MEMO_NAME:
            raise InvalidArgumentError(
                "Global tag operations are no longer supported. "
                "Use TagService.rename_tag for global tag renaming."
            )
        old_path = canonical_tag_path(old_tag, field="old tag")
        canonical_tag_path(new_tag, field="new tag")
        memo = await self._memo_from_name(parent, user_id)
        if old_path not in memo.tags:
            return memo

        nodes = self._parse(memo)
        rename_tag_in_nodes(nodes, old_path, new_tag)
        logger.info("Renaming tag %s in memo %s", old_path, memo.id)
        return await commit_memo_content(self._repo, memo, restore(nodes))

    async def delete_memo_tag(
        self,
        parent: str,
        tag: str,
        user_id: UUID,
        *,
        delete_related_memo: bool = False,
    ) -> Memo | None:
        """Remove a tag from one memo, or delete the memo when `delete_related_memo` is set.

        Removal edits the parsed content: the tag node is dropped and the
        surrounding text is kept as is, so neighbouring spaces remain. Returns
        the updated memo, or None when the memo was deleted.
        """
        if parent == GLOBAL_MEMO_NAME:
            raise InvalidArgumentError(
                "Global tag operations are no longer supported. "
                "Use TagService.delete_tag to remove tags globally, "
                "or MemoService.batch_delete_memos_by_tag to delete memos."
            )
        path = canonical_tag_path(tag)
        memo = await self._memo_from_name(parent, user_id)
        if path not in memo.tags:
            return memo

        if delete_related_memo:
            logger.info("Deleting memo %s carrying tag %s", memo.id, path)
            if not await self._repo.delete(memo.id):
                raise PersistenceError(f"failed to delete memo {memo.id}: memo no longer exists")
            return None

        nodes = remove_tag_from_nodes(self._parse(memo), path)
        logger.info("Removing tag %s from memo %s", path, memo.id)
        return await commit_memo_content(self._repo, memo, restore(nodes))

    async def batch_delete_memos_by_tag(
        self,
        user_id: UUID,
        tag_path: str,
        *,
        include_children: bool = False,
        dry_run: bool = False,
    ) -> BatchDeleteResult:
        """Delete every memo carrying `tag_path` (or, with `include_children`, a tag below it).

        `affected_tag_paths` lists the requested path first, followed by the
        matching paths met on the selected memos. A dry run reports the memos
        that would be deleted and changes nothing; otherwise only memos that
        were actually deleted contribute to the report.
        """
        if not tag_path or not tag_path.strip():
            raise InvalidArgumentError("tag_path is required")
        path = canonical_tag_path(tag_path)

        memos = await self._repo.find(
            MemoFind(
                creator_id=user_id,
                tag_filter=TagFilter(path=path, include_children=include_children),
                exclude_comments=True,
            )
        )

        result = BatchDeleteResult(affected_tag_paths=[path], dry_run=dry_run)
        for memo in memos:
            if not dry_run:
                if not await self._repo.delete(memo.id):
                    raise PersistenceError(f"failed to delete memo {memo.id}: memo no longer exists")
                logger.debug("Deleted memo %s", memo.id)
            result.deleted_memo_ids.append(memo.id)
            for memo_tag in memo.tags:
                matched = is_same_or_descendant(path, memo_tag) if include_children else memo_tag == path
                if matched and memo_tag not in result.affected_tag_paths:
                    result.affected_tag_paths.append(memo_tag)

        result.deleted_count = len(result.deleted_memo_ids)
        logger.info(
            "Batch delete by tag %s: %d memos%s", path, result.deleted_count, " (dry run)" if dry_run else "",
            extra={"include_children": include_children, "affected_tag_paths": result.affected_tag_paths},
        )
        return result

    async def _memo_from_name(self, name: str, user_id: UUID) -> Memo:
        match = _MEMO_NAME_RE.match(name or "")
        if not match:
            raise InvalidArgumentError(f"invalid memo name: {name!r}")
        try:
            memo_id = UUID(match.group("memo_id"))
        except ValueError as err:
            raise InvalidArgumentError(f"invalid memo name: {name!r}") from err
        memo = await self.get_memo(memo_id, user_id)
        # Tag edits apply to top-level memos only
        if memo is None or memo.is_comment:
            raise NotFoundError(f"memo not found: {name}")
        return memo

    @staticmethod
    def _parse(memo: Memo) -> list[Node]:
        try:
            return parse(memo.content)
        except ContentParseError as err:
            raise InternalError(f"failed to parse memo {memo.id}: {err}") from err

    @staticmethod
    def _validate_content(content: str | None) -> str:
        content = (content or "").strip()
        if not content:
            raise InvalidArgumentError("memo content cannot be empty")
        if len(content) > settings.content_length_limit:
            raise InvalidArgumentError(
                f"memo content exceeds the limit of {settings.content_length_limit} characters"
            )
        return content
