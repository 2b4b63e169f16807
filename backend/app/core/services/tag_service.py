from __future__ import annotations

from typing import TYPE_CHECKING

from app.core.errors import InvalidArgumentError, NotFoundError, PersistenceError
from app.core.schemas.memo_find import MemoFind, TagFilter
from app.core.schemas.tag import (
    DeleteTagResult,
    DeleteTagStrategy,
    RenameTagResult,
    TagListResult,
)
from app.core.services.memo_payload import commit_memo_content
from app.core.tags.aggregation import aggregate_tags, build_hierarchy, filter_by_prefix
from app.core.tags.paths import canonical_tag_path, normalize_tag_path
from app.core.tags.removal import remove_tag_from_content, rename_tag_in_content
from app.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from app.core.models.memo import Memo
    from app.core.repositories.memo_repository import MemoRepository
    from app.core.schemas.tag import TagNode


logger = get_logger(__name__)


class TagService:
    """Tag listing and global tag mutations for one user's memos.

    Nothing about tags is stored outside the memos themselves: reads aggregate
    the memos' tag caches, writes rewrite memo content and refresh each cache.
    Multi-memo writes are sequential and not transactional; a failure stops the
    loop and earlier memos stay modified.
    """

    def __init__(self, repo: MemoRepository) -> None:
        self._repo = repo

    async def list_tags(
        self,
        user_id: UUID,
        *,
        path_prefix: str | None = None,
        include_memo_ids: bool = False,
        include_hierarchy: bool = True,
    ) -> TagListResult:
        """List the user's tags sorted by path, optionally under `path_prefix`."""
        memos = await self._user_memos(user_id)
        prefix = normalize_tag_path(path_prefix) if path_prefix and path_prefix.strip() else None
        tag_map = filter_by_prefix(aggregate_tags(memos), prefix)

        tags = sorted(tag_map.values(), key=lambda node: node.path)
        if not include_memo_ids:
            for node in tags:
                node.memo_ids = None
        if include_hierarchy:
            build_hierarchy(tags)

        return TagListResult(tags=tags, total_count=len(tags))

    async def get_tag(self, user_id: UUID, tag_path: str, *, include_memo_ids: bool = True) -> TagNode:
        """Return one tag with hierarchy computed against all of the user's tags."""
        path = canonical_tag_path(tag_path)
        memos = await self._user_memos(user_id)
        tag_map = aggregate_tags(memos)
        node = tag_map.get(path)
        if node is None:
            raise NotFoundError(f"tag not found: {path}")

        build_hierarchy(sorted(tag_map.values(), key=lambda n: n.path))
        if not include_memo_ids:
            node.memo_ids = None
        return node

    async def rename_tag(
        self,
        user_id: UUID,
        old_tag_path: str,
        new_tag_path: str,
        *,
        move_children: bool = False,
    ) -> RenameTagResult:
        """Rename a tag in every memo that carries it.

        Memos are selected by exact membership of `old_tag_path`; `move_children`
        is accepted but does not widen the selection. Content is rewritten by
        plain substring replacement of the tag marker, so a marker sharing the
        old prefix (`#work` inside `#work/api`) is rewritten as well.
        """
        old_path = canonical_tag_path(old_tag_path, field="old tag path")
        if not new_tag_path or not new_tag_path.strip():
            raise InvalidArgumentError("new tag path cannot be empty")
        new_path = canonical_tag_path(new_tag_path, field="new tag path")

        memos = await self._user_memos(user_id, TagFilter(path=old_path))
        if not memos:
            raise NotFoundError(f"no memos found with tag: {old_path}")

        logger.info(
            "Renaming tag %s -> %s across %d memos", old_path, new_path, len(memos),
            extra={"move_children": move_children},
        )
        result = RenameTagResult()
        for memo in memos:
            content = rename_tag_in_content(memo.content, old_path, new_path)
            await commit_memo_content(self._repo, memo, content)
            result.affected_memo_ids.append(memo.id)
            result.renamed_paths[old_path] = new_path
            logger.debug("Renamed tag in memo %s", memo.id)
        return result

    async def delete_tag(
        self,
        user_id: UUID,
        tag_path: str,
        strategy: DeleteTagStrategy | str,
    ) -> DeleteTagResult:
        """Delete a tag from every memo that carries it.

        `remove_from_content` strips the marker (and one trailing space) from the
        content and trims it; `delete_related_memos` deletes the memos.
        """
        path = canonical_tag_path(tag_path)
        try:
            strategy = DeleteTagStrategy(strategy)
        except ValueError as err:
            raise InvalidArgumentError(f"unsupported delete strategy: {strategy!r}") from err

        memos = await self._user_memos(user_id, TagFilter(path=path))
        logger.info("Deleting tag %s from %d memos (%s)", path, len(memos), strategy.value)

        result = DeleteTagResult(deleted_tag_paths=[path])
        for memo in memos:
            if strategy is DeleteTagStrategy.REMOVE_FROM_CONTENT:
                content = remove_tag_from_content(memo.content, path)
                await commit_memo_content(self._repo, memo, content)
            elif not await self._repo.delete(memo.id):
                raise PersistenceError(f"failed to delete memo {memo.id}: memo no longer exists")
            result.affected_memo_ids.append(memo.id)
        return result

    async def _user_memos(self, user_id: UUID, tag_filter: TagFilter | None = None) -> Sequence[Memo]:
        return await self._repo.find(
            MemoFind(creator_id=user_id, tag_filter=tag_filter, exclude_comments=True)
        )
