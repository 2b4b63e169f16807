from __future__ import annotations

from typing import TYPE_CHECKING

from app.config import settings
from app.core.errors import ServiceError
from app.core.schemas.memo_find import MemoFind
from app.core.services.memo_payload import payload_changes, payload_for
from app.utils.logging import get_logger

if TYPE_CHECKING:
    from app.core.repositories.memo_repository import MemoRepository


logger = get_logger(__name__)


async def rebuild_all_memo_payloads(repo: MemoRepository, *, batch_size: int | None = None) -> int:
    """Recompute the tag cache and properties of every memo, comments included.

    Memos are read in pages of `batch_size`. A memo whose content cannot be
    parsed or whose update fails is logged and skipped. Returns the number of
    memos rebuilt successfully.
    """
    size = batch_size or settings.payload_rebuild_batch_size
    offset = 0
    processed = 0
    rebuilt = 0

    while True:
        try:
            memos = await repo.find(MemoFind(limit=size, offset=offset, exclude_comments=False))
        except ServiceError as err:
            logger.error("Failed to list memos for payload rebuild: %s", err)
            break
        if not memos:
            break

        batch_success = 0
        for memo in memos:
            try:
                payload = payload_for(memo.content, memo.id)
                if await repo.update_fields(memo.id, payload_changes(payload)) is None:
                    logger.error("Memo %s disappeared during payload rebuild", memo.id)
                    continue
            except ServiceError as err:
                logger.error("Failed to rebuild payload for memo %s: %s", memo.id, err)
                continue
            batch_success += 1

        processed += len(memos)
        rebuilt += batch_success
        logger.info(
            "Processed memo batch",
            extra={"batch_size": len(memos), "success_count": batch_success, "total_processed": processed},
        )
        if len(memos) < size:
            break
        offset += len(memos)

    return rebuilt
