"""Tag aggregation over memo tag caches.

Tags are not stored centrally. Every listing folds the `tags` cache of the
caller's memos into an ephemeral path -> TagNode map, then derives parent/child
links and rolled-up counts from the paths themselves. All functions here are
pure with respect to storage.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.core.schemas.tag import TagNode
from app.core.tags.paths import is_direct_child, parent_tag_path, path_segments

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from app.core.models.memo import Memo


def aggregate_tags(memos: Iterable[Memo]) -> dict[str, TagNode]:
    """Fold memo tag caches into a map keyed by exact tag path.

    `memo_ids` keeps memo iteration order and `direct_count` counts one per
    (memo, path) pair. Counts are not rolled up here; see `build_hierarchy`.
    """
    tag_map: dict[str, TagNode] = {}
    seen_ids: dict[str, set[UUID]] = {}
    for memo in memos:
        for path in memo.tags:
            if not path:
                continue
            node = tag_map.get(path)
            if node is None:
                node = TagNode(path=path, segments=path_segments(path), memo_ids=[])
                tag_map[path] = node
                seen_ids[path] = set()
            if memo.id not in seen_ids[path]:
                seen_ids[path].add(memo.id)
                node.memo_ids.append(memo.id)
            node.direct_count += 1
            node.total_count = node.direct_count
    return tag_map


def filter_by_prefix(tag_map: dict[str, TagNode], prefix: str | None) -> dict[str, TagNode]:
    """Drop nodes whose path does not start with `prefix` (plain string prefix)."""
    if not prefix:
        return dict(tag_map)
    return {path: node for path, node in tag_map.items() if path.startswith(prefix)}


def build_hierarchy(tags: Iterable[TagNode]) -> list[TagNode]:
    """Fill `child_paths`, `parent_path` and `total_count` on the given nodes.

    Only nodes present in `tags` take part: a parent without memos of its own is
    not synthesized, so its children are left without a parent link.
    """
    nodes = list(tags)
    tag_map = {node.path: node for node in nodes}

    for node in nodes:
        node.child_paths = [other for other in tag_map if is_direct_child(node.path, other)]
        parent = parent_tag_path(node.path)
        node.parent_path = parent if parent in tag_map else None

    for node in nodes:
        node.total_count = calculate_total_count(node, tag_map, set())
    return nodes


def calculate_total_count(node: TagNode, tag_map: dict[str, TagNode], visited: set[str]) -> int:
    """Direct count of `node` plus the total counts of its children.

    A path already in `visited` contributes nothing, which keeps hand-built maps
    with cyclic `child_paths` finite.
    """
    if node.path in visited:
        return 0
    visited.add(node.path)

    total = node.direct_count
    for child_path in node.child_paths:
        child = tag_map.get(child_path)
        if child is not None:
            total += calculate_total_count(child, tag_map, visited)
    return total
