"""Rewriting tags inside memo content.

Two families live here, with different whitespace behaviour:

- Text rewrites (`rename_tag_in_content`, `remove_tag_from_content`) work on the
  raw content with plain substring replacement. They also hit markers inside
  code blocks, quotes or longer tags sharing the prefix (`#work` in `#workshop`).
  Removal trims the surrounding whitespace of the result.
- Tree rewrites (`rename_tag_in_nodes`, `remove_tag_from_nodes`) edit parsed
  nodes and leave whitespace alone: removing `#work` from
  `"notes #work are"` yields `"notes  are"`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from app.core.content.nodes import Node, NodeKind, children_of, traverse
from app.core.tags.paths import PATH_SEPARATOR, normalize_tag_path, tag_marker

if TYPE_CHECKING:
    from collections.abc import Iterable


def rename_tag_in_content(content: str, old_path: str, new_path: str) -> str:
    return content.replace(tag_marker(old_path), tag_marker(new_path))


def remove_tag_from_content(content: str, path: str) -> str:
    marker = tag_marker(path)
    content = content.replace(marker + " ", "")
    content = content.replace(marker, "")
    return content.strip()


def _matches(node: Node, path: str) -> bool:
    return node.kind is NodeKind.TAG and normalize_tag_path(node.content) == path


def remove_tag_from_nodes(nodes: Iterable[Node], tag: str) -> list[Node]:
    """Return a copy of `nodes` without the Tag leaves matching `tag`.

    Matching compares canonical paths, so `work` and `/work` remove `#work`.
    Containers are rebuilt and kept even when they end up empty.
    """
    path = normalize_tag_path(tag)
    result: list[Node] = []
    for node in nodes:
        if _matches(node, path):
            continue
        if node.is_container:
            node = node.model_copy(update={"children": remove_tag_from_nodes(children_of(node), path)})
        result.append(node)
    return result


def rename_tag_in_nodes(nodes: list[Node], old_tag: str, new_tag: str) -> int:
    """Rename matching Tag leaves in place and return how many were changed."""
    old_path = normalize_tag_path(old_tag)
    new_content = normalize_tag_path(new_tag).removeprefix(PATH_SEPARATOR)
    renamed = 0

    def _visit(node: Node) -> None:
        nonlocal renamed
        if _matches(node, old_path):
            node.content = new_content
            renamed += 1

    traverse(nodes, _visit)
    return renamed
