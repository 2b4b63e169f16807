from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field

from app.core.content.nodes import Node, NodeKind, traverse
from app.core.content.parser import parse
from app.core.models.base import AppBaseModel
from app.core.models.memo import MemoProperties
from app.core.tags.paths import is_well_formed_tag_path, normalize_tag_path

if TYPE_CHECKING:
    from collections.abc import Iterable


class MemoPayload(AppBaseModel):
    """Tag cache and derived properties stored alongside a memo."""

    tags: list[str] = Field(default_factory=list)
    properties: MemoProperties = Field(default_factory=MemoProperties)


def extract_raw_tags(nodes: Iterable[Node]) -> list[str]:
    """Collect tag texts in document order, first occurrence wins."""
    tags: list[str] = []

    def _visit(node: Node) -> None:
        if node.kind is NodeKind.TAG and node.content not in tags:
            tags.append(node.content)

    traverse(nodes, _visit)
    return tags


def extract_tag_paths(nodes: Iterable[Node]) -> list[str]:
    """Canonical paths of the tags in `nodes`; malformed ones (`/work/`, `/a//b`) are skipped."""
    paths: list[str] = []
    for raw in extract_raw_tags(nodes):
        path = normalize_tag_path(raw)
        if not is_well_formed_tag_path(path) or path in paths:
            continue
        paths.append(path)
    return paths


def extract_properties(nodes: Iterable[Node]) -> MemoProperties:
    properties = MemoProperties()

    def _visit(node: Node) -> None:
        if node.kind in (NodeKind.LINK, NodeKind.AUTO_LINK):
            properties.has_link = True
        elif node.kind is NodeKind.TASK_LIST_ITEM:
            properties.has_task_list = True
            if not node.attrs.get("complete"):
                properties.has_incomplete_tasks = True
        elif node.kind is NodeKind.CODE_BLOCK:
            properties.has_code = True
        elif node.kind is NodeKind.EMBEDDED_CONTENT:
            properties.references.append(node.content)

    traverse(nodes, _visit)
    return properties


def build_memo_payload(content: str) -> MemoPayload:
    """Parse memo content and derive its tag cache and properties.

    Raises:
        ContentParseError: if the content cannot be parsed.
    """
    nodes = parse(content)
    return MemoPayload(tags=extract_tag_paths(nodes), properties=extract_properties(nodes))
