from __future__ import annotations

from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any

from pydantic import Field, model_validator

from app.core.models.base import AppBaseModel


class NodeKind(str, Enum):
    """Kinds of nodes produced by the memo content parser."""

    # Leaves
    TAG = "tag"
    TEXT = "text"
    CODE = "code"
    LINK = "link"
    AUTO_LINK = "auto_link"
    CODE_BLOCK = "code_block"
    EMBEDDED_CONTENT = "embedded_content"
    LINE_BREAK = "line_break"

    # Containers
    PARAGRAPH = "paragraph"
    HEADING = "heading"
    BLOCKQUOTE = "blockquote"
    LIST = "list"
    ORDERED_LIST_ITEM = "ordered_list_item"
    UNORDERED_LIST_ITEM = "unordered_list_item"
    TASK_LIST_ITEM = "task_list_item"
    BOLD = "bold"
    ITALIC = "italic"


CONTAINER_KINDS: frozenset[NodeKind] = frozenset(
    {
        NodeKind.PARAGRAPH,
        NodeKind.HEADING,
        NodeKind.BLOCKQUOTE,
        NodeKind.LIST,
        NodeKind.ORDERED_LIST_ITEM,
        NodeKind.UNORDERED_LIST_ITEM,
        NodeKind.TASK_LIST_ITEM,
        NodeKind.BOLD,
        NodeKind.ITALIC,
    }
)


class Node(AppBaseModel):
    """A node of a parsed memo.

    Leaves carry their payload in `content`; containers carry an ordered list of
    `children`. `attrs` holds what the serializer needs to restore the exact
    source text (heading level, list marker, link url, ...).
    """

    kind: NodeKind
    content: str = ""
    children: list[Node] = Field(default_factory=list)
    attrs: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_container(self) -> bool:
        return self.kind in CONTAINER_KINDS

    @model_validator(mode="after")
    def validate_shape(self) -> Node:
        if self.children and not self.is_container:
            raise ValueError(f"{self.kind.value} nodes cannot have children")
        return self

    @classmethod
    def leaf(cls, kind: NodeKind, content: str = "", **attrs: Any) -> Node:
        return cls(kind=kind, content=content, attrs=attrs)

    @classmethod
    def container(cls, kind: NodeKind, children: Iterable[Node], **attrs: Any) -> Node:
        return cls(kind=kind, children=list(children), attrs=attrs)


def children_of(node: Node) -> list[Node]:
    """Return the child sequence of a container node, or an empty list for leaves."""
    if node.is_container:
        return node.children
    return []


def traverse(nodes: Iterable[Node], fn: Callable[[Node], None]) -> None:
    """Visit nodes pre-order, depth-first."""
    for node in nodes:
        fn(node)
        traverse(children_of(node), fn)
