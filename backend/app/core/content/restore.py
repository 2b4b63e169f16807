from __future__ import annotations

from typing import TYPE_CHECKING

from app.core.content.nodes import NodeKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from app.core.content.nodes import Node


def restore(nodes: Iterable[Node]) -> str:
    """Serialize parsed nodes back into memo content."""
    return "".join(_restore_node(node) for node in nodes)


def _restore_node(node: Node) -> str:
    kind = node.kind
    attrs = node.attrs

    if kind is NodeKind.TEXT:
        return node.content
    if kind is NodeKind.TAG:
        return f"#{node.content}"
    if kind is NodeKind.LINE_BREAK:
        return "\n"
    if kind is NodeKind.CODE:
        return f"`{node.content}`"
    if kind is NodeKind.EMBEDDED_CONTENT:
        return f"![[{node.content}]]"
    if kind is NodeKind.LINK:
        return f"[{node.content}]({attrs.get('url', '')})"
    if kind is NodeKind.AUTO_LINK:
        return f"<{node.content}>" if attrs.get("bracketed") else node.content
    if kind is NodeKind.CODE_BLOCK:
        opening = attrs.get("opening") or f"```{attrs.get('language', '')}"
        closing = attrs.get("closing") or "```"
        return f"{opening}\n{node.content}{closing}"

    inner = restore(node.children)
    if kind is NodeKind.PARAGRAPH:
        return inner
    if kind is NodeKind.BOLD:
        return f"**{inner}**"
    if kind is NodeKind.ITALIC:
        return f"*{inner}*"
    if kind is NodeKind.HEADING:
        return f"{'#' * int(attrs.get('level', 1))} {inner}"
    if kind is NodeKind.BLOCKQUOTE:
        return f">{attrs.get('spacing', ' ')}{inner}"
    if kind is NodeKind.LIST:
        return "\n".join(_restore_node(item) for item in node.children)
    if kind is NodeKind.ORDERED_LIST_ITEM:
        return f"{attrs.get('indent', '')}{attrs.get('number', '1')}. {inner}"
    if kind is NodeKind.UNORDERED_LIST_ITEM:
        return f"{attrs.get('indent', '')}{attrs.get('symbol', '-')} {inner}"
    if kind is NodeKind.TASK_LIST_ITEM:
        check = attrs.get("check") or ("x" if attrs.get("complete") else " ")
        return f"{attrs.get('indent', '')}{attrs.get('symbol', '-')} [{check}] {inner}"
    raise ValueError(f"unsupported node kind: {kind}")
