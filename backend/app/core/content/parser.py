"""Parser for memo content.

Memos use a small line-oriented markdown dialect: fenced code blocks, ATX
headings, blockquotes, ordered/unordered/task list items and paragraphs, with
inline code, embedded content (`![[name]]`), links, auto links, bold, italic
and `#tags`. The tree keeps enough detail for `restore` to reproduce the
original text exactly.
"""

from __future__ import annotations

import re

from app.core.content.nodes import Node, NodeKind
from app.core.errors import ContentParseError

_FENCE_RE = re.compile(r"^```([^`\s]*)\s*$")
_HEADING_RE = re.compile(r"^(#{1,6}) (.*)$")
_BLOCKQUOTE_RE = re.compile(r"^>( ?)(.*)$")
_TASK_ITEM_RE = re.compile(r"^([ \t]*)([-*+]) \[([ xX])\] (.*)$")
_UNORDERED_ITEM_RE = re.compile(r"^([ \t]*)([-*+]) (.*)$")
_ORDERED_ITEM_RE = re.compile(r"^([ \t]*)(\d+)\. (.*)$")

_INLINE_CODE_RE = re.compile(r"`([^`\n]+)`")
_EMBEDDED_RE = re.compile(r"!\[\[([^\]\n]+)\]\]")
_LINK_RE = re.compile(r"\[([^\]\n]*)\]\(([^)\s]+)\)")
_BRACKETED_URL_RE = re.compile(r"<(https?://[^>\s]+)>")
_BARE_URL_RE = re.compile(r"https?://[^\s<>()\[\]]+")
_BOLD_RE = re.compile(r"\*\*(?=\S)(.+?)(?<=\S)\*\*")
_ITALIC_RE = re.compile(r"\*(?=[^\s*])(.+?)(?<=[^\s*])\*")
_TAG_SEGMENT = r"[^\s#*`\[\](){}<>,.;:!?\"'/]+"
# Slash-separated segments; a trailing or doubled slash ends the tag
_TAG_RE = re.compile(rf"#(/?{_TAG_SEGMENT}(?:/{_TAG_SEGMENT})*)")

_TAG_BOUNDARY = frozenset("([")


def parse(text: str) -> list[Node]:
    """Parse memo content into a list of block nodes.

    Lines are separated by `LINE_BREAK` leaves; consecutive list items are
    grouped under one `LIST` container.
    """
    if not isinstance(text, str):
        raise ContentParseError(f"memo content must be a string, got {type(text).__name__}")

    lines = text.split("\n")
    nodes: list[Node] = []
    index = 0
    while index < len(lines):
        if index > 0:
            nodes.append(Node.leaf(NodeKind.LINE_BREAK))
        line = lines[index]

        fence = _FENCE_RE.match(line)
        if fence:
            closing = _find_closing_fence(lines, index + 1)
            if closing is not None:
                body = "".join(f"{body_line}\n" for body_line in lines[index + 1:closing])
                nodes.append(
                    Node.leaf(
                        NodeKind.CODE_BLOCK,
                        body,
                        language=fence.group(1),
                        opening=line,
                        closing=lines[closing],
                    )
                )
                index = closing + 1
                continue

        if _match_list_item(line):
            items: list[Node] = []
            while index < len(lines) and _match_list_item(lines[index]):
                items.append(_parse_list_item(lines[index]))
                index += 1
            nodes.append(Node.container(NodeKind.LIST, items))
            continue

        if line:
            nodes.append(_parse_block_line(line))
        index += 1
    return nodes


def _find_closing_fence(lines: list[str], start: int) -> int | None:
    for index in range(start, len(lines)):
        if lines[index].rstrip() == "```":
            return index
    return None


def _match_list_item(line: str) -> re.Match[str] | None:
    return _TASK_ITEM_RE.match(line) or _ORDERED_ITEM_RE.match(line) or _UNORDERED_ITEM_RE.match(line)


def _parse_list_item(line: str) -> Node:
    task = _TASK_ITEM_RE.match(line)
    if task:
        indent, symbol, check, rest = task.groups()
        return Node.container(
            NodeKind.TASK_LIST_ITEM,
            parse_inline(rest),
            indent=indent,
            symbol=symbol,
            check=check,
            complete=check in {"x", "X"},
        )
    ordered = _ORDERED_ITEM_RE.match(line)
    if ordered:
        indent, number, rest = ordered.groups()
        return Node.container(NodeKind.ORDERED_LIST_ITEM, parse_inline(rest), indent=indent, number=number)
    unordered = _UNORDERED_ITEM_RE.match(line)
    if unordered is None:
        raise ContentParseError(f"not a list item: {line!r}")
    indent, symbol, rest = unordered.groups()
    return Node.container(NodeKind.UNORDERED_LIST_ITEM, parse_inline(rest), indent=indent, symbol=symbol)


def _parse_block_line(line: str) -> Node:
    heading = _HEADING_RE.match(line)
    if heading:
        marks, rest = heading.groups()
        return Node.container(NodeKind.HEADING, parse_inline(rest), level=len(marks))
    quote = _BLOCKQUOTE_RE.match(line)
    if quote:
        spacing, rest = quote.groups()
        return Node.container(NodeKind.BLOCKQUOTE, parse_inline(rest), spacing=spacing)
    return Node.container(NodeKind.PARAGRAPH, parse_inline(line))


def parse_inline(text: str) -> list[Node]:
    """Parse the inline content of a single line."""
    nodes: list[Node] = []
    buffer: list[str] = []
    pos = 0
    while pos < len(text):
        matched = _match_inline(text, pos)
        if matched is None:
            buffer.append(text[pos])
            pos += 1
            continue
        node, end = matched
        if buffer:
            nodes.append(Node.leaf(NodeKind.TEXT, "".join(buffer)))
            buffer = []
        nodes.append(node)
        pos = end
    if buffer:
        nodes.append(Node.leaf(NodeKind.TEXT, "".join(buffer)))
    return nodes


def _match_inline(text: str, pos: int) -> tuple[Node, int] | None:
    char = text[pos]
    if char == "`":
        m = _INLINE_CODE_RE.match(text, pos)
        if m:
            return Node.leaf(NodeKind.CODE, m.group(1)), m.end()
    elif char == "!":
        m = _EMBEDDED_RE.match(text, pos)
        if m:
            return Node.leaf(NodeKind.EMBEDDED_CONTENT, m.group(1)), m.end()
    elif char == "[":
        m = _LINK_RE.match(text, pos)
        if m:
            return Node.leaf(NodeKind.LINK, m.group(1), url=m.group(2)), m.end()
    elif char == "<":
        m = _BRACKETED_URL_RE.match(text, pos)
        if m:
            return Node.leaf(NodeKind.AUTO_LINK, m.group(1), bracketed=True), m.end()
    elif char == "h":
        if pos == 0 or not text[pos - 1].isalnum():
            m = _BARE_URL_RE.match(text, pos)
            if m:
                return Node.leaf(NodeKind.AUTO_LINK, m.group(0), bracketed=False), m.end()
    elif char == "*":
        m = _BOLD_RE.match(text, pos)
        if m:
            return Node.container(NodeKind.BOLD, parse_inline(m.group(1))), m.end()
        m = _ITALIC_RE.match(text, pos)
        if m:
            return Node.container(NodeKind.ITALIC, parse_inline(m.group(1))), m.end()
    elif char == "#":
        if pos == 0 or text[pos - 1].isspace() or text[pos - 1] in _TAG_BOUNDARY:
            m = _TAG_RE.match(text, pos)
            if m:
                return Node.leaf(NodeKind.TAG, m.group(1)), m.end()
    return None
