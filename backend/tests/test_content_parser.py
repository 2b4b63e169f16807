import pytest

from app.core.content.nodes import Node, NodeKind, traverse
from app.core.content.parser import parse, parse_inline
from app.core.content.restore import restore
from app.core.errors import ContentParseError

pytestmark = pytest.mark.unit


def _kinds(nodes):
    seen = []
    traverse(nodes, lambda node: seen.append(node.kind))
    return seen


class TestParseInline:
    """Inline constructs inside a single line."""

    def test_tag_between_text(self):
        nodes = parse_inline("Meeting notes #work are important")

        assert [n.kind for n in nodes] == [NodeKind.TEXT, NodeKind.TAG, NodeKind.TEXT]
        assert nodes[1].content == "work"
        assert nodes[2].content == " are important"

    def test_nested_tag_path(self):
        nodes = parse_inline("#work/project1/backend")

        assert nodes == [Node.leaf(NodeKind.TAG, "work/project1/backend")]

    def test_tag_stops_at_punctuation(self):
        nodes = parse_inline("done with #release.")

        assert nodes[1].content == "release"
        assert nodes[2].content == "."

    def test_hash_inside_word_is_not_a_tag(self):
        nodes = parse_inline("issue#42 and C#")

        assert NodeKind.TAG not in [n.kind for n in nodes]

    def test_tag_inside_inline_code_is_code(self):
        nodes = parse_inline("run `grep #todo` now")

        assert [n.kind for n in nodes] == [NodeKind.TEXT, NodeKind.CODE, NodeKind.TEXT]

    def test_tag_inside_bold(self):
        nodes = parse_inline("**urgent #ops**")

        assert nodes[0].kind is NodeKind.BOLD
        assert NodeKind.TAG in _kinds(nodes)

    def test_links_and_embeds(self):
        nodes = parse_inline("see [docs](https://example.com) and ![[memos/1]] or <https://a.io>")

        kinds = [n.kind for n in nodes]
        assert NodeKind.LINK in kinds
        assert NodeKind.EMBEDDED_CONTENT in kinds
        assert NodeKind.AUTO_LINK in kinds

    def test_tag_after_parenthesis(self):
        nodes = parse_inline("(#work)")

        assert nodes[1] == Node.leaf(NodeKind.TAG, "work")


class TestParseBlocks:
    def test_lines_are_separated_by_line_breaks(self):
        nodes = parse("first\nsecond")

        assert [n.kind for n in nodes] == [NodeKind.PARAGRAPH, NodeKind.LINE_BREAK, NodeKind.PARAGRAPH]

    def test_heading_is_not_a_tag(self):
        nodes = parse("# Title #work")

        assert nodes[0].kind is NodeKind.HEADING
        assert nodes[0].attrs["level"] == 1
        assert [n.content for n in nodes[0].children if n.kind is NodeKind.TAG] == ["work"]

    def test_task_list_items_are_grouped(self):
        nodes = parse("- [ ] write tests #dev\n- [x] ship it")

        assert len(nodes) == 1
        assert nodes[0].kind is NodeKind.LIST
        first, second = nodes[0].children
        assert first.kind is NodeKind.TASK_LIST_ITEM
        assert first.attrs["complete"] is False
        assert second.attrs["complete"] is True

    def test_code_block_hides_tags(self):
        nodes = parse("```python\nx = 1  #comment\n```")

        assert nodes[0].kind is NodeKind.CODE_BLOCK
        assert nodes[0].attrs["language"] == "python"
        assert NodeKind.TAG not in _kinds(nodes)

    def test_unclosed_fence_is_a_paragraph(self):
        nodes = parse("```\n#work")

        assert NodeKind.CODE_BLOCK not in _kinds(nodes)
        assert NodeKind.TAG in _kinds(nodes)

    def test_non_string_input_is_rejected(self):
        with pytest.raises(ContentParseError):
            parse(None)


class TestRestore:
    """Restoring an unmodified tree gives back the exact source."""

    @pytest.mark.parametrize(
        "content",
        [
            "Meeting notes #work are important",
            "# Heading\n\n> quoted #idea\n>no space",
            "1. one\n2. two #list\n\n* star\n  + nested [ref](http://x.y)",
            "- [ ] open #todo\n- [X] closed\ntrailing line\n",
            "```go\nfmt.Println(\"#nope\")\n```\nafter **bold *it* text** https://example.com/a",
            "   leading spaces #tag   ",
        ],
    )
    def test_restore_is_exact(self, content):
        assert restore(parse(content)) == content

    def test_empty_content(self):
        assert parse("") == []
        assert restore([]) == ""
