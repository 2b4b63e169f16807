from uuid import uuid4

import pytest

from app.core.models.memo import Memo
from app.core.schemas.tag import TagNode
from app.core.tags.aggregation import (
    aggregate_tags,
    build_hierarchy,
    calculate_total_count,
    filter_by_prefix,
)

pytestmark = pytest.mark.unit


def _memo(*tags):
    return Memo(content="", tags=list(tags))


@pytest.fixture
def three_level_memos():
    return [
        _memo("/work"),
        _memo("/work/project1"),
        _memo("/work/project1/backend"),
        _memo("/work/project1/backend", "/personal"),
    ]


class TestAggregateTags:
    def test_direct_counts_and_memo_ids(self, three_level_memos):
        tag_map = aggregate_tags(three_level_memos)

        assert set(tag_map) == {"/work", "/work/project1", "/work/project1/backend", "/personal"}
        backend = tag_map["/work/project1/backend"]
        assert backend.direct_count == 2
        assert backend.memo_ids == [three_level_memos[2].id, three_level_memos[3].id]
        assert backend.segments == ["work", "project1", "backend"]

    def test_total_equals_direct_before_hierarchy(self, three_level_memos):
        tag_map = aggregate_tags(three_level_memos)

        assert all(node.total_count == node.direct_count for node in tag_map.values())

    def test_memos_without_tags(self):
        assert aggregate_tags([_memo(), _memo()]) == {}


class TestBuildHierarchy:
    def test_three_level_totals(self, three_level_memos):
        tags = build_hierarchy(aggregate_tags(three_level_memos).values())
        by_path = {node.path: node for node in tags}

        assert by_path["/work"].total_count == 4
        assert by_path["/work/project1"].total_count == 3
        assert by_path["/work/project1/backend"].total_count == 2
        assert by_path["/personal"].total_count == 1

    def test_total_is_sum_of_direct_counts_below(self, three_level_memos):
        tags = build_hierarchy(aggregate_tags(three_level_memos).values())

        for node in tags:
            below = sum(
                other.direct_count
                for other in tags
                if other.path == node.path or other.path.startswith(node.path + "/")
            )
            assert node.total_count == below

    def test_child_and_parent_links(self, three_level_memos):
        tags = build_hierarchy(aggregate_tags(three_level_memos).values())
        by_path = {node.path: node for node in tags}

        assert by_path["/work"].child_paths == ["/work/project1"]
        assert by_path["/work/project1"].parent_path == "/work"
        assert by_path["/work"].parent_path is None
        assert by_path["/work/project1/backend"].child_paths == []

    def test_missing_ancestor_is_not_synthesized(self):
        tags = build_hierarchy(aggregate_tags([_memo("/a/b/c")]).values())

        assert [node.path for node in tags] == ["/a/b/c"]
        assert tags[0].parent_path is None
        assert tags[0].total_count == 1

    def test_skipped_middle_level_breaks_the_chain(self):
        tags = build_hierarchy(aggregate_tags([_memo("/a"), _memo("/a/b/c")]).values())
        by_path = {node.path: node for node in tags}

        assert by_path["/a"].child_paths == []
        assert by_path["/a"].total_count == 1

    def test_sibling_with_shared_prefix_is_not_a_child(self):
        tags = build_hierarchy(aggregate_tags([_memo("/work"), _memo("/workshop")]).values())
        by_path = {node.path: node for node in tags}

        assert by_path["/work"].child_paths == []
        assert by_path["/workshop"].parent_path is None


class TestCalculateTotalCount:
    def test_cycle_terminates(self):
        a = TagNode(path="/a", direct_count=1, child_paths=["/b"])
        b = TagNode(path="/b", direct_count=2, child_paths=["/a"])
        tag_map = {"/a": a, "/b": b}

        assert calculate_total_count(a, tag_map, set()) == 3
        assert calculate_total_count(b, tag_map, set()) == 3

    def test_self_reference(self):
        node = TagNode(path="/loop", direct_count=5, child_paths=["/loop"])

        assert calculate_total_count(node, {"/loop": node}, set()) == 5

    def test_unknown_child_is_ignored(self):
        node = TagNode(path="/a", direct_count=1, child_paths=["/a/ghost"])

        assert calculate_total_count(node, {"/a": node}, set()) == 1


class TestFilterByPrefix:
    def test_plain_string_prefix(self):
        tag_map = aggregate_tags([_memo("/work"), _memo("/workshop"), _memo("/home")])

        assert set(filter_by_prefix(tag_map, "/work")) == {"/work", "/workshop"}

    def test_no_prefix_keeps_everything(self):
        tag_map = aggregate_tags([_memo("/work"), _memo("/home")])

        assert set(filter_by_prefix(tag_map, None)) == {"/work", "/home"}

    def test_returns_new_map(self):
        tag_map = aggregate_tags([_memo("/work")])
        filtered = filter_by_prefix(tag_map, None)
        filtered.pop("/work")

        assert "/work" in tag_map


def test_memo_ids_are_unique_per_tag():
    memo_id = uuid4()
    memo = Memo(id=memo_id, content="", tags=["/x"])

    tag_map = aggregate_tags([memo, memo])

    assert tag_map["/x"].memo_ids == [memo_id]


def test_direct_counts_sum_to_memo_tag_pairs(three_level_memos):
    tag_map = aggregate_tags(three_level_memos)

    assert sum(node.direct_count for node in tag_map.values()) == sum(len(m.tags) for m in three_level_memos)


def test_memo_tag_cache_is_canonical():
    memo = Memo(content="", tags=["work", "/work", " ", "/a/b"])

    assert memo.tags == ["/work", "/a/b"]


def test_memo_ids_keep_order_for_many_memos():
    memos = [_memo("/shared") for _ in range(2000)]
    tag_map = aggregate_tags(memos + memos)

    node = tag_map["/shared"]
    assert node.memo_ids == [m.id for m in memos]
    assert node.direct_count == 4000
