"""
Tests for the yak entity model: path helpers and collection queries.
"""

import pytest

from yaks.core.yaks.models import (
    Yak,
    YakCollection,
    ancestor_ids,
    join_id,
    leaf_name,
    parent_path,
)


class TestPathHelpers:
    """Tests for leaf_name / parent_path / join_id / ancestor_ids."""

    @pytest.mark.parametrize(
        "yak_id,leaf,parent",
        [
            ("a", "a", None),
            ("a/b", "b", "a"),
            ("a/b/c", "c", "a/b"),
            ("ship v2/write docs", "write docs", "ship v2"),
        ],
    )
    def test_split(self, yak_id, leaf, parent):
        assert leaf_name(yak_id) == leaf
        assert parent_path(yak_id) == parent

    def test_join_inverts_split(self):
        for yak_id in ("a", "a/b", "a/b/c"):
            assert join_id(parent_path(yak_id), leaf_name(yak_id)) == yak_id

    def test_ancestor_ids_outermost_first(self):
        assert ancestor_ids("a/b/c") == ["a", "a/b"]
        assert ancestor_ids("a") == []


class TestYak:
    def test_derived_fields(self):
        yak = Yak(id="dx/rust")
        assert yak.name == "rust"
        assert yak.parent_id == "dx"
        assert not yak.is_root
        assert Yak(id="dx").is_root

    def test_defaults(self):
        yak = Yak(id="a")
        assert yak.done is False
        assert yak.context is None

    def test_frozen(self):
        yak = Yak(id="a")
        with pytest.raises(Exception):
            yak.done = True  # type: ignore[misc]

    def test_equality_is_field_for_field(self):
        assert Yak(id="a", done=True) == Yak(id="a", done=True)
        assert Yak(id="a") != Yak(id="a", context="x")

    @pytest.mark.parametrize(
        ("context", "expected"),
        [("  ", None), ("", None), (" x ", "x"), ("\nline one\nline two\n", "line one\nline two")],
    )
    def test_context_normalized(self, context, expected):
        assert Yak(id="a", context=context).context == expected


class TestYakCollection:
    def test_roots_derived_and_sorted(self, sample_collection):
        assert sample_collection.roots == ["chores", "ship v2"]

    def test_empty(self):
        collection = YakCollection()
        assert len(collection) == 0
        assert collection.roots == []
        assert collection.children("anything") == []

    def test_children_in_id_order(self, sample_collection):
        ids = [yak.id for yak in sample_collection.children("ship v2")]
        assert ids == ["ship v2/fix ci", "ship v2/write docs"]

    def test_descendants_pre_order(self, sample_collection):
        ids = [yak.id for yak in sample_collection.descendants("ship v2")]
        assert ids == ["ship v2/fix ci", "ship v2/fix ci/flaky test", "ship v2/write docs"]

    def test_descendants_of_unknown_is_empty(self, sample_collection):
        assert sample_collection.descendants("ghost") == []

    def test_ancestors(self, sample_collection):
        ids = [yak.id for yak in sample_collection.ancestors("ship v2/fix ci/flaky test")]
        assert ids == ["ship v2", "ship v2/fix ci"]

    def test_has_incomplete_children(self, sample_collection):
        assert sample_collection.has_incomplete_children("ship v2")
        assert not sample_collection.has_incomplete_children("chores")
        assert not sample_collection.has_incomplete_children("ghost")

    def test_is_ancestor(self, sample_collection):
        assert sample_collection.is_ancestor("ship v2", "ship v2/fix ci/flaky test")
        assert sample_collection.is_ancestor("ship v2/fix ci", "ship v2/fix ci/flaky test")
        assert not sample_collection.is_ancestor("chores", "ship v2/fix ci")
        assert not sample_collection.is_ancestor("ship v2", "ship v2")

    def test_with_yaks_returns_new_collection(self, sample_collection):
        updated = sample_collection.with_yaks(Yak(id="chores", done=True))
        assert updated.yaks["chores"].done
        assert not sample_collection.yaks["chores"].done

    def test_without(self, sample_collection):
        trimmed = sample_collection.without(["chores"])
        assert "chores" not in trimmed
        assert "chores" in sample_collection

    def test_values_sorted_by_id(self, sample_collection):
        ids = [yak.id for yak in sample_collection.values()]
        assert ids == sorted(ids)
