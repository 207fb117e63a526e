"""Tests for computing product tag changes."""

from orderease.services.tagging import diff_tags


class TestDiffTags:
    def test_adds_and_drops(self):
        diff = diff_tags([1, 2, 3], [3, 4])
        assert diff.to_add == [4]
        assert diff.to_delete == [1, 2]

    def test_unchanged_set_is_a_noop(self):
        diff = diff_tags([2, 1], [1, 2])
        assert diff.to_add == []
        assert diff.to_delete == []

    def test_empty_wanted_drops_everything(self):
        assert diff_tags([5, 6], []).to_delete == [5, 6]

    def test_duplicates_count_once(self):
        diff = diff_tags([], [7, 7, 8, 7])
        assert diff.to_add == [7, 8]
