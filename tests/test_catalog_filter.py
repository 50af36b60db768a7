"""
Tests for search and tag filtering
"""
import pytest

from component_library.utils.catalog_filter import collect_tags, filter_components

from conftest import make_component


class TestFilterComponents:
    """Tests for filter_components"""

    def test_empty_query_and_tags_is_identity(self, sample_components):
        """No query and no tags returns the whole list in the same order"""
        result = filter_components(sample_components, "", [])

        assert result == sample_components
        assert result is not sample_components

    def test_query_is_case_insensitive_substring(self, sample_components):
        result = filter_components(sample_components, "BUTT")

        assert [c.name for c in result] == ["Primary Button"]

    def test_query_does_not_search_code_or_tags(self, sample_components):
        assert filter_components(sample_components, "nav>") == []
        assert filter_components(sample_components, "layout") == []

    def test_required_tags_are_anded(self, sample_components):
        assert [c.id for c in filter_components(sample_components, "", ["layout"])] == ["3", "1"]
        assert [c.id for c in filter_components(sample_components, "", ["layout", "nav"])] == ["3"]
        assert filter_components(sample_components, "", ["nav", "form"]) == []

    def test_tags_are_case_sensitive(self, sample_components):
        assert filter_components(sample_components, "", ["Layout"]) == []

    def test_query_and_tags_combine(self, sample_components):
        result = filter_components(sample_components, "card", ["layout"])

        assert [c.name for c in result] == ["Card"]

    def test_preserves_input_order(self):
        components = [make_component(str(i), f"Item {i}", ["x"]) for i in range(10, 0, -1)]

        result = filter_components(components, "item", ["x"])

        assert [c.id for c in result] == [str(i) for i in range(10, 0, -1)]

    @pytest.mark.parametrize(
        "query,tags",
        [
            ("", []),
            ("a", []),
            ("", ["layout"]),
            ("R", ["layout"]),
            ("zzz", []),
        ],
    )
    def test_results_are_subset_and_satisfy_filter(self, sample_components, query, tags):
        result = filter_components(sample_components, query, tags)

        for component in result:
            assert component in sample_components
            assert query.lower() in component.name.lower()
            assert set(tags) <= set(component.tags)

    def test_empty_list(self):
        assert filter_components([], "x", ["y"]) == []


class TestCollectTags:
    """Tests for collect_tags"""

    def test_distinct_in_first_seen_order(self, sample_components):
        assert collect_tags(sample_components) == ["layout", "nav", "form", "button"]

    def test_empty(self):
        assert collect_tags([]) == []
