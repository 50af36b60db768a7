"""
Tests for the tag editor
"""
from component_library.utils.tag_editor import TagEditor


class TestAddRemove:
    """Adding and removing tags"""

    def test_add_appends_and_clears_input(self):
        editor = TagEditor()
        editor.set_input("nav")

        assert editor.add("nav") is True
        assert editor.tags == ["nav"]
        assert editor.input == ""
        assert editor.focus_requested is True

    def test_add_existing_tag_is_noop(self):
        editor = TagEditor(tags=["nav"])
        editor.set_input("nav")

        assert editor.add("nav") is False
        assert editor.tags == ["nav"]
        # Input is left as typed when nothing was added
        assert editor.input == "nav"

    def test_tags_are_case_sensitive(self):
        editor = TagEditor()

        editor.add("nav")
        editor.add("Nav")

        assert editor.tags == ["nav", "Nav"]

    def test_blank_tags_are_ignored(self):
        editor = TagEditor()

        assert editor.add("") is False
        assert editor.add("   ") is False
        assert editor.tags == []

    def test_whitespace_is_stripped(self):
        editor = TagEditor()

        editor.add("  layout ")

        assert editor.tags == ["layout"]
        assert editor.add("layout") is False

    def test_remove_by_value(self):
        editor = TagEditor(tags=["a", "b", "c"])

        assert editor.remove("b") is True
        assert editor.tags == ["a", "c"]
        assert editor.remove("zzz") is False

    def test_initial_tags_are_deduplicated(self):
        editor = TagEditor(tags=["a", "a", "b"])

        assert editor.tags == ["a", "b"]


class TestKeyboard:
    """Enter and Backspace handling"""

    def test_commit_adds_typed_text(self):
        editor = TagEditor()
        editor.set_input("forms")

        assert editor.commit() is True
        assert editor.tags == ["forms"]
        assert editor.input == ""

    def test_commit_with_empty_input_does_nothing(self):
        editor = TagEditor(tags=["a"])

        assert editor.commit() is False
        assert editor.tags == ["a"]

    def test_backspace_on_empty_input_walks_backwards(self):
        editor = TagEditor(tags=["a", "b", "c"])

        assert editor.backspace() == "c"
        assert editor.tags == ["a", "b"]
        assert editor.backspace() == "b"
        assert editor.backspace() == "a"
        assert editor.tags == []
        assert editor.backspace() is None

    def test_backspace_with_text_edits_input_only(self):
        editor = TagEditor(tags=["a"])
        editor.set_input("ne")

        assert editor.backspace() is None
        assert editor.input == "n"
        assert editor.tags == ["a"]


class TestSuggestions:
    """Autocomplete against the vocabulary"""

    def test_no_suggestions_without_input(self):
        editor = TagEditor(vocabulary=["layout", "nav"])

        assert editor.suggestions == []

    def test_case_insensitive_contains(self):
        editor = TagEditor(vocabulary=["Layout", "navigation", "form"])
        editor.set_input("A")

        assert editor.suggestions == ["Layout", "navigation"]

    def test_excludes_already_added(self):
        editor = TagEditor(tags=["layout"], vocabulary=["layout", "flex-layout"])
        editor.set_input("lay")

        assert editor.suggestions == ["flex-layout"]

    def test_select_suggestion_behaves_like_add(self):
        editor = TagEditor(vocabulary=["layout", "nav"])
        editor.set_input("la")

        assert editor.select_suggestion("layout") is True
        assert editor.tags == ["layout"]
        assert editor.input == ""
        assert editor.suggestions == []
        assert editor.select_suggestion("layout") is False

    def test_to_dict(self):
        editor = TagEditor(tags=["a"], vocabulary=["ab", "a"])
        editor.set_input("a")

        assert editor.to_dict() == {
            "tags": ["a"],
            "input": "a",
            "suggestions": ["ab"],
            "focus": False,
        }
