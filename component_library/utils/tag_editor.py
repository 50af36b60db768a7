"""
Tag editing state for one component form.

Mirrors the behaviour of a chip-style tag input: Enter adds the typed text,
clicking a suggestion adds it, Backspace on an empty input pops the last
tag. Everything is local; nothing is sent anywhere until the form submits.
"""

from __future__ import annotations

from typing import Iterable, Optional


class TagEditor:
    """Ordered, duplicate-free list of tags plus the text being typed."""

    def __init__(
        self,
        tags: Optional[Iterable[str]] = None,
        vocabulary: Optional[Iterable[str]] = None,
    ):
        """
        Initialize the editor.

        Args:
            tags: Starting tags (e.g. from the component being edited)
            vocabulary: Previously seen tags offered as completions
        """
        self.tags: list[str] = []
        for tag in tags or []:
            self._append(tag)
        self.vocabulary: list[str] = list(vocabulary or [])
        self.input: str = ""
        # Set whenever the input should grab focus again after an add
        self.focus_requested: bool = False

    def _append(self, tag: str) -> bool:
        cleaned = (tag or "").strip()
        if not cleaned or cleaned in self.tags:
            return False
        self.tags.append(cleaned)
        return True

    def set_input(self, text: str) -> None:
        """Record the text currently typed in the input."""
        self.input = text or ""

    def add(self, tag: str) -> bool:
        """
        Add a tag. Blank or already-present tags are ignored.

        Tags compare case-sensitively, so "nav" and "Nav" are two tags.

        Returns:
            True if the tag was appended
        """
        if not self._append(tag):
            return False
        self.input = ""
        self.focus_requested = True
        return True

    def commit(self) -> bool:
        """Enter key: add whatever is typed."""
        if not self.input:
            return False
        return self.add(self.input)

    def select_suggestion(self, suggestion: str) -> bool:
        """Clicking a completion behaves exactly like typing it and pressing Enter."""
        return self.add(suggestion)

    def remove(self, tag: str) -> bool:
        """Remove a tag by value."""
        if tag not in self.tags:
            return False
        self.tags = [t for t in self.tags if t != tag]
        return True

    def backspace(self) -> Optional[str]:
        """
        Backspace key.

        With text in the input it deletes the last character. On an empty
        input it removes the most recently added tag and returns it.
        """
        if self.input:
            self.input = self.input[:-1]
            return None
        if not self.tags:
            return None
        return self.tags.pop()

    @property
    def suggestions(self) -> list[str]:
        """Vocabulary entries containing the typed text that are not yet added."""
        if not self.input:
            return []
        fragment = self.input.lower()
        return [
            suggestion
            for suggestion in self.vocabulary
            if fragment in suggestion.lower() and suggestion not in self.tags
        ]

    def clear(self) -> None:
        self.tags = []
        self.input = ""
        self.focus_requested = False

    def to_dict(self) -> dict:
        return {
            "tags": list(self.tags),
            "input": self.input,
            "suggestions": self.suggestions,
            "focus": self.focus_requested,
        }
