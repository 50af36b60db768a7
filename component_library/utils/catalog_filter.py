"""
Search and tag filtering over the in-memory component list.

Both helpers are pure: same inputs, same output, input order preserved
(the backend already returns newest first).
"""

from __future__ import annotations

from typing import Iterable, Sequence

from component_library.transformers import Component


def matches_query(component: Component, query: str) -> bool:
    """Case-insensitive substring match on the component name."""
    if not query:
        return True
    return query.lower() in component.name.lower()


def has_all_tags(component: Component, required_tags: Iterable[str]) -> bool:
    """True when every required tag is on the component (AND, case-sensitive)."""
    tags = set(component.tags)
    return all(tag in tags for tag in required_tags)


def filter_components(
    components: Sequence[Component],
    query: str = "",
    required_tags: Iterable[str] = (),
) -> list[Component]:
    """
    Return the visible subset of components.

    Args:
        components: Full list, in display order.
        query: Free text matched against the name. Empty matches all.
        required_tags: Tags a component must all carry. Empty matches all.

    Returns:
        New list with the matching components, in input order.

    Example:
        >>> nav = Component(id="1", name="Navbar", tags=["layout", "nav"])
        >>> btn = Component(id="2", name="Button", tags=["form"])
        >>> [c.name for c in filter_components([nav, btn], "BAR")]
        ['Navbar']
        >>> [c.name for c in filter_components([nav, btn], "", ["nav", "layout"])]
        ['Navbar']
        >>> [c.name for c in filter_components([nav, btn], "", ["nav", "form"])]
        []
    """
    required = list(required_tags)
    return [
        component
        for component in components
        if matches_query(component, query) and has_all_tags(component, required)
    ]


def collect_tags(components: Iterable[Component]) -> list[str]:
    """Every distinct tag across the components, in first-seen order."""
    seen: set[str] = set()
    vocabulary: list[str] = []
    for component in components:
        for tag in component.tags:
            if tag not in seen:
                seen.add(tag)
                vocabulary.append(tag)
    return vocabulary
