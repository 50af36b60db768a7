"""Utility modules for the component catalog."""

from .catalog_filter import collect_tags, filter_components
from .tag_editor import TagEditor

__all__ = ["collect_tags", "filter_components", "TagEditor"]
