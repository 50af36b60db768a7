"""Catalog services: the per-user view and its forms."""

from .catalog_view import (
    EMPTY_STATE_MESSAGE,
    AuthState,
    CatalogView,
    ComponentViewState,
    DisplayMode,
    Notification,
)
from .component_forms import CreateComponentForm, EditComponentForm, ImageFile

__all__ = [
    "EMPTY_STATE_MESSAGE",
    "AuthState",
    "CatalogView",
    "ComponentViewState",
    "CreateComponentForm",
    "DisplayMode",
    "EditComponentForm",
    "ImageFile",
    "Notification",
]
