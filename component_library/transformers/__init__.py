"""Component models and row transformation."""

from .component_transformer import (
    Component,
    ComponentDraft,
    ComponentTransformer,
    ComponentUpdate,
    describe_validation_error,
)

__all__ = [
    "Component",
    "ComponentDraft",
    "ComponentTransformer",
    "ComponentUpdate",
    "describe_validation_error",
]
