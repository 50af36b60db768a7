"""
Contract for the hosted backend that owns auth, rows, and image storage.
"""

from dataclasses import dataclass
from typing import Optional, Protocol

from component_library.transformers import Component, ComponentDraft, ComponentUpdate


@dataclass
class SessionInfo:
    """The part of an auth session the catalog cares about."""

    user_id: str
    email: Optional[str] = None


class BackendGateway(Protocol):
    """
    Everything the catalog needs from the backend.

    Implementations raise errors from component_library.errors only.
    """

    def authenticate(self, email: str, redirect_to: Optional[str] = None) -> None:
        """Send a one-time sign-in link to the address."""
        ...

    def complete_sign_in(
        self,
        token_hash: Optional[str] = None,
        code: Optional[str] = None,
        otp_type: str = "email",
    ) -> SessionInfo:
        """Finish the e-mail link round-trip and establish a session."""
        ...

    def current_session(self) -> Optional[SessionInfo]:
        ...

    def sign_out(self) -> None:
        ...

    def list_components(self) -> list[Component]:
        """All components visible to the signed-in user, newest first."""
        ...

    def insert_component(self, draft: ComponentDraft) -> Component:
        ...

    def update_component(self, component_id: str, fields: ComponentUpdate) -> Component:
        ...

    def delete_component(self, component_id: str) -> None:
        ...

    def upload_image(
        self, data: bytes, file_name: str, content_type: Optional[str] = None
    ) -> str:
        """Store an image and return its public URL."""
        ...
