"""
Catalog view: the per-user orchestrator behind the web page.

Holds the authoritative component list, the auth state, per-component view
state, the open form, and the notifications the page shows as toasts. Every
public action catches CatalogError at its own boundary, prints a diagnostic
line, and records a notification; nothing propagates to the web layer.
"""

import re
import threading
import time
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Callable, Optional

from rich.console import Console

from config.settings import AppConfig, config
from component_library.errors import (
    AccessError,
    CatalogError,
    NotFoundError,
    ValidationError,
)
from component_library.gateway.base import BackendGateway, SessionInfo
from component_library.services.component_forms import (
    ComponentForm,
    CreateComponentForm,
    EditComponentForm,
    ImageFile,
)
from component_library.transformers import Component
from component_library.utils.catalog_filter import collect_tags, filter_components

console = Console()

EMPTY_STATE_MESSAGE = "No components found"
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _text(value, field_name: str) -> Optional[str]:
    """Pass through None or a string; anything else from a request body is refused."""
    if value is None or isinstance(value, str):
        return value
    raise ValidationError(f"{field_name} must be text")


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class DisplayMode(str, Enum):
    PREVIEW = "preview"
    CODE = "code"


@dataclass
class ComponentViewState:
    """Transient per-component UI state. Rebuilt on every reload."""

    display_mode: DisplayMode = DisplayMode.PREVIEW
    # Clock reading of the last copy; None when not acknowledged
    copied_at: Optional[float] = None


@dataclass
class Notification:
    """A toast for the user."""

    title: str
    description: str
    variant: str = "default"


class CatalogView:
    """
    Orchestrates one user's catalog session.

    Data is only fetched while authenticated, and the list is re-fetched in
    full after every successful create/update/delete.
    """

    def __init__(
        self,
        gateway: BackendGateway,
        settings: Optional[AppConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the view.

        Args:
            gateway: Backend gateway bound to this user's session
            settings: App settings (defaults to the global config)
            clock: Monotonic clock, injectable for the copy acknowledgment
        """
        self.gateway = gateway
        self.settings = settings or config
        self.clock = clock
        # Flask may serve two requests for the same browser at once
        self.lock = threading.RLock()

        self.auth_state = AuthState.UNAUTHENTICATED
        self.session: Optional[SessionInfo] = None
        self.sign_in_sent_to: Optional[str] = None
        self.session_checked = False

        self.components: list[Component] = []
        self.view_state: dict[str, ComponentViewState] = {}
        self.search = ""
        self.selected_tags: list[str] = []
        self.form: Optional[ComponentForm] = None
        self.notifications: list[Notification] = []
        # Most recent failure, read by the web layer to pick a status code
        self.last_error: Optional[CatalogError] = None
        # Clock reading of the last request, used to expire idle views
        self.last_seen = clock()

    def touch(self) -> None:
        self.last_seen = self.clock()

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def notify(self, title: str, description: str, variant: str = "default") -> None:
        self.notifications.append(Notification(title, description, variant))

    def drain_notifications(self) -> list[dict]:
        """Return pending notifications and forget them."""
        pending = [asdict(n) for n in self.notifications]
        self.notifications = []
        return pending

    def _fail(self, action: str, error: CatalogError, description: str) -> None:
        """Log a failure for the operator and tell the user in one short line."""
        console.print(f"[red]Error {action}: {error}[/red]")
        self.last_error = error
        if isinstance(error, ValidationError):
            description = error.message
        self.notify("Error", description, variant="destructive")
        if isinstance(error, AccessError) and self.is_authenticated:
            self._enter_unauthenticated()

    # ------------------------------------------------------------------
    # Authentication state machine
    # ------------------------------------------------------------------

    @property
    def is_authenticated(self) -> bool:
        return self.auth_state == AuthState.AUTHENTICATED

    def _require_auth(self, action: str) -> None:
        if not self.is_authenticated:
            raise AccessError(f"{action} requires a signed-in user")

    def _enter_authenticated(self, session: SessionInfo) -> None:
        self.auth_state = AuthState.AUTHENTICATED
        self.session = session
        self.sign_in_sent_to = None
        console.print(f"[green]✓ Signed in as {session.email or session.user_id}[/green]")
        self.reload()

    def _enter_unauthenticated(self) -> None:
        """Drop the session and every piece of cached user data."""
        self.auth_state = AuthState.UNAUTHENTICATED
        self.session = None
        self.components = []
        self.view_state = {}
        self.search = ""
        self.selected_tags = []
        self.form = None

    def check_session(self) -> bool:
        """Initial load: pick up an existing session, if any."""
        self.session_checked = True
        try:
            session = self.gateway.current_session()
        except CatalogError as e:
            self._fail("checking session", e, "Failed to check your session")
            return False

        if session is None:
            if self.is_authenticated:
                self._enter_unauthenticated()
            return False
        if not self.is_authenticated:
            self._enter_authenticated(session)
        return True

    def request_sign_in(self, email: str) -> bool:
        """Ask the backend to e-mail a one-time sign-in link."""
        email = (email or "").strip()
        try:
            if not EMAIL_PATTERN.match(email):
                raise ValidationError("Please enter a valid email address")
            redirect_to = self.settings.viewer.site_url.rstrip("/") + "/auth/callback"
            self.gateway.authenticate(email, redirect_to=redirect_to)
        except CatalogError as e:
            self._fail("requesting magic link", e, "Failed to send magic link. Please try again.")
            return False

        self.sign_in_sent_to = email
        self.notify("Magic Link Sent", "Check your email for the login link.")
        return True

    def complete_sign_in(
        self,
        token_hash: Optional[str] = None,
        code: Optional[str] = None,
        otp_type: str = "email",
    ) -> bool:
        """Magic link callback: establish the session and load the catalog."""
        try:
            session = self.gateway.complete_sign_in(
                token_hash=token_hash, code=code, otp_type=otp_type
            )
        except CatalogError as e:
            self._fail("completing sign-in", e, "Sign-in link is invalid or has expired")
            return False

        self.session_checked = True
        self._enter_authenticated(session)
        # The first load can still reject the new session
        return self.is_authenticated

    def sign_out(self) -> bool:
        """Explicit sign-out. Local state is cleared even if the backend call fails."""
        ok = True
        try:
            self.gateway.sign_out()
        except CatalogError as e:
            self._fail("signing out", e, "Failed to sign out cleanly")
            ok = False
        self._enter_unauthenticated()
        return ok

    # ------------------------------------------------------------------
    # Loading and deriving the visible list
    # ------------------------------------------------------------------

    def reload(self) -> bool:
        """Re-fetch the full list. Resets every per-component view state."""
        if not self.is_authenticated:
            return False
        try:
            components = self.gateway.list_components()
        except CatalogError as e:
            self._fail("loading components", e, "Failed to load components")
            return False

        self.components = components
        self.view_state = {c.id: ComponentViewState() for c in components}
        vocabulary = set(self.vocabulary)
        self.selected_tags = [t for t in self.selected_tags if t in vocabulary]
        if self.settings.logging.verbose:
            console.print(f"[dim]Loaded {len(components)} components[/dim]")
        return True

    @property
    def vocabulary(self) -> list[str]:
        return collect_tags(self.components)

    @property
    def visible_components(self) -> list[Component]:
        return filter_components(self.components, self.search, self.selected_tags)

    def set_search(self, query: Optional[str]) -> bool:
        try:
            self.search = _text(query, "Search") or ""
        except CatalogError as e:
            self._fail("searching", e, "Invalid search")
            return False
        return True

    def toggle_tag(self, tag: Optional[str]) -> bool:
        """Add a tag to the required set, or remove it if already there."""
        try:
            tag = _text(tag, "Tag")
        except CatalogError as e:
            self._fail("filtering by tag", e, "Invalid tag")
            return False
        if tag in self.selected_tags:
            self.selected_tags = [t for t in self.selected_tags if t != tag]
        elif tag:
            self.selected_tags = self.selected_tags + [tag]
        return True

    def clear_tags(self) -> None:
        self.selected_tags = []

    def get_component(self, component_id: str) -> Component:
        for component in self.components:
            if component.id == component_id:
                return component
        raise NotFoundError(f"Component {component_id} not found")

    # ------------------------------------------------------------------
    # Per-component view state
    # ------------------------------------------------------------------

    def _state_for(self, component_id: str) -> ComponentViewState:
        self.get_component(component_id)
        return self.view_state.setdefault(component_id, ComponentViewState())

    def display_mode(self, component_id: str) -> DisplayMode:
        state = self.view_state.get(component_id)
        return state.display_mode if state else DisplayMode.PREVIEW

    def set_display_mode(self, component_id: str, mode: str) -> bool:
        try:
            try:
                display_mode = DisplayMode(mode)
            except ValueError:
                raise ValidationError(f"Unknown display mode: {mode}") from None
            self._state_for(component_id).display_mode = display_mode
        except CatalogError as e:
            self._fail("switching display mode", e, "Failed to switch view")
            return False
        return True

    def copy_code(self, component_id: str) -> Optional[str]:
        """
        Hand back the code for the clipboard and start the acknowledgment.

        Returns:
            The code payload, or None if the component is unknown
        """
        try:
            component = self.get_component(component_id)
            self._state_for(component_id).copied_at = self.clock()
        except CatalogError as e:
            self._fail("copying code", e, "Failed to copy code")
            return None

        self.notify("Copied!", "Component code copied to clipboard.")
        return component.code

    def is_copy_acknowledged(self, component_id: str) -> bool:
        """True for copy_ack_seconds after a copy, then false again on its own."""
        state = self.view_state.get(component_id)
        if state is None or state.copied_at is None:
            return False
        if self.clock() - state.copied_at < self.settings.viewer.copy_ack_seconds:
            return True
        state.copied_at = None
        return False

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def delete_component(self, component_id: str, confirmation: str) -> bool:
        """
        Delete a component once the user has retyped its exact name.

        The comparison is exact and case-sensitive; a mismatch never
        reaches the backend.
        """
        try:
            self._require_auth("Deleting component")
            component = self.get_component(component_id)
            if confirmation != component.name:
                raise ValidationError(
                    "Component name does not match. Type the exact name to confirm."
                )
            self.gateway.delete_component(component_id)
        except CatalogError as e:
            self._fail("deleting component", e, "Failed to delete component")
            return False

        self.notify("Success", f"{component.name} has been deleted.")
        if self.form is not None and getattr(self.form, "component_id", None) == component_id:
            self.form = None
        self.reload()
        return True

    # ------------------------------------------------------------------
    # Forms
    # ------------------------------------------------------------------

    def open_create_form(self) -> bool:
        try:
            self._require_auth("Adding component")
        except CatalogError as e:
            self._fail("opening form", e, "Please sign in first")
            return False
        self.form = CreateComponentForm(
            self.gateway, vocabulary=self.vocabulary, upload_config=self.settings.upload
        )
        return True

    def open_edit_form(self, component_id: str) -> bool:
        try:
            self._require_auth("Editing component")
            component = self.get_component(component_id)
        except CatalogError as e:
            self._fail("opening form", e, "Failed to open component")
            return False
        self.form = EditComponentForm(self.gateway, component, vocabulary=self.vocabulary)
        return True

    def close_form(self) -> None:
        """Cancel: the form and its tag set are discarded."""
        self.form = None

    def _require_form(self) -> ComponentForm:
        if self.form is None:
            raise ValidationError("No form is open")
        return self.form

    def update_form(
        self,
        name: Optional[str] = None,
        code: Optional[str] = None,
        tag_input: Optional[str] = None,
    ) -> bool:
        try:
            form = self._require_form()
            name = _text(name, "Name")
            code = _text(code, "Code")
            tag_input = _text(tag_input, "Tag")
        except CatalogError as e:
            self._fail("updating form", e, "Failed to update form")
            return False
        form.set_fields(name=name, code=code)
        if tag_input is not None:
            form.tags.set_input(tag_input)
        return True

    def tag_action(self, action: str, value: Optional[str] = None) -> bool:
        """
        Apply one tag editor gesture to the open form.

        Actions: add, select (suggestion click), commit (Enter),
        remove, backspace.
        """
        try:
            editor = self._require_form().tags
            value = _text(value, "Tag")
            if action == "add":
                editor.add(value or "")
            elif action == "select":
                editor.select_suggestion(value or "")
            elif action == "commit":
                if value is not None:
                    editor.set_input(value)
                editor.commit()
            elif action == "remove":
                editor.remove(value or "")
            elif action == "backspace":
                editor.backspace()
            else:
                raise ValidationError(f"Unknown tag action: {action}")
        except CatalogError as e:
            self._fail("editing tags", e, "Failed to edit tags")
            return False
        return True

    def select_image(self, file: Optional[ImageFile]) -> bool:
        """Record the picked preview image on the create form (size checked here)."""
        try:
            form = self._require_form()
            if file is None:
                raise ValidationError("Please select an image")
            if not isinstance(form, CreateComponentForm):
                raise ValidationError("The image cannot be changed when editing")
            form.select_file(file)
        except CatalogError as e:
            self._fail("selecting image", e, "Failed to select image")
            return False
        return True

    def submit_form(self) -> Optional[Component]:
        """
        Submit the open form.

        On success the form closes and the list is re-fetched. On failure the
        form stays open with the user's values.
        """
        form = self.form
        failure = (
            "Failed to update component"
            if isinstance(form, EditComponentForm)
            else "Failed to add component"
        )
        try:
            self._require_auth("Saving component")
            form = self._require_form()
            component = form.submit()
        except CatalogError as e:
            self._fail("saving component", e, failure)
            return None

        if isinstance(form, EditComponentForm):
            self.notify("Success", "Component updated successfully")
        else:
            self.notify("Success", f"{component.name} has been added to your library.")
        self.form = None
        self.reload()
        return component

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _render_component(self, component: Component) -> dict:
        data = component.model_dump(mode="json")
        data["display_mode"] = self.display_mode(component.id).value
        data["copied"] = self.is_copy_acknowledged(component.id)
        return data

    def snapshot(self) -> dict:
        """JSON-ready render model of the whole page."""
        visible = self.visible_components if self.is_authenticated else []
        return {
            "auth": {
                "state": self.auth_state.value,
                "email": self.session.email if self.session else None,
                "sign_in_sent_to": self.sign_in_sent_to,
            },
            "components": [self._render_component(c) for c in visible],
            "total": len(self.components),
            "tags": self.vocabulary,
            "search": self.search,
            "selected_tags": list(self.selected_tags),
            "empty_message": EMPTY_STATE_MESSAGE if not visible else None,
            "form": self.form.to_dict() if self.form else None,
        }
