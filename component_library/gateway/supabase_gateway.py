"""
Supabase gateway for component rows, preview images, and e-mail sign-in.

Rows live in PostgreSQL (table "components"), images in a public Supabase
Storage bucket. Every supabase/httpx failure is translated into the catalog
error taxonomy before it leaves this module.
"""

import mimetypes
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

import httpx
from rich.console import Console
from supabase import (
    AuthError,
    Client,
    ClientOptions,
    PostgrestAPIError,
    StorageException,
    create_client,
)

from config.settings import SupabaseConfig, config
from component_library.errors import (
    AccessError,
    CatalogError,
    GatewayTimeoutError,
    NetworkError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from component_library.gateway.base import SessionInfo
from component_library.transformers import (
    Component,
    ComponentDraft,
    ComponentTransformer,
    ComponentUpdate,
)

console = Console()

# PostgREST / PostgreSQL error codes we map onto the taxonomy
ACCESS_ERROR_CODES = frozenset({"PGRST301", "PGRST302", "42501"})
VALIDATION_ERROR_CODES = frozenset({"23502", "23514", "22P02", "PGRST204"})
NOT_FOUND_ERROR_CODES = frozenset({"PGRST116"})


def _to_session_info(session) -> Optional[SessionInfo]:
    """Reduce a supabase Session to the fields the catalog uses."""
    if session is None or getattr(session, "user", None) is None:
        return None
    return SessionInfo(
        user_id=str(session.user.id),
        email=getattr(session.user, "email", None),
    )


class SupabaseGateway:
    """
    Backend gateway backed by a single Supabase client.

    One instance per signed-in browser session: the client keeps that
    user's auth session, so row level security scopes every query to them.
    """

    def __init__(
        self,
        supabase_url: Optional[str] = None,
        supabase_key: Optional[str] = None,
        settings: Optional[SupabaseConfig] = None,
        client: Optional[Client] = None,
    ):
        """
        Initialize the gateway.

        Args:
            supabase_url: Supabase project URL (or SUPABASE_URL env var)
            supabase_key: Supabase anon key (or SUPABASE_KEY env var)
            settings: Table/bucket/timeout settings (defaults to config.supabase)
            client: Pre-built client, mostly for tests
        """
        self.settings = settings or config.supabase
        self.supabase_url = supabase_url or self.settings.url
        self.supabase_key = supabase_key or self.settings.key
        self.table_name = self.settings.table
        self.bucket_name = self.settings.bucket
        self.transformer = ComponentTransformer()

        if client is None:
            if not self.supabase_key:
                raise AccessError("SUPABASE_KEY is not set")
            timeout = self.settings.request_timeout_seconds
            options = ClientOptions(
                postgrest_client_timeout=timeout,
                storage_client_timeout=max(1, int(timeout)),
                # Magic links come back to the server as ?code=..., not as a URL fragment
                flow_type="pkce",
            )
            client = create_client(self.supabase_url, self.supabase_key, options=options)
        self.client: Client = client

    # ------------------------------------------------------------------
    # Error translation
    # ------------------------------------------------------------------

    def _translate(self, action: str, exc: Exception) -> CatalogError:
        """Map a supabase/httpx exception onto the catalog taxonomy."""
        if isinstance(exc, httpx.TimeoutException):
            return GatewayTimeoutError(f"{action} timed out", cause=exc)
        if isinstance(exc, httpx.HTTPError):
            return NetworkError(f"{action} failed: {exc}", cause=exc)
        if isinstance(exc, AuthError):
            return AccessError(f"{action} failed: {exc}", cause=exc)
        if isinstance(exc, PostgrestAPIError):
            code = str(getattr(exc, "code", "") or "").upper()
            message = getattr(exc, "message", None) or str(exc)
            if code in ACCESS_ERROR_CODES or "jwt" in message.lower():
                return AccessError(f"{action} denied: {message}", cause=exc)
            if code in VALIDATION_ERROR_CODES:
                return ValidationError(f"{action} rejected: {message}", cause=exc)
            if code in NOT_FOUND_ERROR_CODES:
                return NotFoundError(f"{action}: {message}", cause=exc)
            return NetworkError(f"{action} failed: {message}", cause=exc)
        if isinstance(exc, StorageException):
            return StorageError(f"{action} failed: {exc}", cause=exc)
        return NetworkError(f"{action} failed: {exc}", cause=exc)

    @contextmanager
    def _backend_call(self, action: str):
        """Run a backend call, re-raising failures as CatalogError."""
        try:
            yield
        except CatalogError:
            raise
        except Exception as e:
            raise self._translate(action, e) from e

    def _require_session(self, action: str) -> SessionInfo:
        session = self.current_session()
        if session is None:
            raise AccessError(f"{action} requires a signed-in user")
        return session

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    def authenticate(self, email: str, redirect_to: Optional[str] = None) -> None:
        """Send a magic sign-in link to the given address."""
        credentials: dict = {"email": email}
        if redirect_to:
            credentials["options"] = {"email_redirect_to": redirect_to}
        with self._backend_call("Sending sign-in link"):
            self.client.auth.sign_in_with_otp(credentials)
        console.print(f"[dim]Sign-in link requested for {email}[/dim]")

    def complete_sign_in(
        self,
        token_hash: Optional[str] = None,
        code: Optional[str] = None,
        otp_type: str = "email",
    ) -> SessionInfo:
        """
        Establish a session from the magic link callback.

        Supabase sends either a PKCE ?code=... (default e-mail template) or a
        ?token_hash=... (custom template); both are accepted.
        """
        if not code and not token_hash:
            raise ValidationError("Sign-in link is missing its token")

        with self._backend_call("Completing sign-in"):
            if code:
                response = self.client.auth.exchange_code_for_session({"auth_code": code})
            else:
                response = self.client.auth.verify_otp(
                    {"token_hash": token_hash, "type": otp_type}
                )

        session = _to_session_info(getattr(response, "session", None))
        if session is None:
            raise AccessError("Sign-in link did not produce a session")
        return session

    def current_session(self) -> Optional[SessionInfo]:
        with self._backend_call("Checking session"):
            session = self.client.auth.get_session()
        return _to_session_info(session)

    def sign_out(self) -> None:
        with self._backend_call("Signing out"):
            self.client.auth.sign_out()

    # ------------------------------------------------------------------
    # Rows
    # ------------------------------------------------------------------

    def list_components(self) -> list[Component]:
        """
        Retrieve every component visible to the current user.

        Returns:
            Components ordered by created_at, newest first
        """
        self._require_session("Loading components")
        with self._backend_call("Loading components"):
            result = (
                self.client.table(self.table_name)
                .select("*")
                .order("created_at", desc=True)
                .execute()
            )
        return self.transformer.transform_batch(result.data or [])

    def insert_component(self, draft: ComponentDraft) -> Component:
        """
        Insert a new component owned by the current user.

        Args:
            draft: Validated name/code/image_url/tags

        Returns:
            The created component with its server-assigned id and timestamp
        """
        session = self._require_session("Adding component")
        record = draft.model_dump()
        record["user_id"] = session.user_id

        with self._backend_call("Adding component"):
            result = self.client.table(self.table_name).insert(record).execute()

        return self._single_row("Adding component", result.data)

    def update_component(self, component_id: str, fields: ComponentUpdate) -> Component:
        """Update name/code/tags of a component. Image and id are left alone."""
        self._require_session("Updating component")
        with self._backend_call("Updating component"):
            result = (
                self.client.table(self.table_name)
                .update(fields.model_dump())
                .eq("id", component_id)
                .execute()
            )

        if not result.data:
            raise NotFoundError(f"Component {component_id} not found")
        return self._single_row("Updating component", result.data)

    def delete_component(self, component_id: str) -> None:
        """
        Delete a component row.

        The stored preview image is not removed.
        """
        self._require_session("Deleting component")
        with self._backend_call("Deleting component"):
            result = (
                self.client.table(self.table_name)
                .delete()
                .eq("id", component_id)
                .execute()
            )

        if not result.data:
            raise NotFoundError(f"Component {component_id} not found")
        console.print(f"[green]Deleted component: {component_id}[/green]")

    def _single_row(self, action: str, rows: Optional[list]) -> Component:
        component = self.transformer.transform(rows[0]) if rows else None
        if component is None:
            raise NetworkError(f"{action}: backend returned no usable row")
        return component

    # ------------------------------------------------------------------
    # Storage
    # ------------------------------------------------------------------

    def upload_image(
        self, data: bytes, file_name: str, content_type: Optional[str] = None
    ) -> str:
        """
        Upload a preview image to Supabase Storage.

        Args:
            data: Raw image bytes
            file_name: Original file name (used for the extension only)
            content_type: MIME type, guessed from the name when missing

        Returns:
            Public URL for the stored image
        """
        content_type = (
            content_type or mimetypes.guess_type(file_name)[0] or "image/jpeg"
        )
        ext = self._get_extension(file_name, content_type)
        storage_path = f"{self.settings.storage_prefix}/{uuid.uuid4().hex}{ext}"

        try:
            bucket = self.client.storage.from_(self.bucket_name)
            bucket.upload(storage_path, data, {"content-type": content_type})
            public_url = bucket.get_public_url(storage_path)
        except Exception as e:
            # Any upload failure, timeouts included, is a storage failure
            raise StorageError(f"Uploading {file_name} failed: {e}", cause=e) from e

        console.print(f"[dim]  Uploaded: {storage_path}[/dim]")
        return public_url

    def _get_extension(self, file_name: str, content_type: str) -> str:
        """Get file extension from the file name or content-type."""
        suffix = Path(file_name or "").suffix.lower()
        if suffix in (".jpg", ".jpeg"):
            return ".jpg"
        if suffix in (".png", ".webp", ".gif", ".svg"):
            return suffix

        # Fall back to content-type
        if "png" in content_type:
            return ".png"
        elif "webp" in content_type:
            return ".webp"
        elif "gif" in content_type:
            return ".gif"
        elif "svg" in content_type:
            return ".svg"

        return ".jpg"

    def check_bucket(self) -> bool:
        """Check that the storage bucket is reachable (creation needs a service key)."""
        try:
            self.client.storage.from_(self.bucket_name).list(
                self.settings.storage_prefix, {"limit": 1}
            )
            console.print(
                f"[dim]✓ Storage bucket '{self.bucket_name}' accessible[/dim]"
            )
            return True
        except Exception as e:
            console.print(
                f"[yellow]Warning: Could not access bucket '{self.bucket_name}' ({e}). "
                f"Make sure it exists in Supabase Storage.[/yellow]"
            )
            return False
