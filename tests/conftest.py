"""
Pytest fixtures for the component catalog tests.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest

from config.settings import AppConfig, UploadConfig, ViewerConfig
from component_library.errors import AccessError, CatalogError, NotFoundError
from component_library.gateway.base import SessionInfo
from component_library.services import CatalogView
from component_library.transformers import (
    Component,
    ComponentDraft,
    ComponentUpdate,
)

MIB = 1024 * 1024


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGateway:
    """In-memory stand-in for the Supabase backend."""

    def __init__(self, components=None, session: Optional[SessionInfo] = None):
        self.rows: list[Component] = list(components or [])
        self.session = session
        self.calls: list[str] = []
        self.failures: dict[str, CatalogError] = {}
        self.sent_links: list[tuple] = []
        self.uploads: list[tuple] = []
        self._next_id = len(self.rows) + 1
        self._clock = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failures:
            raise self.failures[name]

    def _require_session(self) -> SessionInfo:
        if self.session is None:
            raise AccessError("not signed in")
        return self.session

    def authenticate(self, email, redirect_to=None):
        self._record("authenticate")
        self.sent_links.append((email, redirect_to))

    def complete_sign_in(self, token_hash=None, code=None, otp_type="email"):
        self._record("complete_sign_in")
        email = self.sent_links[-1][0] if self.sent_links else "user@example.com"
        self.session = SessionInfo(user_id="user-1", email=email)
        return self.session

    def current_session(self):
        self._record("current_session")
        return self.session

    def sign_out(self):
        self._record("sign_out")
        self.session = None

    def list_components(self):
        self._record("list_components")
        self._require_session()
        return list(self.rows)

    def insert_component(self, draft: ComponentDraft):
        self._record("insert_component")
        session = self._require_session()
        self._clock += timedelta(minutes=1)
        component = Component(
            id=f"c{self._next_id}",
            user_id=session.user_id,
            created_at=self._clock,
            **draft.model_dump(),
        )
        self._next_id += 1
        self.rows.insert(0, component)
        return component

    def update_component(self, component_id, fields: ComponentUpdate):
        self._record("update_component")
        self._require_session()
        for i, row in enumerate(self.rows):
            if row.id == component_id:
                self.rows[i] = row.model_copy(update=fields.model_dump())
                return self.rows[i]
        raise NotFoundError(f"Component {component_id} not found")

    def delete_component(self, component_id):
        self._record("delete_component")
        self._require_session()
        before = len(self.rows)
        self.rows = [row for row in self.rows if row.id != component_id]
        if len(self.rows) == before:
            raise NotFoundError(f"Component {component_id} not found")

    def upload_image(self, data, file_name, content_type=None):
        self._record("upload_image")
        self.uploads.append((file_name, len(data), content_type))
        return f"https://storage.test/component-images/components/{len(self.uploads)}.png"


def make_component(
    id: str,
    name: str,
    tags=None,
    code: str = "<div></div>",
    image_url: str = "https://storage.test/x.png",
) -> Component:
    return Component(
        id=id,
        user_id="user-1",
        name=name,
        code=code,
        image_url=image_url,
        tags=tags or [],
    )


@pytest.fixture
def sample_components():
    """Three components, newest first."""
    return [
        make_component("3", "Navbar", ["layout", "nav"], code="<nav>...</nav>"),
        make_component("2", "Primary Button", ["form", "button"]),
        make_component("1", "Card", ["layout"]),
    ]


@pytest.fixture
def settings():
    """Settings with fixed limits regardless of the environment."""
    return AppConfig(
        upload=UploadConfig(max_image_bytes=5 * MIB),
        viewer=ViewerConfig(site_url="http://localhost:5000", copy_ack_seconds=2.0),
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway(sample_components):
    """Signed-in fake backend holding the sample components."""
    return FakeGateway(
        sample_components, session=SessionInfo(user_id="user-1", email="user@example.com")
    )


@pytest.fixture
def view(gateway, settings, clock):
    """A CatalogView that has already picked up the session and loaded."""
    catalog = CatalogView(gateway, settings=settings, clock=clock)
    catalog.check_session()
    gateway.calls.clear()
    return catalog
