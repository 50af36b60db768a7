"""
Tests for SupabaseGateway against a mocked supabase client
"""
from types import SimpleNamespace
from unittest.mock import MagicMock

import httpx
import pytest
from supabase import PostgrestAPIError, StorageException

from config.settings import SupabaseConfig
from component_library.errors import (
    AccessError,
    GatewayTimeoutError,
    NetworkError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from component_library.gateway import SupabaseGateway
from component_library.transformers import ComponentDraft, ComponentUpdate


def api_error(code: str, message: str = "boom") -> PostgrestAPIError:
    return PostgrestAPIError({"code": code, "message": message, "details": None, "hint": None})


def row(id: str = "1", name: str = "Navbar", **extra) -> dict:
    data = {
        "id": id,
        "user_id": "user-1",
        "name": name,
        "code": "<nav/>",
        "image_url": "https://x/y.png",
        "tags": ["nav"],
        "created_at": "2026-03-01T10:00:00+00:00",
    }
    data.update(extra)
    return data


@pytest.fixture
def client():
    mock = MagicMock()
    mock.auth.get_session.return_value = SimpleNamespace(
        user=SimpleNamespace(id="user-1", email="user@example.com")
    )
    return mock


@pytest.fixture
def table(client):
    return client.table.return_value


@pytest.fixture
def gw(client):
    return SupabaseGateway(settings=SupabaseConfig(key="anon"), client=client)


class TestInit:
    def test_missing_key_without_client(self):
        with pytest.raises(AccessError):
            SupabaseGateway(settings=SupabaseConfig(key=""))


class TestAuth:
    """Magic link sign-in"""

    def test_authenticate_passes_redirect(self, gw, client):
        gw.authenticate("user@example.com", redirect_to="http://localhost:5000/auth/callback")

        client.auth.sign_in_with_otp.assert_called_once_with(
            {
                "email": "user@example.com",
                "options": {"email_redirect_to": "http://localhost:5000/auth/callback"},
            }
        )

    def test_complete_sign_in_with_code(self, gw, client):
        client.auth.exchange_code_for_session.return_value = SimpleNamespace(
            session=SimpleNamespace(user=SimpleNamespace(id="abc", email="user@example.com"))
        )

        session = gw.complete_sign_in(code="xyz")

        client.auth.exchange_code_for_session.assert_called_once_with({"auth_code": "xyz"})
        assert session.user_id == "abc"
        assert session.email == "user@example.com"

    def test_complete_sign_in_with_token_hash(self, gw, client):
        client.auth.verify_otp.return_value = SimpleNamespace(
            session=SimpleNamespace(user=SimpleNamespace(id="abc", email=None))
        )

        session = gw.complete_sign_in(token_hash="hash", otp_type="magiclink")

        client.auth.verify_otp.assert_called_once_with({"token_hash": "hash", "type": "magiclink"})
        assert session.user_id == "abc"

    def test_complete_sign_in_without_token(self, gw, client):
        with pytest.raises(ValidationError):
            gw.complete_sign_in()

        client.auth.exchange_code_for_session.assert_not_called()

    def test_complete_sign_in_without_session(self, gw, client):
        client.auth.exchange_code_for_session.return_value = SimpleNamespace(session=None)

        with pytest.raises(AccessError):
            gw.complete_sign_in(code="xyz")

    def test_no_session(self, gw, client):
        client.auth.get_session.return_value = None

        assert gw.current_session() is None


class TestRows:
    """Row operations"""

    def test_list_orders_newest_first(self, gw, client, table):
        query = table.select.return_value.order.return_value
        query.execute.return_value = SimpleNamespace(data=[row("2", "B"), row("1", "A")])

        components = gw.list_components()

        client.table.assert_called_with("components")
        table.select.assert_called_once_with("*")
        table.select.return_value.order.assert_called_once_with("created_at", desc=True)
        assert [c.id for c in components] == ["2", "1"]

    def test_list_requires_session(self, gw, client, table):
        client.auth.get_session.return_value = None

        with pytest.raises(AccessError):
            gw.list_components()

        table.select.assert_not_called()

    def test_insert_adds_owner(self, gw, table):
        table.insert.return_value.execute.return_value = SimpleNamespace(data=[row("9")])
        draft = ComponentDraft(name="Navbar", code="<nav/>", image_url="https://x/y.png", tags=["nav"])

        component = gw.insert_component(draft)

        record = table.insert.call_args[0][0]
        assert record["user_id"] == "user-1"
        assert record["name"] == "Navbar"
        assert "id" not in record
        assert component.id == "9"

    def test_update_sends_only_editable_fields(self, gw, table):
        chain = table.update.return_value.eq.return_value
        chain.execute.return_value = SimpleNamespace(data=[row("1", "Renamed")])

        component = gw.update_component("1", ComponentUpdate(name="Renamed", code="x", tags=[]))

        table.update.assert_called_once_with({"name": "Renamed", "code": "x", "tags": []})
        table.update.return_value.eq.assert_called_once_with("id", "1")
        assert component.name == "Renamed"

    def test_update_missing_row(self, gw, table):
        table.update.return_value.eq.return_value.execute.return_value = SimpleNamespace(data=[])

        with pytest.raises(NotFoundError):
            gw.update_component("404", ComponentUpdate(name="a", code="b"))

    def test_delete_missing_row(self, gw, table):
        table.delete.return_value.eq.return_value.execute.return_value = SimpleNamespace(data=[])

        with pytest.raises(NotFoundError):
            gw.delete_component("404")

    def test_delete(self, gw, table):
        table.delete.return_value.eq.return_value.execute.return_value = SimpleNamespace(
            data=[row("1")]
        )

        gw.delete_component("1")

        table.delete.return_value.eq.assert_called_once_with("id", "1")


class TestErrorTranslation:
    """Backend exceptions map onto the catalog taxonomy"""

    @pytest.mark.parametrize(
        "code,message,expected",
        [
            ("42501", "permission denied", AccessError),
            ("PGRST301", "JWT expired", AccessError),
            ("XX000", "invalid JWT", AccessError),
            ("23502", "null value", ValidationError),
            ("22P02", "bad uuid", ValidationError),
            ("PGRST116", "no rows", NotFoundError),
            ("XX000", "internal", NetworkError),
        ],
    )
    def test_postgrest_codes(self, gw, table, code, message, expected):
        table.select.return_value.order.return_value.execute.side_effect = api_error(code, message)

        with pytest.raises(expected) as exc:
            gw.list_components()

        assert exc.value.cause is not None

    def test_timeout(self, gw, table):
        table.select.return_value.order.return_value.execute.side_effect = httpx.ReadTimeout(
            "slow"
        )

        with pytest.raises(GatewayTimeoutError) as exc:
            gw.list_components()

        assert exc.value.status_code == 504

    def test_transport_error(self, gw, table):
        table.insert.return_value.execute.side_effect = httpx.ConnectError("refused")
        draft = ComponentDraft(name="a", code="b", image_url="https://x/y.png")

        with pytest.raises(NetworkError):
            gw.insert_component(draft)


class TestStorage:
    """Image upload"""

    def test_upload_path_and_url(self, gw, client):
        bucket = client.storage.from_.return_value
        bucket.get_public_url.return_value = "https://cdn/components/abc.png"

        url = gw.upload_image(b"data", "Navbar Shot.PNG")

        client.storage.from_.assert_called_with("component-images")
        path, data, options = bucket.upload.call_args[0]
        assert path.startswith("components/")
        assert path.endswith(".png")
        assert data == b"data"
        assert options == {"content-type": "image/png"}
        assert url == "https://cdn/components/abc.png"

    def test_upload_paths_are_unique(self, gw, client):
        bucket = client.storage.from_.return_value

        gw.upload_image(b"1", "a.png")
        gw.upload_image(b"2", "a.png")

        first, second = [c[0][0] for c in bucket.upload.call_args_list]
        assert first != second

    @pytest.mark.parametrize(
        "error",
        [
            StorageException({"statusCode": 404, "error": "Bucket not found"}),
            httpx.WriteTimeout("slow"),
        ],
    )
    def test_upload_failure_is_storage_error(self, gw, client, error):
        client.storage.from_.return_value.upload.side_effect = error

        with pytest.raises(StorageError):
            gw.upload_image(b"data", "a.png")

    @pytest.mark.parametrize(
        "file_name,content_type,expected",
        [
            ("shot.jpeg", "image/jpeg", ".jpg"),
            ("shot.webp", "image/webp", ".webp"),
            ("shot", "image/png", ".png"),
            ("shot", "image/gif", ".gif"),
            ("shot.bmp", "image/bmp", ".jpg"),
        ],
    )
    def test_get_extension(self, gw, file_name, content_type, expected):
        assert gw._get_extension(file_name, content_type) == expected

    def test_check_bucket(self, gw, client):
        assert gw.check_bucket() is True

        client.storage.from_.return_value.list.side_effect = RuntimeError("nope")
        assert gw.check_bucket() is False
