"""
Error taxonomy shared by the gateway, the forms, and the catalog view.

Every failure a user can trigger ends up as one of these, so callers only
ever need to catch CatalogError at their boundary.
"""

from typing import Optional


class CatalogError(Exception):
    """Base class for every catalog failure."""

    # Short text safe to show to the user
    user_message = "Something went wrong"
    # HTTP status the viewer maps this error to
    status_code = 500

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ValidationError(CatalogError):
    """A required field is missing or invalid. Raised before any network call."""

    user_message = "Please check the form"
    status_code = 400


class AccessError(CatalogError):
    """No valid session."""

    user_message = "Please sign in again"
    status_code = 401


class NotFoundError(CatalogError):
    """The referenced component does not exist or is not owned by the caller."""

    user_message = "Component not found"
    status_code = 404


class StorageError(CatalogError):
    """Image upload failed."""

    user_message = "Failed to upload image"
    status_code = 502


class NetworkError(CatalogError):
    """Any other failed backend call."""

    user_message = "Could not reach the server"
    status_code = 502


class GatewayTimeoutError(NetworkError):
    """A backend call did not answer within the configured timeout."""

    user_message = "The server took too long to respond"
    status_code = 504
