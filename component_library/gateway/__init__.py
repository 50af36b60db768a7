"""Backend gateway contract and the Supabase implementation."""

from .base import BackendGateway, SessionInfo
from .supabase_gateway import SupabaseGateway

__all__ = ["BackendGateway", "SessionInfo", "SupabaseGateway"]
