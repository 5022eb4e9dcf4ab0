"""Database access through the Supabase REST client."""

from .client import SupabaseClient, get_supabase_client

__all__ = ["SupabaseClient", "get_supabase_client"]
