"""
Supabase client shared by the document, section and layout fragment stores.
"""

from typing import Optional
from supabase import create_client, Client
from .config import Config


_supabase_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """
    Return the process-wide Supabase client, creating it on first use.

    Raises:
        ValueError: If SUPABASE_URL / SUPABASE_SERVICE_KEY are not configured
    """
    global _supabase_client

    if _supabase_client is None:
        Config.validate()
        _supabase_client = create_client(
            Config.SUPABASE_URL,
            Config.SUPABASE_SERVICE_KEY
        )

    return _supabase_client


def set_supabase_client(client: Optional[Client]) -> None:
    """Install a pre-built client (or None to force re-creation)."""
    global _supabase_client
    _supabase_client = client


def reset_supabase_client():
    """Drop the cached client so the next call reconnects"""
    set_supabase_client(None)
