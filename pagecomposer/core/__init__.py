"""
Core module - Database, configuration, caching and observability
"""

from .database import get_supabase_client
from .config import Config, StyleProfile, load_style_profile
from .cache import TTLCache

__all__ = ['get_supabase_client', 'Config', 'StyleProfile', 'load_style_profile', 'TTLCache']
