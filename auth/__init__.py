"""
Supabase client construction for the record guard services.
"""

from auth.supabase_client import get_service_role_client, get_supabase_client, normalize_supabase_url

__all__ = ["get_service_role_client", "get_supabase_client", "normalize_supabase_url"]
