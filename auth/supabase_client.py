"""
Supabase client initialization helpers.
"""

import logging
import os
from typing import Optional

from supabase import Client, create_client

logger = logging.getLogger(__name__)


def normalize_supabase_url(url: Optional[str]) -> Optional[str]:
    """Ensure Supabase URL ends with a trailing slash."""
    if not url:
        return None
    return url if url.endswith("/") else f"{url}/"


def get_supabase_client(access_token: Optional[str] = None) -> Optional[Client]:
    """
    Initialize and return a Supabase client from environment variables.

    Requires:
        - SUPABASE_URL: Your Supabase project URL
        - SUPABASE_ANON_KEY: Your Supabase anonymous key

    Args:
        access_token: Optional user JWT. When provided it is sent as the Bearer
                      token so row-level security sees the caller.

    Returns:
        Supabase client instance, or None if credentials are missing
    """
    supabase_url = normalize_supabase_url(os.environ.get("SUPABASE_URL"))
    supabase_key = os.environ.get("SUPABASE_ANON_KEY")
    if not supabase_url or not supabase_key:
        return None

    try:
        supabase: Client = create_client(supabase_url, supabase_key)
        if access_token:
            try:
                supabase.postgrest.auth(access_token)
            except Exception as e:
                logger.warning(f"⚠️ Could not attach access token to Supabase client: {e}")
        return supabase
    except Exception as e:
        logger.error(f"❌ Error initializing Supabase client: {e}")
        return None


def get_service_role_client() -> Optional[Client]:
    """Return a client using the service role key (bypasses RLS). Used for server-side audit writes."""
    supabase_url = normalize_supabase_url(os.environ.get("SUPABASE_URL"))
    service_key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
    if not supabase_url or not service_key:
        return None
    try:
        return create_client(supabase_url, service_key)
    except Exception as e:
        logger.error(f"❌ Error initializing Supabase service-role client: {e}")
        return None
