from supabase import create_client, Client  # type: ignore
from typing import Any, Dict, Iterable, Optional
from functools import lru_cache
from lms.config import settings


@lru_cache()
def get_supabase_client(use_service_role: bool = True) -> Client:
    """
    Get Supabase client.

    The client is created on first use so that importing the application
    does not require Supabase credentials.

    Args:
        use_service_role: When True (default), use the service role key if available
            so backend operations bypass RLS restrictions intended for public clients.
    """
    if use_service_role and settings.supabase_service_role_key:
        key = settings.supabase_service_role_key
    else:
        key = settings.supabase_key
    return create_client(settings.supabase_url, key)


def get_db() -> Client:
    """FastAPI dependency returning the shared Supabase client"""
    return get_supabase_client()


def first_row(result: Any) -> Optional[Dict[str, Any]]:
    """Return the first row of a PostgREST response, or None"""
    data = getattr(result, "data", None)
    if not data:
        return None
    if isinstance(data, list):
        return data[0]
    return data


def quote_filter_value(value: str) -> str:
    """Double-quote a value for a PostgREST logic filter such as ``or=(...)``"""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def ilike_any(columns: Iterable[str], term: str) -> str:
    """``or_()`` expression matching ``term`` anywhere in any of the columns"""
    pattern = quote_filter_value(f"%{term}%")
    return ",".join(f"{column}.ilike.{pattern}" for column in columns)
