import threading

from supabase import create_client, Client
from supabase.client import ClientOptions

from app.core.config import get_settings
from app.core.errors import StorageError

# One record-store client per thread; pooled HTTP/2 connections are not shared.
_thread_local = threading.local()


def get_supabase_client() -> Client:
    """Return this thread's record-store client, creating it on first use.

    Raises:
        StorageError: if the store endpoint or access key is not configured.
    """
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_secret_key:
        raise StorageError(
            "Record store is not configured. "
            "Set SUPABASE_URL and SUPABASE_SECRET_KEY environment variables."
        )

    if not hasattr(_thread_local, "client"):
        _thread_local.client = create_client(
            settings.supabase_url,
            settings.supabase_secret_key,
            options=ClientOptions(
                postgrest_client_timeout=settings.supabase_timeout,
                auto_refresh_token=False,
                persist_session=False,
            ),
        )
    return _thread_local.client


def reset_supabase_client() -> None:
    """Drop this thread's client so the next call opens a fresh connection."""
    if hasattr(_thread_local, "client"):
        delattr(_thread_local, "client")
