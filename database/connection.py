import functools
import logging
import time
from typing import Callable, TypeVar

import httpx
from postgrest.exceptions import APIError
from supabase import Client

from app.core.config import get_settings
from app.core.errors import AlreadyExistsError, StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# PostgreSQL SQLSTATE for unique_violation
UNIQUE_VIOLATION = "23505"


def init_db():
    """Verify the record store is reachable.

    Note: Schema is managed via Supabase migrations (see database/schema.py).
    """
    settings = get_settings()
    if not settings.supabase_url or not settings.supabase_secret_key:
        logger.warning("Supabase credentials not configured. Record store features disabled.")
        return

    try:
        client = get_db()
        client.table("customers").select("id").limit(1).execute()
        logger.info("Supabase connection verified")
    except Exception as e:
        logger.warning(f"Supabase connection check failed: {e}")


def get_db() -> Client:
    """Get the record store client for the current thread."""
    from .supabase_client import get_supabase_client
    return get_supabase_client()


def is_unique_violation(error: APIError) -> bool:
    """Whether a PostgREST error reports a duplicate key."""
    return getattr(error, "code", None) == UNIQUE_VIOLATION or UNIQUE_VIOLATION in str(error)


def with_retry(max_retries: int = 2, delay: float = 0.1) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator for repository calls against the record store.

    Transient HTTP connection errors ("Server disconnected") reset the client
    and are retried. Whatever still fails is translated at this boundary:

    - a unique violation becomes ``AlreadyExistsError``
    - any other PostgREST error, or a connection error after the last retry,
      becomes ``StorageError`` carrying the original exception as ``cause``

    Args:
        max_retries: Maximum number of retry attempts (default 2)
        delay: Delay in seconds between retries (default 0.1)
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            from .supabase_client import reset_supabase_client

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except (httpx.RemoteProtocolError, httpx.ConnectError) as e:
                    if attempt < max_retries:
                        logger.warning(
                            f"Connection error in {func.__name__}, retrying ({attempt + 1}/{max_retries}): {e}"
                        )
                        reset_supabase_client()
                        time.sleep(delay)
                    else:
                        logger.error(f"Connection error in {func.__name__} after {max_retries} retries: {e}")
                        raise StorageError(f"Record store unreachable in {func.__name__}", cause=e) from e
                except APIError as e:
                    if is_unique_violation(e):
                        raise AlreadyExistsError(f"Duplicate row rejected in {func.__name__}", cause=e) from e
                    logger.error(f"Record store error in {func.__name__}: {e}")
                    raise StorageError(f"Record store rejected {func.__name__}", cause=e) from e
                except httpx.HTTPError as e:
                    logger.error(f"HTTP error in {func.__name__}: {e}")
                    raise StorageError(f"Record store request failed in {func.__name__}", cause=e) from e
            raise StorageError(f"Record store call {func.__name__} did not complete")
        return wrapper
    return decorator
