from __future__ import annotations

from functools import lru_cache

from supabase import Client, create_client
from supabase.lib.client_options import ClientOptions

from app.config import settings
from app.utils.logging import get_logger

logger = get_logger(__name__)


def _new_client(key: str, *, purpose: str) -> Client:
    if not key:
        raise RuntimeError(f"a Supabase key is required for the {purpose} client")
    logger.debug("Creating Supabase %s client", purpose)
    # Server-side clients never persist or refresh user sessions
    return create_client(
        settings.supabase_url,
        key,
        options=ClientOptions(auto_refresh_token=False, persist_session=False),
    )


@lru_cache(maxsize=1)
def get_supabase_admin_client() -> Client:
    """Cached service-role client for the memo payload rebuild job.

    It bypasses RLS, so it must never serve request handlers.
    """
    return _new_client(settings.supabase_service_role_key, purpose="admin")


def create_request_supabase_client(bearer_token: str | None = None) -> Client:
    """Anon-key client scoped to one request.

    With a user JWT the PostgREST bearer is set, so memo reads and writes run
    under that user's RLS policies.
    """
    client = _new_client(settings.supabase_anon_key, purpose="request")
    if bearer_token:
        client.postgrest.auth(bearer_token)
    return client
