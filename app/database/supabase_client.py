from typing import Optional

from supabase import create_client, Client, ClientOptions
from supabase_auth import SyncMemoryStorage, SyncSupportedStorage
from app.config import settings


class SupabaseClient:
    _client: Client = None
    _service_client: Client = None

    @classmethod
    def get_client(cls) -> Client:
        """Anon-key client for table access. Never used for sign-in, so it holds no user session."""
        if cls._client is None:
            cls._client = create_client(settings.supabase_url, settings.supabase_key)
        return cls._client

    @classmethod
    def get_service_client(cls) -> Client:
        """Client with service_role key; bypasses RLS. Falls back to the anon table client when unset."""
        if cls._service_client is None and settings.supabase_service_role_key:
            cls._service_client = create_client(
                settings.supabase_url, settings.supabase_service_role_key
            )
        return cls._service_client or cls.get_client()

    @classmethod
    def reset_client(cls):
        cls._client = None
        cls._service_client = None


def create_auth_client(storage: Optional[SyncSupportedStorage] = None) -> Client:
    """
    Fresh anon-key client for one request's Supabase Auth calls.

    Code exchange stores the user's session on the client that performed it,
    so auth flows never share a client between requests.
    """
    return create_client(
        settings.supabase_url,
        settings.supabase_key,
        options=ClientOptions(
            storage=storage or SyncMemoryStorage(),
            persist_session=False,
            auto_refresh_token=False,
        ),
    )


def get_supabase() -> Client:
    """Client used for the users/restaurants tables."""
    return SupabaseClient.get_service_client()
