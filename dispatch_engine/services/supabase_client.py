from typing import Optional

from supabase import create_client, Client

from dispatch_engine.config import Settings, get_settings


def get_supabase(settings: Optional[Settings] = None) -> Client:
    settings = settings or get_settings()
    if not settings.supabase_url or not settings.supabase_key:
        raise RuntimeError("Supabase credentials missing from .env")
    return create_client(settings.supabase_url, settings.supabase_key)
