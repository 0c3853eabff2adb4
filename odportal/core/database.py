from supabase import create_client, Client
from odportal.core.config import settings
from odportal.core.logging import get_logger

logger = get_logger(__name__)

_supabase_client: Client | None = None


def get_supabase() -> Client:
    global _supabase_client
    if _supabase_client is None:
        if not settings.SUPABASE_URL:
            raise RuntimeError("SUPABASE_URL is not configured")
        _supabase_client = create_client(
            settings.SUPABASE_URL,
            settings.SUPABASE_SERVICE_KEY or settings.SUPABASE_KEY,
        )
        logger.info("supabase.connected", url=settings.SUPABASE_URL)
    return _supabase_client
