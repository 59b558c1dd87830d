from supabase import create_client
from supabase.client import ClientOptions
from core.config import settings, logger
from typing import Optional
import asyncio
from functools import partial

# Shared service-role client, created on first use
_service_client: Optional[object] = None
_init_lock = asyncio.Lock()

async def get_supabase_client():
    """
    Initializes and returns the shared service-role Supabase client (thread-safe).
    Used for tables and storage; it bypasses RLS, so access checks happen in the service.
    """
    global _service_client

    if _service_client is None:
        async with _init_lock:
            # Double check after acquiring lock
            if _service_client is None:
                url = settings.SUPABASE_URL
                key = settings.SUPABASE_SERVICE_KEY

                if url and key:
                    logger.info("Initializing Supabase client with service role key...")
                    try:
                        # Run create_client in a thread pool since it's synchronous
                        loop = asyncio.get_running_loop()
                        _service_client = await loop.run_in_executor(
                            None,
                            partial(create_client, url, key)
                        )
                        logger.info("Supabase client with service role key initialized successfully.")
                    except Exception as e:
                        logger.error(f"Failed to initialize Supabase client with service role key: {e}", exc_info=True)
                        raise RuntimeError(f"Failed to initialize Supabase client: {e}")
                else:
                    logger.error("Supabase URL or Service Role Key not configured. Cannot create client.")
                    raise ValueError("Supabase URL or Service Role Key not configured")

    return _service_client

async def create_auth_client():
    """
    Creates a fresh anon-key client for a single auth flow (OTP, session lookup, sign-out).
    Never cached: verifying a code stores the user's session on the client,
    which must not end up on a shared client.
    """
    url = settings.SUPABASE_URL
    key = settings.SUPABASE_KEY
    if not url or not key:
        logger.error("Supabase URL or Anon Key not configured. Cannot create auth client.")
        raise ValueError("Supabase URL or Anon Key not configured")

    options = ClientOptions(auto_refresh_token=False, persist_session=False)
    return await asyncio.to_thread(create_client, url, key, options)

# Table names here for consistency
USERS_TABLE = settings.USERS_TABLE
FILES_TABLE = settings.FILES_TABLE
