# core/config.py
import os
from pydantic_settings import BaseSettings
from dotenv import load_dotenv
import logging

# Load variables from .env file located in the project root directory
dotenv_path = os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path=dotenv_path)
else:
    load_dotenv() # Fallback

class Settings(BaseSettings):
    """Loads configuration settings from environment variables and .env file."""

    # --- Supabase Configuration ---
    SUPABASE_URL: str | None = None
    SUPABASE_KEY: str | None = None # ANON key, used for auth flows
    SUPABASE_SERVICE_KEY: str | None = None # SERVICE_ROLE key, used for tables and storage

    # --- Tables & Storage ---
    USERS_TABLE: str = "users"
    FILES_TABLE: str = "files"
    STORAGE_BUCKET: str = "drive-files"

    # --- Sessions ---
    SESSION_COOKIE_NAME: str = "drive-session"
    SESSION_COOKIE_SECURE: bool = True

    # --- Limits ---
    MAX_FILE_SIZE: int = 50 * 1024 * 1024 # 50MB per upload
    STORAGE_QUOTA_BYTES: int = 2 * 1024 * 1024 * 1024 # 2GB per user

    AUTH_RATE_LIMIT_MAX_CALLS: int = 20
    AUTH_RATE_LIMIT_PERIOD: int = 60 # seconds

    AVATAR_PLACEHOLDER_URL: str = "https://img.freepik.com/free-psd/3d-illustration-person-with-sunglasses_23-2149436188.jpg"

    class Config:
        env_file = '.env'
        env_file_encoding = 'utf-8'
        extra = 'ignore'

# Instantiate settings once for import
settings = Settings()

# --- Logging Setup ---
log_level_str = os.getenv("LOG_LEVEL", "INFO").upper(); log_level = getattr(logging, log_level_str, logging.INFO)
logging.basicConfig(level=log_level, format='%(asctime)s - %(name)s - [%(levelname)s] - %(message)s', datefmt='%Y-%m-%d %H:%M:%S')
logger = logging.getLogger("Drive_Core")
logging.getLogger("httpx").setLevel(logging.WARNING); logging.getLogger("supabase").setLevel(logging.WARNING)
logging.getLogger("watchfiles").setLevel(logging.WARNING)

# --- Configuration Validation Checks ---
logger.info(f"Core Settings loaded. Log Level: {log_level_str}")
if not settings.SUPABASE_URL or not settings.SUPABASE_KEY: logger.warning("Supabase URL/Key missing.")
if not settings.SUPABASE_SERVICE_KEY: logger.warning("Supabase Service Key missing.")
if not settings.STORAGE_BUCKET: logger.warning("STORAGE_BUCKET missing, uploads will fail.")
else: logger.info(f"Using Supabase Storage Bucket: {settings.STORAGE_BUCKET}")
if not settings.SESSION_COOKIE_SECURE:
    logger.warning("SESSION_COOKIE_SECURE is disabled. Only use this for local development over plain HTTP.")

try: assert settings.MAX_FILE_SIZE > 0 and settings.STORAGE_QUOTA_BYTES > 0
except AssertionError: logger.error(f"Invalid limits: MAX_FILE_SIZE={settings.MAX_FILE_SIZE}, STORAGE_QUOTA_BYTES={settings.STORAGE_QUOTA_BYTES}.")
logger.info(f"Storage Limits: Max Upload={settings.MAX_FILE_SIZE} bytes, Quota={settings.STORAGE_QUOTA_BYTES} bytes")
