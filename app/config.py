import logging
import os
from typing import Any

from dotenv import load_dotenv


load_dotenv()


def get_env(key: str, default: Any = None, required: bool = False) -> Any:
    """Get environment variable with optional default."""
    val = os.getenv(key)
    if val is None or val.strip() == "":
        if required:
            raise ValueError(f"Missing required environment variable: {key}")
        return default
    return val.strip()


SECRET_KEY = get_env("SECRET_KEY", "fallback_secret_key_change_me")
DATABASE_URL = get_env("DATABASE_URL", "sqlite:///./portfolio.db")
LOG_LEVEL = get_env("LOG_LEVEL", "INFO").upper()

# Bootstrap admin, created at startup while the users table is empty
ADMIN_EMAIL = get_env("ADMIN_EMAIL")
ADMIN_PASSWORD = get_env("ADMIN_PASSWORD")
ADMIN_NAME = get_env("ADMIN_NAME", "Administrator")

SITE_URL = get_env("SITE_URL", "http://localhost:8000")
RECOVERY_TOKEN_TTL_MINUTES = int(get_env("RECOVERY_TOKEN_TTL_MINUTES", 60))


def configure_logging() -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s")
    )
    logging.basicConfig(level=getattr(logging, LOG_LEVEL, logging.INFO), handlers=[handler])
