"""Local .env loading for development runs."""

import logging
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# backend/.env, next to alembic.ini
BACKEND_ENV_FILE = Path(__file__).resolve().parents[2] / ".env"


def load_env_file() -> bool:
    """Load variables from backend/.env without overwriting existing ones.

    Production sets variables in the process environment; the file only
    fills gaps on developer machines.

    Returns:
        True if a .env file was found and read.
    """
    loaded = load_dotenv(BACKEND_ENV_FILE, override=False)
    if loaded:
        logger.info("[ENV] Loaded %s (existing variables were NOT overwritten)", BACKEND_ENV_FILE)
    else:
        logger.debug("[ENV] No .env file at %s", BACKEND_ENV_FILE)
    return loaded
