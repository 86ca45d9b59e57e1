import logging
import os

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load environment variables
load_dotenv()

PLACEHOLDER_API_KEYS = {"your_gemini_api_key_here", "your_api_key_here"}


def clean_api_key(raw):
    """Return the usable key, or None when it is blank or still the .env placeholder."""
    key = (raw or "").strip()
    if not key or key in PLACEHOLDER_API_KEYS:
        return None
    return key


def env_number(name, default, cast=int):
    """Numeric setting from the environment; a malformed value falls back to ``default``."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError:
        logger.warning("Ignoring invalid %s=%r, using %r", name, raw, default)
        return default


def database_url():
    db_url = os.getenv("DATABASE_URL")
    # Render/Heroku still hand out the old scheme
    if db_url and db_url.startswith("postgres://"):
        db_url = db_url.replace("postgres://", "postgresql://", 1)
    return db_url or "sqlite:///gradebook.db"


class Config:
    GEMINI_API_KEY = clean_api_key(os.getenv("GEMINI_API_KEY"))
    GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
    GEMINI_MAX_ATTEMPTS = env_number("GEMINI_MAX_ATTEMPTS", 1)
    # How long a request waits on the model before giving up (the call itself keeps running)
    AI_TIMEOUT_SECONDS = env_number("AI_TIMEOUT_SECONDS", 120.0, cast=float)
    AI_MAX_WORKERS = env_number("AI_MAX_WORKERS", 3)

    SQLALCHEMY_DATABASE_URI = database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    MAX_CONTENT_LENGTH = 20 * 1024 * 1024  # 20MB, a phone photo of a grade sheet fits easily
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
