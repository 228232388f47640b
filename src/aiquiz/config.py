"""Configuration module for AI Quiz.

This module provides centralized configuration management, including directory
paths, API server settings, database connection, session lifetimes, AI quota
limits and LLM configuration. All configuration values can be overridden via
environment variables.
"""

import os
from pathlib import Path
from typing import Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.parent.resolve()

# Package directory (bundled data lives here)
PACKAGE_DIR = Path(__file__).parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = Path(os.getenv("AIQUIZ_DATA_DIR", str(ROOT_DIR / DATA_DIR_NAME)))

# Bundled question bank
QUESTION_BANK_PATH = Path(
    os.getenv("QUESTION_BANK_PATH", str(PACKAGE_DIR / "data" / "questions.json"))
)

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "8000"))

# CORS allowed origins (comma-separated list). Defaults to allow-all.
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv("CORS_ALLOWED_ORIGINS", "*")
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Database Configuration ---

# Environment variables consulted for the connection string, in order.
DATABASE_URL_ENV_KEYS = ("DB_CREDS", "POSTGRES_URL", "DATABASE_URL")

# Value some hosting dashboards leave in DB_CREDS when it is not filled in
_DB_CREDS_PLACEHOLDER = "db key"


def get_database_url() -> str:
    """Resolve the database connection string.

    The first non-empty of DB_CREDS, POSTGRES_URL and DATABASE_URL wins.
    Falls back to a SQLite file inside the data directory.

    Returns:
        SQLAlchemy database URL.
    """
    for key in DATABASE_URL_ENV_KEYS:
        value = os.getenv(key, "").strip()
        if value and value != _DB_CREDS_PLACEHOLDER:
            if value.startswith("postgres://"):
                value = "postgresql://" + value[len("postgres://"):]
            return value
    return f"sqlite:///{DATA_DIR}/ai_quiz.db"


# Optional secret guarding POST /api/init-db
INIT_SECRET: Optional[str] = os.getenv("INIT_SECRET") or None

# --- Session Configuration ---

ADMIN_SESSION_HOURS: int = int(os.getenv("ADMIN_SESSION_HOURS", "24"))
USER_SESSION_DAYS: int = int(os.getenv("USER_SESSION_DAYS", "7"))

# --- Account Defaults ---

DEFAULT_ADMIN_USERNAME = "admin"
DEFAULT_ADMIN_PIN = "0000"
DEFAULT_ADMIN_AI_LIMIT: int = 100
DEFAULT_DAILY_AI_LIMIT: int = 10

# Stored instead of infinity for unlimited users
UNLIMITED_AI_SENTINEL: int = 999999

MIN_USERNAME_LENGTH: int = 3
MIN_PASSWORD_LENGTH: int = 6

# --- AI Quota Configuration ---

ANON_RATE_LIMIT_CALLS: int = int(os.getenv("ANON_RATE_LIMIT_CALLS", "10"))
ANON_RATE_LIMIT_WINDOW_SECONDS: float = float(
    os.getenv("ANON_RATE_LIMIT_WINDOW_SECONDS", "60")
)
QUOTA_CACHE_TTL_SECONDS: float = float(os.getenv("QUOTA_CACHE_TTL_SECONDS", "5"))

# Timezone that defines "today" for the daily call counter
QUOTA_TIMEZONE: str = os.getenv("QUOTA_TIMEZONE", "UTC")

# --- LLM Configuration ---

TEMPERATURE: float = float(os.getenv("TEMPERATURE", "0.7"))
EXPLANATION_MAX_TOKENS: int = int(os.getenv("EXPLANATION_MAX_TOKENS", "800"))

DEFAULT_LLM_PROVIDER: str = os.getenv("DEFAULT_LLM_PROVIDER", "openai")

# Placeholder shipped in example .env files
API_KEY_PLACEHOLDER = "your_openai_api_key_here"

# Provider registry for OpenAI-compatible endpoints
LLM_PROVIDERS: Dict[str, Dict[str, Optional[str]]] = {
    "openai": {
        "display_name": "OpenAI",
        "base_url": None,
        "default_model": "gpt-4o-mini",
        "env_key": "OPENAI_API_KEY",
    },
    "deepseek": {
        "display_name": "DeepSeek",
        "base_url": "https://api.deepseek.com",
        "default_model": "deepseek-chat",
        "env_key": "DEEPSEEK_API_KEY",
    },
}

LLM_MODEL: Optional[str] = os.getenv("LLM_MODEL") or None

# --- Quiz Configuration ---

MAX_QUESTIONS: int = 500
DEFAULT_QUESTION_COUNT: int = 20

# 10 minutes per 20 questions
QUESTIONS_PER_TIME_BLOCK: int = 20
SECONDS_PER_TIME_BLOCK: int = 10 * 60

SNAPSHOT_MAX_AGE_SECONDS: int = 24 * 60 * 60

# --- Client Configuration ---

API_BASE_URL: str = os.getenv("AIQUIZ_API_URL", f"http://localhost:{API_PORT}/api")
LOCAL_STORE_PATH = Path(
    os.getenv("AIQUIZ_STORE_PATH", str(DATA_DIR / "local_store.json"))
)

# --- Logging ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
