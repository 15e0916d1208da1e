"""Configuration loader for the Dynamic Forms API"""

import os
from pathlib import Path

from dotenv import load_dotenv

project_dir = Path(__file__).parent.parent.parent
env_path = project_dir / ".env"

# Load .env file if it exists. For local development only.
if env_path.exists():
    load_dotenv(env_path)


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Configuration dictionary - set once at initialization
config = {
    "database_url": os.getenv("DATABASE_URL", "sqlite:///./dynamic_forms.db"),
    "port": int(os.getenv("PORT", "5000")),
    # Unset means DEBUG in development, INFO elsewhere
    "log_level": os.getenv("LOG_LEVEL"),
    # "development" exposes exception details in 500 responses
    "environment": os.getenv("ENVIRONMENT", "production"),
    "create_tables": _env_flag("CREATE_TABLES", "true"),
    "db_echo": _env_flag("DB_ECHO", "false"),
    "api_base_path": os.getenv("API_BASE_PATH", "/api"),
}


def is_development() -> bool:
    """Whether error details may be returned to clients"""
    return (config.get("environment") or "").lower() == "development"
