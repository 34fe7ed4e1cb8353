import os
from dotenv import load_dotenv

from kanban.db_config import normalize_environment

load_dotenv()


def _env_flag(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() not in {"0", "false", "no", "off", ""}


class Config:
    """Settings shared by every environment."""
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key")
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = "Lax"

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_FILE = os.environ.get("LOG_FILE")  # stdout only when unset

    # Comma-separated list, or "*"
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Records loaded per board snapshot
    KANBAN_DEFAULT_LIMIT = int(os.environ.get("KANBAN_DEFAULT_LIMIT", "100"))
    KANBAN_HIDE_NO_STATUS_COLUMN = _env_flag("KANBAN_HIDE_NO_STATUS_COLUMN")


class LocalConfig(Config):
    ENV = "local"
    DEBUG = True


class TestingConfig(Config):
    """In-memory database, fixed secret."""
    ENV = "testing"
    TESTING = True
    SECRET_KEY = "test-secret-key"


class SandboxConfig(Config):
    ENV = "sandbox"
    SESSION_COOKIE_SECURE = True


class ProductionConfig(Config):
    ENV = "production"
    SESSION_COOKIE_SECURE = True


CONFIGS = {
    config.ENV: config
    for config in (LocalConfig, TestingConfig, SandboxConfig, ProductionConfig)
}


def get_config():
    """Config class for FLASK_ENV (or ENVIRONMENT); unknown names fall back to local.

    Accepted aliases: development/dev -> local, test -> testing,
    staging/stage -> sandbox, prod -> production.
    """
    return CONFIGS[normalize_environment(os.environ.get("FLASK_ENV") or os.environ.get("ENVIRONMENT"))]
