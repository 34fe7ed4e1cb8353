"""Per-environment database URI and engine options."""
import os
from typing import Optional, Tuple

# environment -> (env vars checked in order, fallback URI, pooled)
DATABASE_SOURCES = {
    "local": (("LOCAL_DATABASE_URL",), "sqlite:///kanban.sqlite", False),
    "testing": ((), "sqlite:///:memory:", False),
    "sandbox": (("SANDBOX_DATABASE_URL",), None, True),
    "production": (("PRODUCTION_DATABASE_URL", "DATABASE_URL"), None, True),
}

ENVIRONMENT_ALIASES = {
    "development": "local",
    "dev": "local",
    "test": "testing",
    "staging": "sandbox",
    "stage": "sandbox",
    "prod": "production",
}


def get_pooled_engine_options():
    """QueuePool settings for the Postgres environments."""
    from sqlalchemy.pool import QueuePool

    return {
        "poolclass": QueuePool,
        "pool_pre_ping": True,
        "pool_recycle": 280,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_reset_on_return": "commit",
        "connect_args": {
            "connect_timeout": 10,
            "application_name": "kanban_board",
            "options": "-c statement_timeout=30000",
        },
    }


def normalize_environment(environment: Optional[str]) -> str:
    name = (environment or "local").lower()
    name = ENVIRONMENT_ALIASES.get(name, name)
    return name if name in DATABASE_SOURCES else "local"


def get_database_config(environment: Optional[str]) -> Tuple[str, Optional[dict]]:
    """
    Resolve the database for an environment.

    Returns:
        (database_uri, engine_options); engine_options is None for sqlite

    Raises:
        ValueError: If a pooled environment has none of its URL variables set
    """
    name = normalize_environment(environment)
    env_vars, fallback, pooled = DATABASE_SOURCES[name]

    database_uri = next((os.environ[var] for var in env_vars if os.environ.get(var)), fallback)
    if not database_uri:
        raise ValueError(f"{' or '.join(env_vars)} must be set for {name} environment")

    return database_uri, get_pooled_engine_options() if pooled else None


def configure_database(app):
    """Set the SQLAlchemy keys on ``app.config`` for the app's environment."""
    environment = app.config.get("ENV") or os.environ.get("ENVIRONMENT")
    database_uri, engine_options = get_database_config(environment)

    app.config["SQLALCHEMY_DATABASE_URI"] = database_uri
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False
    app.config["SQLALCHEMY_ECHO"] = False
    if engine_options:
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = engine_options
