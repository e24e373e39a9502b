"""Database URI and engine options for the local, sandbox and production environments."""
import os

DEFAULT_DATABASE_URL = "sqlite:///clients.db"

# Environment variables consulted in order for each remote environment
REMOTE_DATABASE_ENV = {
    "sandbox": ("SANDBOX_DATABASE_URL",),
    "production": ("PRODUCTION_DATABASE_URL", "DATABASE_URL"),
}

ENVIRONMENT_ALIASES = {
    "development": "local",
    "dev": "local",
    "staging": "sandbox",
    "stage": "sandbox",
    "prod": "production",
}


def get_database_engine_options():
    """Pool options for PostgreSQL; the board is small so the pool stays small."""
    from sqlalchemy.pool import QueuePool

    return {
        "pool_pre_ping": True,
        "pool_recycle": 280,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_timeout": 30,
        "poolclass": QueuePool,
        "connect_args": {
            "sslmode": "require",
            "connect_timeout": 10,
            "application_name": "shiptivity",
        },
    }


def normalize_database_url(url):
    """SQLAlchemy expects postgresql:// rather than the legacy postgres:// scheme."""
    if url and url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


def get_database_config(environment=None):
    """
    Resolve (database_uri, engine_options) for an environment.

    Unknown environment names fall back to local. Remote environments must
    name their database explicitly.

    Raises:
        ValueError: If a sandbox/production database URL is not configured
    """
    if environment is None:
        environment = os.environ.get("FLASK_ENV") or os.environ.get("ENVIRONMENT", "local")
    environment = environment.lower()
    environment = ENVIRONMENT_ALIASES.get(environment, environment)

    env_vars = REMOTE_DATABASE_ENV.get(environment)
    if env_vars is None:
        url = os.environ.get("LOCAL_DATABASE_URL") or DEFAULT_DATABASE_URL
        return normalize_database_url(url), None

    url = next((os.environ[name] for name in env_vars if os.environ.get(name)), None)
    if not url:
        raise ValueError(f"{' or '.join(env_vars)} must be set for {environment} environment")
    return normalize_database_url(url), get_database_engine_options()


def configure_database(app):
    """Set SQLALCHEMY_* keys on the app for the current environment."""
    database_uri, engine_options = get_database_config()

    app.config["SQLALCHEMY_DATABASE_URI"] = database_uri
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    if engine_options:
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = engine_options
