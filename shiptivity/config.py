import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    """Base configuration class with common settings."""
    # CORS configuration
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reordering
    REORDER_LOCK_TIMEOUT_SECONDS = int(os.environ.get("REORDER_LOCK_TIMEOUT_SECONDS", "30"))

    # Create missing tables when the app boots (local sqlite convenience)
    CREATE_TABLES_ON_STARTUP = os.environ.get("CREATE_TABLES_ON_STARTUP", "true").lower() in ("1", "true", "yes")


class LocalConfig(Config):
    """Configuration for local development."""
    ENV = "local"
    DEBUG = True


class SandboxConfig(Config):
    """Configuration for sandbox/staging environment."""
    ENV = "sandbox"
    DEBUG = False


class ProductionConfig(Config):
    """Configuration for production environment."""
    ENV = "production"
    DEBUG = False
    # Production schema is managed by migrations/create_clients_table.py
    CREATE_TABLES_ON_STARTUP = os.environ.get("CREATE_TABLES_ON_STARTUP", "false").lower() in ("1", "true", "yes")


def get_config():
    """Get the appropriate configuration class based on environment variable.

    Environment is determined by FLASK_ENV or ENVIRONMENT variable:
    - 'local' or 'development' -> LocalConfig
    - 'sandbox' or 'staging' -> SandboxConfig
    - 'production' or 'prod' -> ProductionConfig

    Defaults to LocalConfig if not set.
    """
    env = (os.environ.get("FLASK_ENV") or os.environ.get("ENVIRONMENT", "local")).lower()

    if env in ["local", "development", "dev"]:
        return LocalConfig
    elif env in ["sandbox", "staging", "stage"]:
        return SandboxConfig
    elif env in ["production", "prod"]:
        return ProductionConfig
    else:
        # Default to local for safety
        return LocalConfig
