"""
Create the clients table and its (status, priority) lane index.

The lane index backs lane-scoped reads (``?status=`` listing and
``ClientStore.fetch_all(status=...)``). There is no unique
constraint on (status, priority): a reorder shifts ranks one row at a time
inside its transaction.

Usage:
    python migrations/create_clients_table.py
    python migrations/create_clients_table.py --database-url postgresql://...

The script is idempotent and safe to run multiple times. It inspects the current
schema before attempting to create anything.
"""

import argparse
import os
import sys

from dotenv import load_dotenv

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import OperationalError, ProgrammingError

ROOT_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_SQLITE_PATH = os.path.join(ROOT_DIR, "clients.db")
INDEX_NAME = "idx_clients_status_priority"

# Load environment variables from a .env file if present
load_dotenv()


def normalize_sqlite_path(path: str) -> str:
    """Return a SQLAlchemy-friendly SQLite URL for the given path."""
    if not os.path.isabs(path):
        path = os.path.join(ROOT_DIR, path)
    return f"sqlite:///{path}"


def infer_database_url(cli_url: str = None) -> str:
    """Figure out which database to hit, honoring CLI and environment defaults."""
    candidates = [
        cli_url,
        os.environ.get("DATABASE_URL"),
        os.environ.get("PRODUCTION_DATABASE_URL"),
        os.environ.get("SANDBOX_DATABASE_URL"),
        os.environ.get("LOCAL_DATABASE_URL"),
    ]

    for value in candidates:
        if not value:
            continue

        value = value.strip()
        if value.startswith("postgres://"):
            # SQLAlchemy expects postgresql://
            return value.replace("postgres://", "postgresql://", 1)

        if value.startswith(("postgresql://", "mysql://", "mariadb://", "sqlite://")):
            return value

        # Treat anything else as a filesystem path to a SQLite DB
        return normalize_sqlite_path(value)

    return normalize_sqlite_path(DEFAULT_SQLITE_PATH)


def table_exists(engine, table_name: str) -> bool:
    return inspect(engine).has_table(table_name)


def index_exists(engine, table_name: str, index_name: str) -> bool:
    """Check if a given index exists on the specified table."""
    indexes = inspect(engine).get_indexes(table_name)
    return any(idx["name"] == index_name for idx in indexes)


def migrate(database_url: str = None) -> bool:
    """Create the clients table and lane index if needed."""
    db_url = infer_database_url(database_url)
    print(f"Connecting to database: {db_url}")

    engine = create_engine(db_url)

    try:
        if table_exists(engine, "clients"):
            print("✓ Table 'clients' already exists.")
        else:
            print("Creating table 'clients'...")
            with engine.begin() as conn:
                conn.execute(text(
                    "CREATE TABLE clients ("
                    " id INTEGER PRIMARY KEY,"
                    " name TEXT,"
                    " description TEXT,"
                    " status VARCHAR(32) NOT NULL,"
                    " priority INTEGER NOT NULL"
                    ")"
                ))
            print("✓ Created table 'clients'.")

        if index_exists(engine, "clients", INDEX_NAME):
            print(f"✓ Index '{INDEX_NAME}' already exists on 'clients'. Nothing to do.")
            return True

        print(f"Adding composite index '{INDEX_NAME}' on (status, priority)...")
        with engine.begin() as conn:
            conn.execute(text(f"CREATE INDEX {INDEX_NAME} ON clients (status, priority)"))

        if index_exists(engine, "clients", INDEX_NAME):
            print(f"✓ Successfully added index '{INDEX_NAME}' to 'clients' table.")
            return True

        print("✗ Index creation did not succeed. Please verify manually.")
        return False

    except (OperationalError, ProgrammingError) as exc:
        print(f"✗ Database error while migrating: {exc}")
        return False
    finally:
        engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(
        description="Create the clients table and (status, priority) index."
    )
    parser.add_argument(
        "--database-url",
        help="Override database URL (otherwise inferred from env or defaults).",
    )
    args = parser.parse_args()

    success = migrate(args.database_url)
    sys.exit(0 if success else 1)
