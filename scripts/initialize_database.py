"""
Create the content tables in a local DuckDB file.

Usage:
    python scripts/initialize_database.py [data/content.duckdb]
"""

import sys
from pathlib import Path

# Allows importing content_migrator when run as a script
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from content_migrator.content_types import CONTENT_TYPES
from content_migrator.migrators.duckdb_store import DuckDBRowStore

DEFAULT_DB_PATH = "data/content.duckdb"


def initialize_database(db_path=DEFAULT_DB_PATH):
    """
    Creates one table per content type (with its id sequence) when it does
    not exist yet.  Existing tables and rows are left untouched.
    """
    with DuckDBRowStore(db_path) as store:
        store.ensure_tables(CONTENT_TYPES)
        for content_type in CONTENT_TYPES:
            count = len(store.fetch_rows(content_type.table))
            print(f"Table '{content_type.table}' ready ({count} rows).")
    print(f"Database initialized at {db_path}.")


if __name__ == "__main__":
    initialize_database(sys.argv[1] if len(sys.argv) > 1 else DEFAULT_DB_PATH)
