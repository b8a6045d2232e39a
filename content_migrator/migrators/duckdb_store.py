"""
Local row store backed by a DuckDB file.

Each content type lives in its own table with a unique ``slug`` column and
an ``id`` drawn from a per-table sequence.  ``featuredImages`` is stored as
JSON text.  The store only offers what the upsert engine needs: slug
lookups, inserts and updates by id.
"""

from __future__ import annotations

import os
from typing import Any, Dict, Iterable, List, Optional, Sequence

import duckdb

from ..content_types import ContentType
from ..utils.errors import StoreError
from .upsert_engine import chunked


def _q(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def create_table_sql(content_type: ContentType) -> List[str]:
    table = content_type.table
    extra = "".join(f",\n  {_q(column)} VARCHAR" for column in content_type.extra_columns)
    return [
        f"CREATE SEQUENCE IF NOT EXISTS {table}_id_seq START 1",
        f"""CREATE TABLE IF NOT EXISTS {table} (
  id INTEGER PRIMARY KEY DEFAULT nextval('{table}_id_seq'),
  created VARCHAR NOT NULL,
  modified VARCHAR NOT NULL,
  slug VARCHAR NOT NULL UNIQUE,
  status VARCHAR NOT NULL,
  "type" VARCHAR NOT NULL,
  title VARCHAR NOT NULL,
  "featuredImage" VARCHAR,
  "featuredImages" VARCHAR{extra},
  sort INTEGER NOT NULL DEFAULT 0
)""",
    ]


class DuckDBRowStore:
    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        parent = os.path.dirname(os.path.abspath(db_path))
        os.makedirs(parent, exist_ok=True)
        try:
            self.con = duckdb.connect(database=db_path, read_only=False)
        except duckdb.Error as e:
            raise StoreError(f"Could not open database file {db_path}", e) from e

    def close(self) -> None:
        self.con.close()

    def __enter__(self) -> "DuckDBRowStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _execute(self, sql: str, params: Optional[Sequence[Any]] = None):
        try:
            return self.con.execute(sql, params) if params is not None else self.con.execute(sql)
        except duckdb.Error as e:
            raise StoreError(f"Query failed: {sql.splitlines()[0]}", e) from e

    def ensure_tables(self, content_types: Iterable[ContentType]) -> None:
        for content_type in content_types:
            for statement in create_table_sql(content_type):
                self._execute(statement)

    def find_id_by_slug(self, table: str, slug: str) -> Optional[int]:
        row = self._execute(f"SELECT id FROM {table} WHERE slug = ? LIMIT 1", [slug]).fetchone()
        return row[0] if row else None

    def find_existing_slugs(self, table: str, slugs: Sequence[str]) -> set:
        existing: set = set()
        unique = list(dict.fromkeys(slugs))
        for chunk in chunked(unique):
            placeholders = ", ".join("?" for _ in chunk)
            rows = self._execute(
                f"SELECT slug FROM {table} WHERE slug IN ({placeholders})", list(chunk)
            ).fetchall()
            existing.update(r[0] for r in rows)
        return existing

    def insert_row(self, table: str, columns: Dict[str, Any]) -> None:
        names = ", ".join(_q(name) for name in columns)
        placeholders = ", ".join("?" for _ in columns)
        self._execute(f"INSERT INTO {table} ({names}) VALUES ({placeholders})", list(columns.values()))

    def update_row(self, table: str, row_id: int, columns: Dict[str, Any]) -> None:
        assignments = ", ".join(f"{_q(name)} = ?" for name in columns)
        self._execute(f"UPDATE {table} SET {assignments} WHERE id = ?", [*columns.values(), row_id])

    def fetch_rows(self, table: str) -> List[Dict[str, Any]]:
        cursor = self._execute(f"SELECT * FROM {table} ORDER BY id")
        names = [d[0] for d in cursor.description]
        return [dict(zip(names, values)) for values in cursor.fetchall()]
