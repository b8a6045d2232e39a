"""
Bulk upserts into Cloudflare D1 through the Wrangler CLI.

Usage example::

    from content_migrator.extractors import fetch_all_content
    from content_migrator.migrators.d1_migrator import (
        WranglerD1Client, prepare_statements, execute_statements
    )

    client = WranglerD1Client("labcat_nz")
    statements = []
    for content_set in fetch_all_content(CONTENT_TYPES):
        result = prepare_statements(client, content_set, statements)
    execute_statements(client, statements)

Existing slugs are looked up with ``wrangler d1 execute --json --command``
in chunks of 100.  Every row becomes one ``INSERT ... ON CONFLICT(slug) DO
UPDATE`` statement; all statements of a run are written to a single
temporary ``.sql`` file which Wrangler executes once.
"""

from __future__ import annotations

import json
import os
import subprocess
import tempfile
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..extractors.wordpress_extractor import ContentFetchResult
from ..models.content import MUTABLE_COLUMNS, NormalizedRow
from ..utils.errors import StoreError, UnexpectedResponseError
from .upsert_engine import UpsertResult, chunked, dedupe_by_slug

DEFAULT_D1_DATABASE = "labcat_nz"


###############################################################################
# Wrangler client
###############################################################################

class WranglerD1Client:
    """
    Thin wrapper around ``npx wrangler d1 execute``.

    ``runner`` is called like :func:`subprocess.run`; tests pass a fake.
    """

    def __init__(self, database: str = DEFAULT_D1_DATABASE, *, remote: bool = True, runner: Callable = subprocess.run) -> None:
        self.database = database
        self.remote = remote
        self.runner = runner

    def _command(self, *args: str) -> List[str]:
        location = "--remote" if self.remote else "--local"
        return ["npx", "wrangler", "d1", "execute", self.database, location, *args]

    def query(self, sql: str) -> List[Dict[str, Any]]:
        """Run a read query and return its result rows."""
        result = self.runner(
            self._command("--json", "--command", sql),
            capture_output=True,
            text=True,
            check=False,
        )
        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise StoreError("Wrangler query failed." + (f"\n{stderr}" if stderr else ""))
        return parse_wrangler_json(result.stdout or "")

    def execute_file(self, path: str) -> None:
        result = self.runner(self._command("--file", path), check=False)
        if result.returncode != 0:
            raise StoreError("Wrangler execution failed.")


def parse_wrangler_json(output: str) -> List[Dict[str, Any]]:
    """
    Extract result rows from ``wrangler d1 execute --json`` output.

    Wrangler has printed both a bare list of statement results and an
    object with a ``result`` list; both are accepted.

    :raises UnexpectedResponseError: for failures or any other shape.
    """
    output = output.strip()
    if not output:
        return []
    try:
        parsed = json.loads(output)
    except json.JSONDecodeError as e:
        raise UnexpectedResponseError("Unexpected Wrangler JSON response.", e) from e

    if isinstance(parsed, list):
        first = parsed[0] if parsed else None
        if not isinstance(first, dict) or not first.get("success"):
            raise UnexpectedResponseError("Wrangler query reported failure.")
        return first.get("results") or []

    if isinstance(parsed, dict):
        results = parsed.get("result") or []
        first = results[0] if isinstance(results, list) and results else None
        if not parsed.get("success") or not isinstance(first, dict) or not first.get("success"):
            raise UnexpectedResponseError("Unexpected Wrangler JSON response.")
        return first.get("results") or []

    raise UnexpectedResponseError("Unexpected Wrangler JSON response.")


###############################################################################
# SQL rendering
###############################################################################

def sql_literal(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"


def build_upsert_statement(table: str, row: NormalizedRow, extra_columns: Sequence[str]) -> str:
    columns = row.to_columns()
    names = list(columns)
    values = [sql_literal(columns[name]) for name in names]
    assignments = [f"{name} = excluded.{name}" for name in MUTABLE_COLUMNS]
    assignments.extend(f"{name} = excluded.{name}" for name in extra_columns)
    return "\n".join(
        [
            f"INSERT INTO {table} (",
            f"  {', '.join(names)}",
            ") VALUES (",
            f"  {', '.join(values)}",
            ") ON CONFLICT(slug) DO UPDATE SET",
            "  " + ",\n  ".join(assignments) + ";",
        ]
    )


###############################################################################
# Bulk upsert
###############################################################################

def fetch_existing_slugs(client: WranglerD1Client, table: str, slugs: Sequence[str]) -> set:
    existing: set = set()
    unique = list(dict.fromkeys(slugs))
    for chunk in chunked(unique):
        slug_list = ", ".join(sql_literal(slug) for slug in chunk)
        for result_row in client.query(f"SELECT slug FROM {table} WHERE slug IN ({slug_list});"):
            slug = result_row.get("slug")
            if isinstance(slug, str):
                existing.add(slug)
    return existing


def prepare_statements(client: WranglerD1Client, content_set: ContentFetchResult, statements: List[str]) -> UpsertResult:
    """
    Append one upsert statement per unique slug of ``content_set``.

    The inserted/updated counts are predicted from the slugs already in
    the table before the script runs.
    """
    content_type = content_set.content_type
    unique, duplicates = dedupe_by_slug(content_set.rows, content_type.table)
    result = UpsertResult(duplicates=duplicates)
    if not unique:
        return result

    existing = fetch_existing_slugs(client, content_type.table, [row.slug for row in unique])
    for row in unique:
        if row.slug in existing:
            result.updated += 1
        else:
            result.inserted += 1
        statements.append(build_upsert_statement(content_type.table, row, content_type.extra_columns))
    return result


def write_temp_sql_file(sql: str, directory: Optional[str] = None) -> str:
    fd, path = tempfile.mkstemp(prefix=f"content-migration-{int(time.time() * 1000)}-", suffix=".sql", dir=directory)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(sql)
    return path


def execute_statements(client: WranglerD1Client, statements: Sequence[str]) -> None:
    """Run every statement as one script; the temporary file is always removed."""
    if not statements:
        return
    path = write_temp_sql_file("\n\n".join(statements))
    try:
        client.execute_file(path)
    finally:
        if os.path.exists(path):
            os.remove(path)
