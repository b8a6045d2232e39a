"""
Insert-or-update of normalized rows, one row at a time.

The engine looks every row up by slug and either updates the existing row
in place or inserts a new one.  There is no transaction spanning the batch:
a failure stops the loop, rows written before it stay written, and a re-run
turns the already inserted rows into identical updates.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Protocol, Sequence, Tuple

from ..content_types import ContentType
from ..models.content import ImageMapping, NormalizedRow
from ..utils.errors import report_ok

SLUG_CHUNK_SIZE = 100


class RowStore(Protocol):
    def find_id_by_slug(self, table: str, slug: str) -> Optional[int]: ...

    def find_existing_slugs(self, table: str, slugs: Sequence[str]) -> set: ...

    def insert_row(self, table: str, columns: Dict[str, Any]) -> None: ...

    def update_row(self, table: str, row_id: int, columns: Dict[str, Any]) -> None: ...


@dataclass
class UpsertResult:
    inserted: int = 0
    updated: int = 0
    duplicates: int = 0


@dataclass
class MigrationReport:
    content_type: str
    table: str
    source_count: int
    migrated_count: int
    inserted: int = 0
    updated: int = 0
    image_mappings: List[ImageMapping] = field(default_factory=list)


def chunked(items: Sequence[str], size: int = SLUG_CHUNK_SIZE) -> Iterator[Sequence[str]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


def dedupe_by_slug(
    rows: Sequence[NormalizedRow], table: Optional[str] = None
) -> Tuple[List[NormalizedRow], int]:
    """Keep the first row seen for each slug; return the rows and the drop count.

    With ``table`` set, every dropped row is recorded as a ``DUPLICATE_SLUG``
    event.
    """
    seen: set = set()
    unique: List[NormalizedRow] = []
    for row in rows:
        if row.slug in seen:
            if table is not None:
                report_ok("DUPLICATE_SLUG", {"slug": row.slug, "table": table})
            continue
        seen.add(row.slug)
        unique.append(row)
    return unique, len(rows) - len(unique)


def upsert_rows(store: RowStore, content_type: ContentType, rows: Sequence[NormalizedRow]) -> UpsertResult:
    """Insert or update ``rows`` in the content type's table.

    :param store: Row store offering slug lookups, inserts and updates.
    :param content_type: Descriptor naming the target table.
    :param rows: Normalized rows in fetch order.
    :return: How many rows were inserted, updated and skipped as duplicates.
    """
    table = content_type.table
    unique, duplicates = dedupe_by_slug(rows, table)
    result = UpsertResult(duplicates=duplicates)

    for row in unique:
        existing_id = store.find_id_by_slug(table, row.slug)
        if existing_id is not None:
            store.update_row(table, existing_id, row.update_columns())
            result.updated += 1
            report_ok("ROW_UPDATED", {"slug": row.slug, "table": table}, {"id": existing_id})
        else:
            store.insert_row(table, row.to_columns())
            result.inserted += 1
            report_ok("ROW_INSERTED", {"slug": row.slug, "table": table})
    return result


def classify_rows(store: RowStore, content_type: ContentType, rows: Sequence[NormalizedRow]) -> UpsertResult:
    """Count what :func:`upsert_rows` would do without writing anything."""
    unique, duplicates = dedupe_by_slug(rows)
    existing = store.find_existing_slugs(content_type.table, [row.slug for row in unique])
    updated = sum(1 for row in unique if row.slug in existing)
    return UpsertResult(inserted=len(unique) - updated, updated=updated, duplicates=duplicates)
