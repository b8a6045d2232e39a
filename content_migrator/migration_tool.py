"""
High-level orchestration of the WordPress → LABCAT content migration.

This module defines a :class:`ContentMigrationTool` class that ties
together the extractor, the normalizer and the two persistence back-ends
into a complete pipeline:

* remote runs (the default) upsert every content type into Cloudflare D1
  with a single Wrangler script;
* local runs (``--db``) upsert row by row into a DuckDB file.

Configuration is resolved once into a :class:`ContentSettings` value,
either passed in directly or loaded from a JSON file with environment
fallback.
"""

from __future__ import annotations

import os
import subprocess
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from .config import CONTENT_CONFIG_FILE, ContentSettings, load_config_file, resolve_content_settings
from .content_types import ContentType
from .extractors.wordpress_extractor import ContentFetchResult, fetch_all_content
from .migrators.d1_migrator import WranglerD1Client, execute_statements, prepare_statements
from .migrators.duckdb_store import DuckDBRowStore
from .migrators.upsert_engine import MigrationReport, UpsertResult, classify_rows, upsert_rows
from .utils.image_mappings import write_image_mappings_csv
from .utils.logs import log_message
from .utils.pre_flight_checks import ensure_wrangler_available


def build_report(content_set: ContentFetchResult, result: UpsertResult) -> MigrationReport:
    return MigrationReport(
        content_type=content_set.content_type.key,
        table=content_set.content_type.table,
        source_count=content_set.source_count,
        migrated_count=content_set.migrated_count,
        inserted=result.inserted,
        updated=result.updated,
        image_mappings=list(content_set.image_mappings),
    )


def format_summary(reports: Sequence[MigrationReport], database: Optional[str] = None) -> List[str]:
    lines = ["Content Migration Summary", "-------------------------"]
    if database:
        lines.append(f"Database: {database}")
    total_inserted = 0
    total_updated = 0
    for report in reports:
        total_inserted += report.inserted
        total_updated += report.updated
        lines.append(f"{report.content_type} -> {report.table}")
        lines.append(f"  Source items: {report.source_count}")
        lines.append(f"  Migrated items: {report.migrated_count}")
        lines.append(f"  Inserted rows: {report.inserted}")
        lines.append(f"  Updated rows: {report.updated}")
        if report.image_mappings:
            lines.append("  Image URL mappings:")
            for mapping in report.image_mappings:
                lines.append(f"    - {mapping.source} -> {mapping.target}")
        else:
            lines.append("  Image URL mappings: none")
        lines.append("")
    lines.append("Overall totals")
    lines.append(f"  Inserted rows: {total_inserted}")
    lines.append(f"  Updated rows: {total_updated}")
    return lines


class ContentMigrationTool:
    """
    Encapsulates the state of one content migration run: resolved
    settings, the HTTP session used against WordPress and the command
    runner used for Wrangler.
    """

    def __init__(
        self,
        settings: Optional[ContentSettings] = None,
        *,
        session: Optional[Any] = None,
        runner: Callable = subprocess.run,
        log: Callable[..., None] = log_message,
    ) -> None:
        self.settings = settings or ContentSettings()
        self.session = session
        self.runner = runner
        self.log = log

    @classmethod
    def from_config_file(
        cls,
        config_file: Optional[str] = CONTENT_CONFIG_FILE,
        environ: Optional[Mapping[str, str]] = None,
        **kwargs: Any,
    ) -> "ContentMigrationTool":
        file_config = load_config_file(config_file)
        settings = resolve_content_settings(file_config, os.environ if environ is None else environ)
        return cls(settings, **kwargs)

    def log_message(self, message: str, level: str = "INFO") -> None:
        self.log(message, level=level)

    def fetch(self, content_types: Sequence[ContentType]) -> List[ContentFetchResult]:
        names = ", ".join(ct.key for ct in content_types)
        self.log_message(f"Fetching {names} from {self.settings.api_base}")
        content_sets = fetch_all_content(
            content_types,
            api_base=self.settings.api_base,
            target_base=self.settings.target_base,
            page_size=self.settings.page_size,
            embed=self.settings.embed,
            session=self.session,
        )
        for content_set in content_sets:
            self.log_message(
                f"{content_set.content_type.key}: {content_set.source_count} record(s) fetched",
                level="DEBUG",
            )
        return content_sets

    def migrate_remote(self, content_sets: Sequence[ContentFetchResult]) -> List[MigrationReport]:
        """Upsert every content set into D1 with one Wrangler script."""
        client = WranglerD1Client(self.settings.d1_database, remote=self.settings.remote, runner=self.runner)
        statements: List[str] = []
        reports: List[MigrationReport] = []
        for content_set in content_sets:
            result = prepare_statements(client, content_set, statements)
            if result.duplicates:
                self.log_message(
                    f"{content_set.content_type.key}: skipped {result.duplicates} duplicate slug(s)",
                    level="WARNING",
                )
            reports.append(build_report(content_set, result))

        if not statements:
            self.log_message("No content required migration.")
        elif self.settings.dry_run:
            self.log_message(f"Dry-run: would execute {len(statements)} upsert statement(s) on {client.database}")
        else:
            self.log_message(f"Executing {len(statements)} upsert statement(s) on {client.database}")
            execute_statements(client, statements)
        return reports

    def migrate_local(self, content_sets: Sequence[ContentFetchResult], db_path: str) -> List[MigrationReport]:
        """Upsert every content set, row by row, into a DuckDB file.

        The file is neither opened nor created when no set has rows.
        """
        if not any(content_set.rows for content_set in content_sets):
            self.log_message("No content required migration.")
            return [build_report(content_set, UpsertResult()) for content_set in content_sets]

        reports: List[MigrationReport] = []
        with DuckDBRowStore(db_path) as store:
            store.ensure_tables(cs.content_type for cs in content_sets)
            for content_set in content_sets:
                if self.settings.dry_run:
                    result = classify_rows(store, content_set.content_type, content_set.rows)
                else:
                    result = upsert_rows(store, content_set.content_type, content_set.rows)
                if result.duplicates:
                    self.log_message(
                        f"{content_set.content_type.key}: skipped {result.duplicates} duplicate slug(s)",
                        level="WARNING",
                    )
                reports.append(build_report(content_set, result))
        return reports

    def run(
        self,
        content_types: Sequence[ContentType],
        *,
        db_path: Optional[str] = None,
        mapping_csv: Optional[str] = None,
    ) -> List[MigrationReport]:
        """
        Fetch, normalize and persist ``content_types``.

        :param content_types: Content types in table order.
        :param db_path: Local DuckDB file; ``None`` targets D1 through Wrangler.
        :param mapping_csv: Where to write the image URL mapping report.
        :return: One report per content type.
        """
        if db_path is None:
            ensure_wrangler_available(self.runner)

        content_sets = self.fetch(content_types)
        if db_path is None:
            reports = self.migrate_remote(content_sets)
        else:
            reports = self.migrate_local(content_sets, db_path)

        if mapping_csv:
            pairs = [(report.content_type, mapping) for report in reports for mapping in report.image_mappings]
            write_image_mappings_csv(pairs, mapping_csv)
            self.log_message(f"Image URL mapping CSV generated with {len(pairs)} entries", level="DEBUG")
        return reports


def summary_counts(reports: Sequence[MigrationReport]) -> Dict[str, int]:
    return {
        "source": sum(r.source_count for r in reports),
        "migrated": sum(r.migrated_count for r in reports),
        "inserted": sum(r.inserted for r in reports),
        "updated": sum(r.updated for r in reports),
    }
