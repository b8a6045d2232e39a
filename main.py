"""
Entry point for the WordPress → LABCAT content migration.

Usage:
    python main.py                       # upsert into D1 through Wrangler
    python main.py --db data/content.duckdb
    python main.py --types pages animations --dry-run
"""

import argparse
import sys
from dataclasses import replace

from content_migrator.content_types import CONTENT_TYPES, select_content_types
from content_migrator.config import CONTENT_CONFIG_FILE
from content_migrator.migration_tool import ContentMigrationTool, format_summary, summary_counts
from content_migrator.utils.errors import MigrationError, event_code_for, report_error

LOG_PREFIX = "[content-migration]"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Migrate WordPress content sets into the LABCAT row store."
    )
    parser.add_argument(
        "--db",
        default=None,
        help="Path to a local DuckDB file. Without it, rows are upserted into D1 via Wrangler.",
    )
    parser.add_argument(
        "--config",
        default=CONTENT_CONFIG_FILE,
        help=f"JSON config file (default: {CONTENT_CONFIG_FILE})",
    )
    parser.add_argument(
        "--types",
        nargs="+",
        choices=[ct.key for ct in CONTENT_TYPES],
        default=None,
        help="Content types to migrate (default: all, in table order)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Fetch and count, but do not write any rows",
    )
    parser.add_argument(
        "--mapping-csv",
        default="reports/image_url_map.csv",
        help="Where to write the image URL mapping report (default: reports/image_url_map.csv)",
    )
    return parser


def main(argv=None) -> int:
    """
    Main function to run the content migration.  Returns 0 on success
    (including runs with nothing to migrate) and 1 on any failure.
    """
    args = build_parser().parse_args(argv)

    try:
        tool = ContentMigrationTool.from_config_file(args.config)
        if args.dry_run:
            tool.settings = replace(tool.settings, dry_run=True)
        tool.log_message("Starting WordPress content migration.")

        reports = tool.run(
            select_content_types(args.types),
            db_path=args.db,
            mapping_csv=args.mapping_csv,
        )

        if not reports:
            tool.log_message("No content sets were returned from WordPress. Nothing to migrate.")

        print("\n".join(format_summary(reports, database=args.db)))
        counts = summary_counts(reports)
        tool.log_message(
            f"Migration process finished ({counts['inserted']} inserted, {counts['updated']} updated)."
        )
    except MigrationError as e:
        print(f"{LOG_PREFIX} {e.message}", file=sys.stderr)
        if e.cause is not None:
            print(f"Cause: {e.cause}", file=sys.stderr)
        report_error(event_code_for(e), {}, e)
        return 1
    except Exception as e:
        print(f"{LOG_PREFIX} Migration failed", file=sys.stderr)
        print(repr(e), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
