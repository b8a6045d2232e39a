#!/usr/bin/env python3
"""
Copy the images referenced by WordPress content into the R2 bucket.

Credentials and per-source overrides are read from
config/image_migration_config.json when it exists, with environment
variables as fallback.  The resulting mapping is printed as JSON and
written to reports/image_migration_map.json.
"""

import argparse
import json
import os
import sys
from pathlib import Path

# Allows importing content_migrator when run as a script
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from content_migrator.config import (
    IMAGE_CONFIG_FILE,
    load_config_file,
    resolve_image_settings,
    select_sources,
)
from content_migrator.migrators.image_migrator import migrate_images
from content_migrator.utils.errors import MigrationError, event_code_for, report_error
from content_migrator.utils.logs import log_message

LOG_PREFIX = "[image-migration]"
DEFAULT_OUTPUT = os.path.join("reports", "image_migration_map.json")


def save_mapping(records, output_file):
    """Write the mapping records to a JSON file."""
    os.makedirs(os.path.dirname(output_file) or ".", exist_ok=True)
    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(records, f, indent=2, ensure_ascii=False)


def main(argv=None, *, s3_client=None, session=None) -> int:
    parser = argparse.ArgumentParser(
        description="Download WordPress media and upload it to the R2 image bucket."
    )
    parser.add_argument(
        "--config",
        default=IMAGE_CONFIG_FILE,
        help=f"JSON config file (default: {IMAGE_CONFIG_FILE})",
    )
    parser.add_argument(
        "--source",
        nargs="+",
        default=None,
        help="Only migrate these source keys (default: every resolved source)",
    )
    parser.add_argument(
        "--output",
        default=DEFAULT_OUTPUT,
        help=f"Where to write the JSON mapping (default: {DEFAULT_OUTPUT})",
    )
    args = parser.parse_args(argv)

    try:
        settings = resolve_image_settings(load_config_file(args.config), os.environ)
        sources = select_sources(settings.sources, args.source)
        log_message(f"Migrating images for: {', '.join(s.key for s in sources)}")

        records = migrate_images(
            sources,
            settings.credentials,
            settings.bucket,
            endpoint=settings.endpoint,
            public_base_url=settings.public_base_url,
            s3_client=s3_client,
            session=session,
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

    if not records:
        log_message("Migration finished: no images processed.")
        return 0

    mapping = [record.model_dump(by_alias=True) for record in records]
    save_mapping(mapping, args.output)
    print("Migration finished. Mapping:")
    print(json.dumps(mapping, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
