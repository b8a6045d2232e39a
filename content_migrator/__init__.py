"""
Top-level package for the WordPress → LABCAT content migration utility.

This package bundles everything required to pull content sets out of the
WordPress REST API, normalize them into uniform rows, rewrite their image
URLs to the new image bucket, persist the rows with idempotent upserts and
copy the referenced images into R2.  Modules are split into subpackages:

* :mod:`content_migrator.extractors` – fetching content from WordPress
* :mod:`content_migrator.parsers` – title cleanup, URL rewriting, normalization
* :mod:`content_migrator.migrators` – row stores, upsert engines and image copy
* :mod:`content_migrator.utils` – logging, error reporting and mapping reports

Each layer has no direct knowledge of configuration or execution strategy;
orchestration is handled in :mod:`content_migrator.migration_tool`.
"""

__version__ = "0.3.0"
