"""
Persistence and media copy for the migration.

This subpackage holds the sequential upsert engine and its DuckDB row
store, the bulk D1 upserts driven through Wrangler, and the image copy
into the R2 bucket.  Nothing here retries; a failure aborts the run and the
idempotent upserts make a full re-run safe.
"""
