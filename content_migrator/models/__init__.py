from .content import (
    ImageMapping,
    ImageMigrationRecord,
    MigrationSource,
    NormalizedRow,
    R2Credentials,
)

__all__ = [
    "ImageMapping",
    "ImageMigrationRecord",
    "MigrationSource",
    "NormalizedRow",
    "R2Credentials",
]
