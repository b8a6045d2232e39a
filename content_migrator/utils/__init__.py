"""
Utility helpers used by the migration tool.

This subpackage exposes the error hierarchy, structured event reports and
console logging.  Image mapping helpers live in
:mod:`content_migrator.utils.image_mappings`.
"""

from .errors import (
    EVENTS,
    ConfigurationError,
    FetchError,
    MalformedUrlError,
    MigrationError,
    NormalizationError,
    StoreError,
    TransferError,
    UnexpectedResponseError,
    event_code_for,
    report_error,
    report_ok,
)
from .logs import log_message

__all__ = [
    "EVENTS",
    "ConfigurationError",
    "FetchError",
    "MalformedUrlError",
    "MigrationError",
    "NormalizationError",
    "StoreError",
    "TransferError",
    "UnexpectedResponseError",
    "event_code_for",
    "report_error",
    "report_ok",
    "log_message",
]
