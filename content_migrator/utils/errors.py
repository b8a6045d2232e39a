"""
Error types and structured event reports for the migration.

The :mod:`content_migrator.utils.errors` module centralizes two things:

Exceptions
    Every hard failure raised by the pipeline derives from
    :class:`MigrationError`.  The subclasses tag the failure family
    (fetching, configuration, image transfer, ...) and each instance can
    carry the underlying ``cause`` so the entry points can print it.

Event reports
    ``report_error`` and ``report_ok`` append JSON Lines entries under
    ``reports/migration`` so that the outcome of every row and image can be
    reviewed or parsed after a run.

The ``EVENTS`` dictionary maps event codes to human readable messages.
Codes not present in the dictionary fall back to the code itself.
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional


class MigrationError(Exception):
    """Base class for every failure the migration reports as fatal."""

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause


class FetchError(MigrationError):
    """The WordPress API answered with a non-success status or a bad payload."""


class ConfigurationError(MigrationError):
    """A required setting is missing or the config file is unreadable."""


class TransferError(MigrationError):
    """Downloading an image or uploading it to the bucket failed."""


class MalformedUrlError(MigrationError):
    """No filename could be derived from an image URL."""


class NormalizationError(MigrationError):
    """A remote record cannot be turned into a row (e.g. it has no slug)."""


class StoreError(MigrationError):
    """The row store rejected a query or a write."""


class UnexpectedResponseError(MigrationError):
    """The external query tool answered with a shape we do not understand."""


EVENTS: Dict[str, str] = {
    "ROW_INSERTED": "Row inserted",
    "ROW_UPDATED": "Row updated",
    "DUPLICATE_SLUG": "Duplicate slug skipped",
    "IMAGE_UPLOADED": "Image uploaded to bucket",
    "IMAGE_SKIPPED": "Image key already uploaded in this run",
    "FETCH": "Failed to fetch content from WordPress",
    "TRANSFER": "Failed to copy image to bucket",
    "STORE": "Failed to write row",
    "CONFIGURATION": "Invalid or missing configuration",
    "NORMALIZATION": "Failed to normalize a remote record",
}

# Failure families reported under a shared event code.
ERROR_EVENTS = (
    (FetchError, "FETCH"),
    (TransferError, "TRANSFER"),
    (MalformedUrlError, "TRANSFER"),
    (StoreError, "STORE"),
    (UnexpectedResponseError, "STORE"),
    (ConfigurationError, "CONFIGURATION"),
    (NormalizationError, "NORMALIZATION"),
)


def event_code_for(exc: BaseException) -> str:
    """Event code for ``exc``; unknown exceptions use their class name."""
    for error_type, code in ERROR_EVENTS:
        if isinstance(exc, error_type):
            return code
    return type(exc).__name__


_REPORT_DIR = os.path.join("reports", "migration")
_ERROR_LOG = os.path.join(_REPORT_DIR, "errors.jsonl")
_OK_LOG = os.path.join(_REPORT_DIR, "success.jsonl")


def _write_jsonl(path: str, data: Dict[str, Any]) -> None:
    """Append ``data`` as a JSON object followed by a newline to ``path``."""
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False)
        f.write("\n")


def report_error(code: str, subject: Dict[str, Any], exc: Optional[BaseException] = None) -> None:
    """Record a failure event for ``subject``.

    Parameters
    ----------
    code:
        A key identifying the type of error.  If ``code`` is present in
        :data:`EVENTS` its value will be used as the message.
    subject:
        The row or image dictionary associated with the error.  Only the
        ``slug``, ``table`` and ``url`` keys are referenced if present.
    exc:
        Optional exception that triggered the error.  Its string form (and
        its ``cause`` for migration errors) is included in the entry.
    """
    entry: Dict[str, Any] = {
        "code": code,
        "message": EVENTS.get(code, code),
        "slug": subject.get("slug"),
        "table": subject.get("table"),
        "url": subject.get("url"),
    }
    if exc is not None:
        entry["error"] = str(exc)
        cause = getattr(exc, "cause", None)
        if cause is not None:
            entry["cause"] = str(cause)
    _write_jsonl(_ERROR_LOG, entry)


def report_ok(code: str, subject: Dict[str, Any], extra: Optional[Dict[str, Any]] = None) -> None:
    """Record a successful event for ``subject``.

    Parameters
    ----------
    code:
        A key identifying the type of event.
    subject:
        The row or image dictionary associated with the event.
    extra:
        Optional dictionary of additional fields merged into the entry.
    """
    entry: Dict[str, Any] = {
        "code": code,
        "message": EVENTS.get(code, code),
        "slug": subject.get("slug"),
        "table": subject.get("table"),
        "url": subject.get("url"),
    }
    if extra:
        entry.update(extra)
    _write_jsonl(_OK_LOG, entry)
