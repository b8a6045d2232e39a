import os
import sys

# Ensure project root is on sys.path for imports when running tests directly
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import json

import pytest

from content_migrator.utils.errors import (
    ConfigurationError,
    EVENTS,
    FetchError,
    MalformedUrlError,
    StoreError,
    TransferError,
    UnexpectedResponseError,
    event_code_for,
    report_error,
    report_ok,
)
from content_migrator.utils.logs import log_message
from content_migrator.utils.pre_flight_checks import require_settings


def _read_jsonl(path):
    with open(path, encoding="utf-8") as f:
        return [json.loads(line) for line in f]


def test_report_ok_appends_entries():
    report_ok("ROW_INSERTED", {"slug": "a", "table": "pages"})
    report_ok("IMAGE_UPLOADED", {"url": "https://x/a.png"}, {"key": "pages/a.png"})
    entries = _read_jsonl("reports/migration/success.jsonl")
    assert entries[0] == {
        "code": "ROW_INSERTED",
        "message": "Row inserted",
        "slug": "a",
        "table": "pages",
        "url": None,
    }
    assert entries[1]["key"] == "pages/a.png"


def test_report_error_includes_cause():
    error = FetchError("Failed to fetch pages", ValueError("boom"))
    report_error("FETCH", {"table": "pages"}, error)
    entry = _read_jsonl("reports/migration/errors.jsonl")[0]
    assert entry["message"] == "Failed to fetch content from WordPress"
    assert entry["error"] == "Failed to fetch pages"
    assert entry["cause"] == "boom"


def test_unknown_code_falls_back_to_code():
    report_error("SOMETHING_ELSE", {})
    assert _read_jsonl("reports/migration/errors.jsonl")[0]["message"] == "SOMETHING_ELSE"


def test_log_message_prints_and_appends(capsys):
    log_message("hello")
    log_message("bad", level="ERROR")
    captured = capsys.readouterr()
    assert captured.out == "[INFO] hello\n"
    assert captured.err == "[ERROR] bad\n"
    with open("reports/migration/migration.log", encoding="utf-8") as f:
        assert f.read() == "INFO: hello\nERROR: bad\n"


def test_require_settings_names_first_missing():
    with pytest.raises(ConfigurationError, match="Missing required configuration value: B"):
        require_settings({"A": "x", "B": "  ", "C": None}, ["A", "B", "C"])
    require_settings({"A": "x"}, ["A"])


@pytest.mark.parametrize(
    "error, code",
    [
        (FetchError("x"), "FETCH"),
        (TransferError("x"), "TRANSFER"),
        (MalformedUrlError("x"), "TRANSFER"),
        (StoreError("x"), "STORE"),
        (UnexpectedResponseError("x"), "STORE"),
        (ConfigurationError("x"), "CONFIGURATION"),
    ],
)
def test_failures_map_to_event_codes(error, code):
    assert event_code_for(error) == code
    assert code in EVENTS


def test_unmapped_exception_uses_class_name():
    assert event_code_for(KeyError("x")) == "KeyError"
