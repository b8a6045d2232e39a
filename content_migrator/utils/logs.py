"""
Console logging shared by the migration entry points.

Messages are printed as ``[LEVEL] message``.  Errors go to standard error,
everything else to standard output, and every line is appended to
``reports/migration/migration.log`` as well.
"""

from __future__ import annotations

import os
import sys

_LOG_FILE = os.path.join("reports", "migration", "migration.log")


def log_message(message: str, level: str = "INFO") -> None:
    stream = sys.stderr if level == "ERROR" else sys.stdout
    print(f"[{level}] {message}", file=stream)
    os.makedirs(os.path.dirname(_LOG_FILE), exist_ok=True)
    with open(_LOG_FILE, "a", encoding="utf-8") as f:
        f.write(f"{level}: {message}\n")
