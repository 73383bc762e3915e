"""Report contract definitions.

This module defines the stable surface of everything a conversion run writes
besides the rewritten sources: file names, schema version and the text
normalization used inside report records.
"""

from __future__ import annotations

import re

# Report schema version (report-v1).
REPORT_SCHEMA_VERSION = 1

# Default output filenames (stable contract identifiers).
REPORT_JSON = "named-args-report.json"
UNRESOLVED_JSON = "unresolved-calls.json"
BACKUP_SUFFIX = ".bak"

# Solidity sources picked up when a directory is given as input.
SOURCE_SUFFIX = ".sol"

TRUNCATE_LENGTH = 50

_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_expr(raw_expr: str) -> str:
    """Collapse whitespace runs so multi-line calls fit on one report line."""
    return _WHITESPACE_RUN.sub(" ", raw_expr.strip())


def truncate_text(text: str, limit: int = TRUNCATE_LENGTH) -> str:
    """Normalize and cut ``text`` to ``limit`` characters plus ``...``."""
    normalized = normalize_expr(text)
    if len(normalized) <= limit:
        return normalized
    return f"{normalized[:limit]}..."


def backup_path_for(path: str) -> str:
    return f"{path}{BACKUP_SUFFIX}"
