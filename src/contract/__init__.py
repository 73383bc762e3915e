"""Stable report contract surface for the named-argument converter."""

from contract.report import (
    BACKUP_SUFFIX,
    REPORT_JSON,
    REPORT_SCHEMA_VERSION,
    SOURCE_SUFFIX,
    UNRESOLVED_JSON,
    backup_path_for,
    normalize_expr,
    truncate_text,
)

__all__ = [
    "BACKUP_SUFFIX",
    "REPORT_JSON",
    "REPORT_SCHEMA_VERSION",
    "SOURCE_SUFFIX",
    "UNRESOLVED_JSON",
    "backup_path_for",
    "normalize_expr",
    "truncate_text",
]
