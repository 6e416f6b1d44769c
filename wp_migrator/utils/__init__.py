"""
Utility helpers used by the migration tool.

This subpackage exposes the error kinds raised by the engine and the
JSON Lines report helpers.
"""

from .errors import EVENTS, ErrorKind, MigrationError, report_error, report_ok

__all__ = ["EVENTS", "ErrorKind", "MigrationError", "report_error", "report_ok"]
