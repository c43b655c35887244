"""Data persistence layer"""

from .import_log import ImportLog

__all__ = ["ImportLog"]
