# src/mailtrace/infrastructure/__init__.py
"""Infrastructure layer - mail transport, storage, and configuration."""

from mailtrace.infrastructure.settings import Settings, get_settings
from mailtrace.infrastructure.sqlite import SQLiteAnalysisStore, get_sqlite_store

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # SQLite
    "SQLiteAnalysisStore",
    "get_sqlite_store",
]
