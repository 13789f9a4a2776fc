"""SQLite infrastructure for analysis storage."""

from mailtrace.infrastructure.sqlite.client import (
    SQLiteAnalysisStore,
    get_sqlite_store,
)

__all__ = [
    "SQLiteAnalysisStore",
    "get_sqlite_store",
]
