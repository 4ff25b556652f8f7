"""
Storage adapters for RoadWatch.

SQLite-backed report documents, a filesystem photo store and the
notification outbox.
"""

from .sqlite_reports import SQLiteReportRepository
from .photo_store import FilePhotoStore
from .sqlite_outbox import SQLiteOutbox

__all__ = ["SQLiteReportRepository", "FilePhotoStore", "SQLiteOutbox"]
