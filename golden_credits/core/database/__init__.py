"""
Database Infrastructure

- Base / IdMixin / TimestampMixin / UTCDateTime: declarative schema helpers
- DatabaseService: async engine, sessions and atomic transactions
"""

from golden_credits.core.database.base import (
    Base,
    IdMixin,
    TimestampMixin,
    UTCDateTime,
    utcnow,
)
from golden_credits.core.database.service import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
    DatabaseService,
)

__all__ = [
    "Base",
    "IdMixin",
    "TimestampMixin",
    "UTCDateTime",
    "utcnow",
    "DatabaseService",
    "DatabaseInitializationError",
    "DatabaseNotInitializedError",
]
