"""
Persistence layer: sessions writing and reading records.
"""

from .session import PrimaryKeyMissingError, RecordNotFound, Session

__all__ = ["PrimaryKeyMissingError", "RecordNotFound", "Session"]
