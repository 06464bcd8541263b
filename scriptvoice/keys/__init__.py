"""API key pooling and cursor persistence.

This package holds the round-robin credential pool used by the failover
controller and the stores that persist its cursor.
"""

from .cursor_store import CursorStore, InMemoryCursorStore, JsonFileCursorStore
from .pool import Credential, CredentialPool

__all__ = [
    "Credential",
    "CredentialPool",
    "CursorStore",
    "InMemoryCursorStore",
    "JsonFileCursorStore",
]
