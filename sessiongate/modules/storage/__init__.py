"""
Storage Module - Black Box Interface

Purpose: Abstract all session persistence
Interface: StorageModule (connection lifecycle), SessionStore put()/get()/delete()
Hidden: Redis specifics, key namespacing, serialization, reconnection

Can be replaced with any key-value backend offering per-key TTLs.
"""

from .records import SessionRecord, isoformat_utc
from .session_store import SESSION_KEY_PREFIX, SessionStore
from .storage import ConnectionStatus, StorageModule

__all__ = [
    "ConnectionStatus",
    "SESSION_KEY_PREFIX",
    "SessionRecord",
    "SessionStore",
    "StorageModule",
    "isoformat_utc",
]
