import json
import logging
from typing import Any, Optional

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ..errors import StoreUnavailable
from .records import SessionRecord
from .storage import StorageModule

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "session:"


class SessionStore:
    """
    Session records in Redis, one key per session.

    Keys are namespaced as ``session:<id>`` and carry a Redis TTL that acts
    as the cleanup backstop for records nobody reads again.
    """

    def __init__(self, storage: StorageModule):
        """
        Initialize session store.

        Args:
            storage: Shared connection handle
        """
        self.storage = storage

    @staticmethod
    def key(session_id: str) -> str:
        return f"{SESSION_KEY_PREFIX}{session_id}"

    def ensure_ready(self) -> None:
        self.storage.ensure_ready()

    async def put(self, session_id: str, record: SessionRecord, ttl_seconds: int) -> None:
        """Write a record with a store-side expiration of ``ttl_seconds``."""
        await self._execute("setex", self.key(session_id), ttl_seconds, json.dumps(record.to_dict()))

    async def get(self, session_id: str) -> Optional[SessionRecord]:
        """
        Read a record.

        Returns:
            The record, or None if it was never written or was already evicted
        """
        data = await self._execute("get", self.key(session_id))
        if data is None:
            return None
        return SessionRecord.from_dict(json.loads(data))

    async def delete(self, session_id: str) -> bool:
        """
        Remove a record. Deleting an absent key is not an error.

        Returns:
            True if a key was actually removed
        """
        return bool(await self._execute("delete", self.key(session_id)))

    async def _execute(self, command: str, *args: Any) -> Any:
        client = self.storage.client
        try:
            return await getattr(client, command)(*args)
        except (RedisConnectionError, RedisTimeoutError) as e:
            await self.storage.connection_lost(e, client)
            raise StoreUnavailable("Redis connection was lost") from e
