"""
Shared Redis connection with an explicit lifecycle.

The connection is established once at startup. If that fails, or if the
connection is lost later, a background task retries at a fixed interval
until it succeeds or the module is closed. Readiness is a queryable status;
callers must not issue commands unless it is READY.
"""

import asyncio
import logging
import os
from enum import Enum
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..errors import StoreUnavailable

logger = logging.getLogger(__name__)


class ConnectionStatus(str, Enum):
    """State of the shared store connection."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"
    CLOSED = "closed"


class StorageModule:
    """Black box storage connection handle."""

    def __init__(
        self,
        connection_url: Optional[str] = None,
        password: Optional[str] = None,
        retry_interval: float = 5.0,
        socket_timeout: float = 5.0,
    ):
        """
        Initialize storage with connection settings.

        Args:
            connection_url: Redis URL (falls back to REDIS_URL)
            password: Optional Redis password, passed separately from the URL
            retry_interval: Fixed delay in seconds between reconnect attempts
            socket_timeout: Per-command and connect timeout in seconds
        """
        self.url = connection_url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
        self.password = password
        self.retry_interval = retry_interval
        self.socket_timeout = socket_timeout
        self._client: Optional[redis.Redis] = None
        self._status = ConnectionStatus.DISCONNECTED
        self._ready = asyncio.Event()
        self._reconnect_task: Optional[asyncio.Task] = None

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def is_ready(self) -> bool:
        return self._status is ConnectionStatus.READY and self._client is not None

    def ensure_ready(self) -> None:
        """Raise StoreUnavailable unless the connection is ready."""
        if not self.is_ready:
            raise StoreUnavailable("Redis connection is not established")

    @property
    def client(self) -> redis.Redis:
        """The live client; raises StoreUnavailable when not ready."""
        self.ensure_ready()
        return self._client

    async def start(self) -> bool:
        """
        Make the first connection attempt.

        On failure the reconnect loop is scheduled in the background and
        this returns immediately, so startup is never blocked on Redis.

        Returns:
            True if the store is ready now
        """
        if self.is_ready:
            return True
        if await self._connect_once():
            return True
        self._schedule_reconnect()
        return False

    async def wait_ready(self, timeout: Optional[float] = None) -> bool:
        """Wait until the connection is ready; False on timeout."""
        try:
            await asyncio.wait_for(self._ready.wait(), timeout)
        except asyncio.TimeoutError:
            return False
        return self.is_ready

    async def connection_lost(self, error: Exception, client: Optional[redis.Redis] = None) -> None:
        """
        Drop a broken connection and start reconnecting.

        Args:
            error: The failure that was observed
            client: Handle the failure was observed on; a report about a
                handle that has already been replaced is ignored
        """
        if self._status is not ConnectionStatus.READY:
            return
        if client is not None and client is not self._client:
            return
        logger.error(f"Redis connection lost: {error}")
        client, self._client = self._client, None
        self._status = ConnectionStatus.DISCONNECTED
        self._ready.clear()
        await self._dispose(client)
        self._schedule_reconnect()

    async def close(self) -> None:
        """Stop reconnecting and close the connection."""
        self._status = ConnectionStatus.CLOSED
        self._ready.clear()

        task, self._reconnect_task = self._reconnect_task, None
        if task and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        client, self._client = self._client, None
        if client is not None:
            await client.aclose()
            logger.info("Redis connection closed")

    async def _connect_once(self) -> bool:
        if self._status is ConnectionStatus.CLOSED:
            return False
        self._status = ConnectionStatus.CONNECTING

        client = redis.from_url(
            self.url,
            password=self.password,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=self.socket_timeout,
            socket_connect_timeout=self.socket_timeout,
        )
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            logger.error(f"Redis connection error: {e}")
            await self._dispose(client)
            if self._status is not ConnectionStatus.CLOSED:
                self._status = ConnectionStatus.DISCONNECTED
            return False

        if self._status is ConnectionStatus.CLOSED:
            await self._dispose(client)
            return False

        self._client = client
        self._status = ConnectionStatus.READY
        self._ready.set()
        logger.info("Connected to Redis")
        return True

    def _schedule_reconnect(self) -> None:
        if self._reconnect_task and not self._reconnect_task.done():
            return
        self._reconnect_task = asyncio.create_task(self._reconnect_loop())

    async def _reconnect_loop(self) -> None:
        attempt = 0
        while self._status is not ConnectionStatus.CLOSED:
            attempt += 1
            logger.info(
                f"Retrying Redis connection in {self.retry_interval}s (attempt {attempt})"
            )
            await asyncio.sleep(self.retry_interval)
            try:
                if await self._connect_once():
                    return
            except Exception:
                logger.exception("Unexpected error while reconnecting to Redis")
                if self._status is not ConnectionStatus.CLOSED:
                    self._status = ConnectionStatus.DISCONNECTED

    @staticmethod
    async def _dispose(client: Optional[redis.Redis]) -> None:
        if client is None:
            return
        try:
            await client.aclose()
        except (RedisError, OSError) as e:
            logger.debug(f"Ignoring error while closing Redis client: {e}")
