"""
Unit tests for the storage module: connection lifecycle and session store.
"""

import json
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from sessiongate.modules.errors import StoreUnavailable
from sessiongate.modules.storage import (
    ConnectionStatus,
    SessionRecord,
    SessionStore,
    StorageModule,
    isoformat_utc,
)
from conftest import FROM_URL_TARGET, TEST_CREDENTIAL, TEST_STYLE_CONFIG


def make_record(now=None, ttl=3600):
    now = now or datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)
    return SessionRecord.issue(TEST_CREDENTIAL, TEST_STYLE_CONFIG, now=now, ttl_seconds=ttl)


# =============================================================================
# StorageModule
# =============================================================================


@pytest.mark.asyncio
async def test_start_connects(patched_from_url, mock_redis_with_data):
    """First attempt succeeds: status becomes READY immediately."""
    storage = StorageModule("redis://redis.test:6379/0", password="s3cret")

    assert storage.status is ConnectionStatus.DISCONNECTED
    assert await storage.start() is True
    assert storage.is_ready
    assert storage.status is ConnectionStatus.READY
    assert storage.client is mock_redis_with_data

    args, kwargs = patched_from_url.call_args
    assert args[0] == "redis://redis.test:6379/0"
    assert kwargs["password"] == "s3cret"
    assert kwargs["decode_responses"] is True
    mock_redis_with_data.ping.assert_awaited_once()

    await storage.close()


@pytest.mark.asyncio
async def test_not_ready_before_start():
    """Operations fail fast before any connection exists."""
    storage = StorageModule("redis://redis.test:6379/0")

    assert storage.is_ready is False
    with pytest.raises(StoreUnavailable):
        storage.ensure_ready()
    with pytest.raises(StoreUnavailable):
        storage.client


@pytest.mark.asyncio
async def test_start_failure_retries_in_background(patched_from_url, mock_redis_with_data):
    """A failed first attempt schedules the fixed-interval reconnect loop."""
    mock_redis_with_data.ping.side_effect = [
        RedisConnectionError("connection refused"),
        RedisConnectionError("connection refused"),
        True,
    ]
    storage = StorageModule("redis://redis.test:6379/0", retry_interval=0.01)

    assert await storage.start() is False
    assert storage.is_ready is False

    assert await storage.wait_ready(timeout=2.0) is True
    assert storage.status is ConnectionStatus.READY
    assert mock_redis_with_data.ping.await_count == 3

    await storage.close()


@pytest.mark.asyncio
async def test_wait_ready_times_out(patched_from_url, mock_redis_with_data):
    mock_redis_with_data.ping.side_effect = RedisConnectionError("connection refused")
    storage = StorageModule("redis://redis.test:6379/0", retry_interval=0.01)

    await storage.start()

    assert await storage.wait_ready(timeout=0.05) is False
    assert storage.is_ready is False

    await storage.close()


@pytest.mark.asyncio
async def test_close_stops_reconnect_loop(patched_from_url, mock_redis_with_data):
    mock_redis_with_data.ping.side_effect = RedisConnectionError("connection refused")
    storage = StorageModule("redis://redis.test:6379/0", retry_interval=60)

    await storage.start()
    task = storage._reconnect_task
    assert task is not None and not task.done()

    await storage.close()

    assert task.cancelled()
    assert storage.status is ConnectionStatus.CLOSED
    with pytest.raises(StoreUnavailable):
        storage.ensure_ready()


@pytest.mark.asyncio
async def test_close_releases_client(storage, mock_redis_with_data):
    await storage.close()

    mock_redis_with_data.aclose.assert_awaited()
    assert storage.status is ConnectionStatus.CLOSED


@pytest.mark.asyncio
async def test_lost_connection_reconnects(storage, mock_redis_with_data):
    """A connection error mid-operation flips readiness and reconnects."""
    store = SessionStore(storage)
    healthy_get = mock_redis_with_data.get
    mock_redis_with_data.get = AsyncMock(side_effect=RedisConnectionError("reset by peer"))

    with pytest.raises(StoreUnavailable):
        await store.get("some-id")

    assert storage.is_ready is False
    with pytest.raises(StoreUnavailable):
        await store.get("some-id")

    mock_redis_with_data.get = healthy_get
    assert await storage.wait_ready(timeout=2.0) is True
    assert await store.get("some-id") is None


@pytest.mark.asyncio
async def test_stale_connection_report_keeps_current_client(storage, mock_redis_with_data):
    """A failure seen on an already replaced handle does not drop the live one."""
    replaced_client = AsyncMock()

    await storage.connection_lost(RedisConnectionError("reset by peer"), replaced_client)

    assert storage.status is ConnectionStatus.READY
    assert storage.client is mock_redis_with_data
    mock_redis_with_data.aclose.assert_not_awaited()
    assert storage._reconnect_task is None


@pytest.mark.asyncio
async def test_reconnect_loop_survives_unexpected_errors(patched_from_url, mock_redis_with_data):
    mock_redis_with_data.ping.side_effect = [
        RedisConnectionError("connection refused"),
        RuntimeError("malformed reply"),
        True,
    ]
    storage = StorageModule("redis://redis.test:6379/0", retry_interval=0.01)

    assert await storage.start() is False

    assert await storage.wait_ready(timeout=2.0) is True
    assert storage.status is ConnectionStatus.READY
    assert mock_redis_with_data.ping.await_count == 3

    await storage.close()


# =============================================================================
# SessionStore
# =============================================================================


@pytest.mark.asyncio
async def test_put_writes_namespaced_key_with_ttl(storage, mock_redis_with_data):
    store = SessionStore(storage)
    record = make_record()

    await store.put("abc-123", record, 3600)

    assert "session:abc-123" in mock_redis_with_data._storage
    assert mock_redis_with_data._ttls["session:abc-123"] == 3600

    stored = json.loads(mock_redis_with_data._storage["session:abc-123"])
    assert stored["credential"] == TEST_CREDENTIAL
    assert stored["style_config"] == TEST_STYLE_CONFIG
    assert stored["created_at"] == "2026-01-01T12:00:00.000Z"
    assert stored["expires_at"] == "2026-01-01T13:00:00.000Z"


@pytest.mark.asyncio
async def test_get_returns_record(storage):
    store = SessionStore(storage)
    record = make_record()
    await store.put("abc-123", record, 3600)

    assert await store.get("abc-123") == record


@pytest.mark.asyncio
async def test_get_absent_returns_none(storage):
    assert await SessionStore(storage).get("never-written") is None


@pytest.mark.asyncio
async def test_delete_is_idempotent(storage, mock_redis_with_data):
    store = SessionStore(storage)
    await store.put("abc-123", make_record(), 3600)

    assert await store.delete("abc-123") is True
    assert await store.delete("abc-123") is False
    assert "session:abc-123" not in mock_redis_with_data._storage


@pytest.mark.asyncio
async def test_store_fails_fast_when_not_ready(mock_redis_with_data):
    """No Redis command is issued while the handle is not ready."""
    storage = StorageModule("redis://redis.test:6379/0")
    store = SessionStore(storage)

    with pytest.raises(StoreUnavailable):
        await store.put("abc-123", make_record(), 3600)
    with pytest.raises(StoreUnavailable):
        await store.get("abc-123")
    with pytest.raises(StoreUnavailable):
        await store.delete("abc-123")

    assert mock_redis_with_data._storage == {}


# =============================================================================
# SessionRecord
# =============================================================================


def test_record_expiry_is_fixed_at_issue():
    now = datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)
    record = make_record(now=now, ttl=3600)

    assert record.created_at == now
    assert record.expires_at == now + timedelta(hours=1)
    assert record.is_expired(now + timedelta(seconds=3600)) is False
    assert record.is_expired(now + timedelta(seconds=3601)) is True


def test_record_repr_hides_credential():
    assert TEST_CREDENTIAL not in repr(make_record())


def test_record_parses_naive_timestamps_as_utc():
    record = SessionRecord.from_dict(
        {
            "credential": "tok",
            "style_config": None,
            "created_at": "2026-01-01T12:00:00",
            "expires_at": "2026-01-01T13:00:00",
        }
    )

    assert record.expires_at == datetime(2026, 1, 1, 13, 0, 0, tzinfo=UTC)


def test_isoformat_utc_converts_offsets():
    moment = datetime(2026, 1, 1, 14, 30, 0, tzinfo=UTC).astimezone()

    assert isoformat_utc(moment) == "2026-01-01T14:30:00.000Z"
