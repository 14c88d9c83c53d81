import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Callable, Optional

from redis.exceptions import RedisError

from ..errors import (
    AuthError,
    ExpiredError,
    NotFoundError,
    StoreUnavailable,
    UpstreamError,
    ValidationError,
)
from ..exchange import CredentialExchangeClient, ExchangeErrorKind
from ..storage import SessionRecord, SessionStore, isoformat_utc

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = 3600


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class CreatedSession:
    """Handle returned to the client after a successful exchange."""

    session_id: str
    expires_at: datetime

    @property
    def expires_at_iso(self) -> str:
        return isoformat_utc(self.expires_at)


@dataclass(frozen=True)
class ValidatedSession:
    """Client-safe view of a live session. Carries no credential."""

    style_config: Any
    expires_at: datetime

    @property
    def expires_at_iso(self) -> str:
        return isoformat_utc(self.expires_at)


class SessionModule:
    def __init__(
        self,
        store: SessionStore,
        exchange_client: CredentialExchangeClient,
        default_ttl: int = DEFAULT_SESSION_TTL,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize session module.

        Args:
            store: Session record store
            exchange_client: Identity provider client
            default_ttl: Session TTL in seconds (1 hour); used for both the
                logical expiry and the store-side eviction
            clock: Returns the current aware datetime; defaults to UTC now
        """
        self.store = store
        self.exchange_client = exchange_client
        self.default_ttl = default_ttl
        self.clock = clock or utc_now

    def ensure_ready(self) -> None:
        """Raise StoreUnavailable unless the backing store can take commands."""
        self.store.ensure_ready()

    async def create_session(self, api_key: Optional[str]) -> CreatedSession:
        """
        Exchange an API key for a credential and open a session.

        Args:
            api_key: Client API key

        Returns:
            CreatedSession with the new session id and its expiry

        Raises:
            StoreUnavailable: Store not ready; checked before anything else
            ValidationError: API key missing
            UpstreamError: Provider unreachable, timed out or rejected the call
            AuthError: Provider answered but issued no credential

        Logic:
        1. Check store readiness and input
        2. Exchange the key with the identity provider
        3. Build a record with a fixed expiry
        4. Store it with a matching TTL
        """
        self.store.ensure_ready()
        if not api_key:
            raise ValidationError("API Key is required")

        result = await self.exchange_client.exchange(api_key)
        if not result.ok:
            error = result.error
            if error.kind is ExchangeErrorKind.MISSING_CREDENTIAL:
                logger.warning("Identity provider issued no credential")
                raise AuthError(error.message)
            raise UpstreamError("Error communicating with external API", details=error.message)

        session_id = str(uuid.uuid4())
        record = SessionRecord.issue(
            credential=result.credential,
            style_config=result.style_config,
            now=self.clock(),
            ttl_seconds=self.default_ttl,
        )
        await self.store.put(session_id, record, self.default_ttl)

        logger.info(f"Session {session_id} created, expires at {isoformat_utc(record.expires_at)}")
        return CreatedSession(session_id=session_id, expires_at=record.expires_at)

    async def resolve_session(self, session_id: Optional[str]) -> SessionRecord:
        """
        Load a live session record, reaping it if it has expired.

        The stored ``expires_at`` decides validity, not key presence: a
        record Redis has not evicted yet can still be logically expired.

        Args:
            session_id: Session identifier

        Returns:
            The full record, credential included; internal use only

        Raises:
            StoreUnavailable: Store not ready
            ValidationError: Session id missing
            NotFoundError: No such record
            ExpiredError: Record found past its expiry (and deleted)
        """
        self.store.ensure_ready()
        if not session_id:
            raise ValidationError("Session ID is required")

        record = await self.store.get(session_id)
        if record is None:
            raise NotFoundError("Session not found or expired")

        if record.is_expired(self.clock()):
            await self._reap(session_id)
            raise ExpiredError("Session expired")

        return record

    async def validate_session(self, session_id: Optional[str]) -> ValidatedSession:
        """
        Check a session and return its client-safe view.

        Same failures as resolve_session. The credential is never returned.
        """
        record = await self.resolve_session(session_id)
        return ValidatedSession(style_config=record.style_config, expires_at=record.expires_at)

    async def end_session(self, session_id: Optional[str]) -> bool:
        """
        Invalidate a session explicitly.

        Returns:
            True if a record was removed, False if it was already gone
        """
        self.store.ensure_ready()
        if not session_id:
            raise ValidationError("Session ID is required")

        removed = await self.store.delete(session_id)
        if removed:
            logger.info(f"Session {session_id} ended")
        return removed

    async def _reap(self, session_id: str) -> None:
        """Delete an expired record; failures are logged, not raised."""
        try:
            await self.store.delete(session_id)
        except (StoreUnavailable, RedisError) as e:
            logger.warning(f"Failed to delete expired session {session_id}: {e}")
        else:
            logger.info(f"Expired session {session_id} reaped")
