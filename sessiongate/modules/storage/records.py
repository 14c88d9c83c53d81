"""Session record model and its JSON wire format."""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any, Dict


def isoformat_utc(moment: datetime) -> str:
    """Render a timestamp as ISO-8601 UTC with millisecond precision."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_utc(value: str) -> datetime:
    moment = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    return moment


@dataclass(frozen=True)
class SessionRecord:
    """
    What the store keeps for one session.

    Records are immutable: created once, deleted once. ``expires_at`` is
    fixed at creation and is the authority on logical validity.
    """

    credential: str = field(repr=False)
    style_config: Any
    created_at: datetime
    expires_at: datetime

    @classmethod
    def issue(
        cls, credential: str, style_config: Any, now: datetime, ttl_seconds: int
    ) -> "SessionRecord":
        return cls(
            credential=credential,
            style_config=style_config,
            created_at=now,
            expires_at=now + timedelta(seconds=ttl_seconds),
        )

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "credential": self.credential,
            "style_config": self.style_config,
            "created_at": isoformat_utc(self.created_at),
            "expires_at": isoformat_utc(self.expires_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionRecord":
        """Create from dictionary (e.g., from JSON)."""
        return cls(
            credential=data["credential"],
            style_config=data.get("style_config"),
            created_at=parse_utc(data["created_at"]),
            expires_at=parse_utc(data["expires_at"]),
        )
