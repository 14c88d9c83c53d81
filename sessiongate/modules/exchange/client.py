"""
Credential exchange client.

Trades a client API key for a credential (JWT) and an opaque style
configuration by calling the external identity provider once. Failures are
returned as values, never raised, so the caller decides how to surface them.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)


class ExchangeErrorKind(str, Enum):
    """Closed set of exchange failure variants."""

    TIMEOUT = "timeout"
    TRANSPORT = "transport"
    UPSTREAM_REJECTED = "upstream_rejected"
    MISSING_CREDENTIAL = "missing_credential"


@dataclass
class ExchangeError:
    """Why an exchange did not yield a credential."""

    kind: ExchangeErrorKind
    message: str
    status_code: Optional[int] = None


@dataclass
class ExchangeResult:
    """Standardized exchange result."""

    ok: bool
    credential: Optional[str] = field(default=None, repr=False)
    style_config: Any = None
    error: Optional[ExchangeError] = None

    @classmethod
    def success(cls, credential: str, style_config: Any) -> "ExchangeResult":
        return cls(ok=True, credential=credential, style_config=style_config)

    @classmethod
    def failure(
        cls,
        kind: ExchangeErrorKind,
        message: str,
        status_code: Optional[int] = None,
    ) -> "ExchangeResult":
        return cls(ok=False, error=ExchangeError(kind, message, status_code))


class CredentialExchangeClient:
    """
    Client for the external identity provider.

    Sends ``{"key": <api key>}`` to the provider and expects a JSON reply
    carrying ``jwt`` and ``styleConfig``. A single attempt is made per call;
    retry policy belongs to the caller.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 10.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize exchange client.

        Args:
            url: Provider endpoint receiving the API key
            timeout: Upper bound in seconds for the whole exchange call
            http_client: Optional shared client; a short-lived one is
                created per call when omitted
        """
        self.url = url
        self.timeout = timeout
        self._http_client = http_client

    async def exchange(self, api_key: str) -> ExchangeResult:
        """
        Exchange an API key for a credential and style configuration.

        Args:
            api_key: Non-empty client API key

        Returns:
            ExchangeResult with either the credential or an ExchangeError
        """
        try:
            async with asyncio.timeout(self.timeout):
                if self._http_client is not None:
                    response = await self._post(self._http_client, api_key)
                else:
                    async with httpx.AsyncClient() as client:
                        response = await self._post(client, api_key)
        except (httpx.TimeoutException, TimeoutError) as e:
            logger.error(f"Identity provider timed out after {self.timeout}s: {e}")
            return ExchangeResult.failure(
                ExchangeErrorKind.TIMEOUT,
                f"Identity provider did not answer within {self.timeout}s",
            )
        except httpx.HTTPError as e:
            logger.error(f"Identity provider unreachable: {e}")
            return ExchangeResult.failure(ExchangeErrorKind.TRANSPORT, str(e) or type(e).__name__)

        if not response.is_success:
            message = _upstream_message(response)
            logger.error(f"Identity provider rejected exchange ({response.status_code}): {message}")
            return ExchangeResult.failure(
                ExchangeErrorKind.UPSTREAM_REJECTED, message, response.status_code
            )

        try:
            payload = response.json()
        except ValueError:
            logger.error("Identity provider returned a non-JSON body")
            return ExchangeResult.failure(
                ExchangeErrorKind.UPSTREAM_REJECTED,
                "Identity provider returned an invalid response body",
                response.status_code,
            )

        if not isinstance(payload, dict) or not payload.get("jwt"):
            return ExchangeResult.failure(
                ExchangeErrorKind.MISSING_CREDENTIAL,
                "Invalid API key or JWT not received",
                response.status_code,
            )

        return ExchangeResult.success(payload["jwt"], payload.get("styleConfig"))

    async def _post(self, client: httpx.AsyncClient, api_key: str) -> httpx.Response:
        return await client.post(self.url, json={"key": api_key}, timeout=self.timeout)


def _upstream_message(response: httpx.Response) -> str:
    """Best-effort extraction of the provider's error message."""
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        for key in ("message", "error", "detail"):
            if isinstance(payload.get(key), str):
                return payload[key]
    text = response.text.strip()
    return text or f"Request failed with status code {response.status_code}"
