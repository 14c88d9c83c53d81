"""
Exchange Module - Black Box Interface

Purpose: Trade a client API key for a provider credential
Interface: CredentialExchangeClient.exchange()
Hidden: Provider URL, wire format, timeout handling

Replaceable with any identity provider client returning an ExchangeResult.
"""

from .client import (
    CredentialExchangeClient,
    ExchangeError,
    ExchangeErrorKind,
    ExchangeResult,
)

__all__ = [
    "CredentialExchangeClient",
    "ExchangeError",
    "ExchangeErrorKind",
    "ExchangeResult",
]
