"""
SessionGate - Session Handle Service

Exchanges a client API key for an identity provider credential once, then
hands out a short-lived, revocable session id to reuse on later requests.

Modules:
- exchange: Identity provider client
- storage: Redis connection lifecycle and session records
- session: Session creation, validation and lazy expiry
- middleware: Session gate for protected routes
- api: HTTP request/response models
"""

__version__ = "1.0.0"
