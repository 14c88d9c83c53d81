"""
Session Gate Middleware Module - Black Box Interface

Purpose: Gate protected FastAPI routes behind a valid session
Interface: SessionGate, create_session_gate(), SessionContext
Hidden: Header extraction, expiry handling, error formatting

Usable by any FastAPI app that needs session-gated routes.
"""

from .session_gate import SessionContext, SessionGate, create_session_gate

__all__ = ["SessionContext", "SessionGate", "create_session_gate"]
