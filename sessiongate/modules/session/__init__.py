"""
Session Module - Black Box Interface

Purpose: Manage session handle lifecycle
Interface: create_session(), validate_session(), resolve_session(), end_session()
Hidden: Credential exchange, record layout, expiry checks, lazy reaping

Replaceable with any session backend honoring the same expiry rules.
"""

from .session import CreatedSession, SessionModule, ValidatedSession

__all__ = ["CreatedSession", "SessionModule", "ValidatedSession"]
