"""
Session Module - Black Box Interface

Purpose: Manage per-caller mail session lifecycle
Interface: get_or_create(), reset(), sweep_expired(), start(), close()
Hidden: Session storage, TTL eviction, client retirement

Replaceable with any session backend (database, in-memory, distributed cache).
"""

from .session import Session, SessionStore, now_ms

__all__ = ["Session", "SessionStore", "now_ms"]
