"""
Identity Module - Black Box Interface

Purpose: Resolve the caller identity that keys a mail session
Interface: IdentityResolver.resolve(), IdentityResolver.client_ip()
Hidden: Query parameter and proxy header precedence
"""

from .resolver import UNKNOWN_IDENTITY, IdentityResolver

__all__ = ["IdentityResolver", "UNKNOWN_IDENTITY"]
