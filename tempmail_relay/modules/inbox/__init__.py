"""
Inbox Module - Black Box Interface

Purpose: Normalize provider inbox entries and extract OTPs
Interface: InboxParser.parse(), extract_otp()
Hidden: Field mapping, OTP pattern
"""

from .parser import OTP_NOT_FOUND, InboxParser, ParsedMessage, extract_otp

__all__ = ["InboxParser", "OTP_NOT_FOUND", "ParsedMessage", "extract_otp"]
