"""
Mailbox Module - Black Box Interface

Purpose: Serve cached mailbox addresses and read inboxes
Interface: get_address(), get_inbox_messages()
Hidden: Cache window, refresh decisions, retry policy
"""

from .mailbox import CACHE_WINDOW_SECONDS, NO_MESSAGES, AddressResult, InboxResult, MailboxCache

__all__ = ["AddressResult", "CACHE_WINDOW_SECONDS", "InboxResult", "MailboxCache", "NO_MESSAGES"]
