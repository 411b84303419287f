"""
Provider Module - Black Box Interface

Purpose: Talk to the upstream temporary-email provider
Interface: warm_up(), fetch_mailbox(), fetch_inbox_messages(), call_with_retry()
Hidden: Cookie handling, browser headers, response validation

Replaceable with a client for any provider exposing the same calls.
"""

from .client import NO_RETRY, MailboxInfo, ProviderClient, RetryPolicy

__all__ = ["MailboxInfo", "NO_RETRY", "ProviderClient", "RetryPolicy"]
