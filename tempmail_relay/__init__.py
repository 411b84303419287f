"""
Tempmail Relay - Disposable Mailbox HTTP Facade

Proxies a third-party temporary-email site: one browser-like session per
caller, a cached disposable address, and inbox polling with OTP extraction.

Architecture:
- Each module is self-contained with clear interfaces
- Modules are completely replaceable
- No module knows the internals of another
- All communication through defined interfaces

Modules:
- provider: Upstream client, cookies and bounded retry
- session: Per-caller session lifecycle
- mailbox: Address cache and inbox reads
- inbox: Message normalization and OTP extraction
- identity: Caller identity resolution
- api: HTTP response models
"""

__version__ = "1.0.0"
