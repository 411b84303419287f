"""
Inbox parsing.

Turns raw provider inbox entries into the relay's message shape and pulls
a six-digit one-time passcode out of the subject line.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List

# ASCII word boundaries and digits only, so codes glued to CJK text still match
OTP_PATTERN = re.compile(r"\b\d{6}\b", re.ASCII)
OTP_NOT_FOUND = "Not Found"


@dataclass(frozen=True)
class ParsedMessage:
    """A normalized inbox message."""

    sender: str
    subject: str
    otp: str
    body: str


def extract_otp(subject: str) -> str:
    """Return the first standalone 6-digit run in ``subject``, or ``OTP_NOT_FOUND``."""
    match = OTP_PATTERN.search(subject)
    return match.group(0) if match else OTP_NOT_FOUND


def _text(entry: Dict[str, Any], key: str) -> str:
    value = entry.get(key)
    return value if isinstance(value, str) else ""


class InboxParser:
    """Pure transform from raw inbox entries to ParsedMessage. Never raises."""

    def parse(self, raw_messages: Iterable[Any]) -> List[ParsedMessage]:
        messages = []
        for entry in raw_messages or []:
            if not isinstance(entry, dict):
                entry = {}
            subject = _text(entry, "subject")
            messages.append(
                ParsedMessage(
                    sender=_text(entry, "from"),
                    subject=subject,
                    otp=extract_otp(subject),
                    body=_text(entry, "textBody"),
                )
            )
        return messages
