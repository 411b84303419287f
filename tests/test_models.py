"""
Unit tests for Tempmail Relay response models.
"""

import pytest
from pydantic import ValidationError

from tempmail_relay.modules.api import EmailResponse, InboxMessage, InboxResponse
from tempmail_relay.modules.inbox import ParsedMessage


class TestInboxMessage:
    """Test the inbox entry model."""

    def test_serializes_sender_as_from(self):
        message = InboxMessage.from_parsed(
            ParsedMessage(sender="a@b.c", subject="Code 123456", otp="123456", body="x")
        )

        assert message.model_dump(by_alias=True) == {
            "from": "a@b.c",
            "subject": "Code 123456",
            "otp": "123456",
            "body": "x",
        }

    def test_accepts_alias_on_input(self):
        message = InboxMessage.model_validate({"from": "a@b.c", "otp": "Not Found"})

        assert message.sender == "a@b.c"
        assert message.subject == ""

    def test_otp_is_required(self):
        with pytest.raises(ValidationError):
            InboxMessage(sender="a@b.c")


class TestResponses:
    def test_email_response_without_ip(self):
        response = EmailResponse(email="x@tempmail.so", expires_at=1, cached=False)

        assert response.model_dump(exclude_none=True) == {
            "email": "x@tempmail.so",
            "expires_at": 1,
            "cached": False,
        }

    def test_inbox_response_no_messages(self):
        response = InboxResponse(email="x@tempmail.so", message="No new emails yet.")

        assert response.model_dump(exclude_none=True) == {
            "email": "x@tempmail.so",
            "message": "No new emails yet.",
        }
