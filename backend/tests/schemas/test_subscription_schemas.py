"""Subscription schemas - wire names and length bounds."""

import pytest
from pydantic import ValidationError

from waitlist.schemas.subscription import (
    NotifyRequest, SubscribeRequest, SubscribeResponse,
)


def test_verification_url_serialized_in_camel_case():
    res = SubscribeResponse(
        message="ok", delivery="logged", verification_url="http://x/api/verify?token=t",
    )
    data = res.model_dump(by_alias=True, exclude_none=True)
    assert data["verificationUrl"] == "http://x/api/verify?token=t"
    assert "verification_url" not in data


def test_verification_url_omitted_when_absent():
    res = SubscribeResponse(message="ok", delivery="sent")
    assert "verificationUrl" not in res.model_dump(by_alias=True, exclude_none=True)


def test_subscribe_request_email_optional():
    assert SubscribeRequest().email is None
    assert SubscribeRequest(email="a@example.com").email == "a@example.com"


def test_subscribe_request_rejects_non_string_email():
    with pytest.raises(ValidationError):
        SubscribeRequest(email=123)


def test_field_lengths_left_to_the_service():
    long_email = "a" * 2000 + "@example.com"
    assert SubscribeRequest(email=long_email).email == long_email
    req = NotifyRequest(email=long_email, message="m" * 5000)
    assert len(req.message) == 5000
