"""Subscription Schemas - request/response bodies for the public and admin endpoints.

Invariants:
    - Response field names are camelCase on the wire (verificationUrl)
    - verificationUrl is omitted unless the server runs in test mode
    - Request fields carry no length bounds: the rate-limit gate runs before any
      shape check, and the body size cap bounds the payload
"""

from pydantic import BaseModel, ConfigDict, Field


class SubscribeRequest(BaseModel):
    """Sign-up body. Shape of email is checked by the service, not here."""
    email: str | None = None


class SubscribeResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool = True
    message: str
    delivery: str
    verification_url: str | None = Field(None, alias="verificationUrl")


class NotifyRequest(BaseModel):
    """Owner alert from the landing page contact form."""
    email: str | None = None
    message: str | None = None


class NotifyResponse(BaseModel):
    ok: bool = True
    message: str


class AdminSummaryResponse(BaseModel):
    total: int
    verified: int
    unverified: int
    subscriptions: list[dict]
