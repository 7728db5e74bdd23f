"""Notify Route - owner alert from the landing page, best effort.

Invariants:
    - Same rate-limit policy as subscribe (own window)
    - Always 200 once past the gate and the email presence check;
      delivery failures are logged server-side only
"""

from fastapi import APIRouter, Depends

from waitlist.api.dependencies import get_client_id, get_subscription_service
from waitlist.core.domain_types import ClientId
from waitlist.schemas.subscription import NotifyRequest, NotifyResponse
from waitlist.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/api", tags=["notify"])


@router.post("/notify", response_model=NotifyResponse)
async def notify(
    body: NotifyRequest | None = None,
    client_id: ClientId = Depends(get_client_id),
    service: SubscriptionService = Depends(get_subscription_service),
):
    payload = body or NotifyRequest()
    message = service.notify_owner(payload.email, payload.message, client_id)
    return NotifyResponse(message=message)
