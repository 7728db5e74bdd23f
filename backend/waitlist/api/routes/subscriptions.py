"""Subscription Routes - public sign-up and email verification.

Invariants:
    - POST /api/subscribe answers JSON; errors go through the global handlers
    - GET /api/verify answers HTML for every outcome (400/404/410/500 included)
    - Verification links use FRONTEND_URL when set, else the request's own origin
"""

import logging

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import HTMLResponse

from waitlist.api.dependencies import get_client_id, get_subscription_service
from waitlist.config import Settings, get_settings
from waitlist.core.domain_types import ClientId
from waitlist.core.errors import WaitlistError
from waitlist.core.format_pages import render_error_page, render_verified_page
from waitlist.schemas.subscription import SubscribeRequest, SubscribeResponse
from waitlist.services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["subscriptions"])

VERIFY_ERROR_TITLES = {
    "MISSING_TOKEN": "Error",
    "TOKEN_NOT_FOUND": "Token Not Found",
    "TOKEN_EXPIRED": "Link Expired",
}


@router.post(
    "/subscribe",
    response_model=SubscribeResponse,
    response_model_exclude_none=True,
)
async def subscribe(
    request: Request,
    body: SubscribeRequest | None = None,
    client_id: ClientId = Depends(get_client_id),
    settings: Settings = Depends(get_settings),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Add or refresh an interest-list entry and send its verification link."""
    payload = body or SubscribeRequest()
    base_url = settings.frontend_url or str(request.base_url)
    result = await service.subscribe(payload.email, client_id, base_url)
    return SubscribeResponse(
        message=result.message,
        delivery=result.delivery.value,
        verification_url=result.verification_url,
    )


@router.get("/verify", response_class=HTMLResponse)
async def verify(
    token: str | None = Query(None),
    settings: Settings = Depends(get_settings),
    service: SubscriptionService = Depends(get_subscription_service),
):
    """Confirm the address owning token and render the result page."""
    try:
        result = await service.verify(token)
    except WaitlistError as e:
        if e.http_status >= 500:
            logger.error(f"Verify endpoint error: {e.message}", extra={"error_code": e.code})
            return _server_error_page()
        return HTMLResponse(
            render_error_page(VERIFY_ERROR_TITLES.get(e.code, "Error"), e.message),
            status_code=e.http_status,
        )
    except Exception as e:
        logger.error(f"Verify endpoint error: {e}", exc_info=True)
        return _server_error_page()

    return HTMLResponse(render_verified_page(
        result.email, settings.site_name, result.already_verified,
    ))


def _server_error_page() -> HTMLResponse:
    return HTMLResponse(
        render_error_page("Error", "An error occurred. Please try again."),
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
