"""Admin Routes - aggregate counts and record listing behind a shared secret.

Invariants:
    - Secret accepted from ?token= or an "Authorization: Bearer <secret>" header
    - No configured ADMIN_TOKEN means every request is 401
"""

from fastapi import APIRouter, Depends, Header, Query

from waitlist.api.dependencies import get_subscription_service
from waitlist.schemas.subscription import AdminSummaryResponse
from waitlist.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/api/admin", tags=["admin"])


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, value = authorization.partition(" ")
    if scheme.lower() != "bearer" or not value.strip():
        return None
    return value.strip()


@router.get("/subscriptions", response_model=AdminSummaryResponse)
async def list_subscriptions(
    token: str | None = Query(None),
    authorization: str | None = Header(None),
    service: SubscriptionService = Depends(get_subscription_service),
):
    summary = await service.admin_summary(token or _bearer_token(authorization))
    return AdminSummaryResponse(
        total=summary.total,
        verified=summary.verified,
        unverified=summary.unverified,
        subscriptions=summary.subscriptions,
    )
