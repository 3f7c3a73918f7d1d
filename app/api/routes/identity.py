from fastapi import APIRouter, Depends

from app.api.deps import get_identity_resolver, get_notification_tracker
from app.domain.schemas import Identity, IdentityResponse, LoginRequest
from app.services.identity import IdentityResolver
from app.services.notifications import NotificationTracker

router = APIRouter()


def _with_context(
    identity: Identity,
    resolver: IdentityResolver,
    tracker: NotificationTracker,
) -> IdentityResponse:
    return IdentityResponse(
        identity=identity,
        stamp_card=resolver.stamp_card(identity),
        unread=tracker.counts(identity.id),
    )


@router.post("/login", response_model=IdentityResponse)
def login(
    data: LoginRequest,
    resolver: IdentityResolver = Depends(get_identity_resolver),
    tracker: NotificationTracker = Depends(get_notification_tracker),
):
    """Identify a customer by phone number.

    Unregistered numbers receive a guest identity (``id`` is null) unless
    guest login is disabled.
    """
    identity = resolver.resolve(data.phone_number)
    return _with_context(identity, resolver, tracker)


@router.get("/{customer_id}", response_model=IdentityResponse)
def refresh_identity(
    customer_id: str,
    resolver: IdentityResolver = Depends(get_identity_resolver),
    tracker: NotificationTracker = Depends(get_notification_tracker),
):
    """Re-read the customer's counters and recompute the unread badge."""
    identity = resolver.refresh(customer_id)
    return _with_context(identity, resolver, tracker)
