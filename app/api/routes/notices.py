from fastapi import APIRouter, Depends

from app.api.deps import get_notification_tracker
from app.domain.schemas import MarkReadResult, NoticeView, NotificationCounts
from app.services.notifications import NotificationTracker

router = APIRouter()


@router.get("", response_model=list[NoticeView])
def list_notices(tracker: NotificationTracker = Depends(get_notification_tracker)):
    """Get published notices, pinned first."""
    return tracker.list_notices()


@router.get("/unread/{customer_id}", response_model=NotificationCounts)
def get_unread(customer_id: str, tracker: NotificationTracker = Depends(get_notification_tracker)):
    return tracker.counts(customer_id)


@router.post("/read/{customer_id}", response_model=MarkReadResult)
def mark_all_read(customer_id: str, tracker: NotificationTracker = Depends(get_notification_tracker)):
    """Mark every published notice as read for the customer."""
    marked = tracker.mark_all_read(customer_id)
    return MarkReadResult(
        marked=marked,
        unread=tracker.counts(customer_id),
        message="All notices marked as read.",
    )
