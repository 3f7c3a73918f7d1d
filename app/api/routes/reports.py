from typing import Optional

from fastapi import APIRouter, Depends

from app.api.deps import get_identity_resolver, get_notification_tracker
from app.domain.schemas import BugReport, BugReportCreate, BugReportResponse, Identity, MarkReadResult
from app.services.identity import IdentityResolver
from app.services.notifications import NotificationTracker

router = APIRouter()


@router.get("/{customer_id}", response_model=list[BugReport])
def list_reports(customer_id: str, tracker: NotificationTracker = Depends(get_notification_tracker)):
    """Get a customer's reports with any admin responses, newest first."""
    return tracker.list_reports(customer_id)


@router.post("", response_model=BugReportResponse)
def submit_report(
    data: BugReportCreate,
    resolver: IdentityResolver = Depends(get_identity_resolver),
    tracker: NotificationTracker = Depends(get_notification_tracker),
):
    """File an app bug or store feedback report. Anonymous when no customer_id."""
    reporter: Optional[Identity] = resolver.refresh(data.customer_id) if data.customer_id else None
    report = tracker.submit_report(data, reporter)
    return BugReportResponse(
        report=report,
        message="Thanks! We received your report and will look into it soon.",
    )


@router.post("/read/{customer_id}", response_model=MarkReadResult)
def mark_reports_read(customer_id: str, tracker: NotificationTracker = Depends(get_notification_tracker)):
    """Acknowledge every answered report for the customer."""
    marked = tracker.mark_reports_read(customer_id)
    return MarkReadResult(
        marked=marked,
        unread=tracker.counts(customer_id),
        message="Report responses marked as read.",
    )
