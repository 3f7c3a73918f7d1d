"""Notices, feedback reports and the unread badge.

Two independent unread sources feed the badge:

- notices: published notices without a read marker for the customer
- reports: the customer's reports that have an admin response not yet read

Each is a pure computation over rows; the badge is their sum.
"""

import html
import logging
import re
from typing import Iterable, Optional

from app.core.config import Settings, get_settings
from app.core.errors import AlreadyExistsError, StorageError, ValidationError
from app.domain.schemas import (
    BugReport,
    BugReportCreate,
    Identity,
    Notice,
    NoticeView,
    NotificationCounts,
    ReportCategory,
)
from app.repositories.bug_report import BugReportRepository
from app.repositories.notice import NoticeReadRepository, NoticeRepository

logger = logging.getLogger(__name__)

LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)\s]+)\)")

REPORT_TYPES = {
    ReportCategory.APP: "App bug",
    ReportCategory.STORE: "Store feedback",
}

ANONYMOUS_NICKNAME = "anonymous"


def unread_notice_count(published_ids: Iterable[int], read_ids: Iterable[int]) -> int:
    """Published notices the customer has no read marker for."""
    return len(set(published_ids) - set(read_ids))


def has_unread_response(report: dict) -> bool:
    return bool(report.get("admin_response")) and not report.get("response_read")


def unread_report_count(reports: Iterable[dict]) -> int:
    return sum(1 for report in reports if has_unread_response(report))


def badge_count(notices: int, reports: int) -> NotificationCounts:
    return NotificationCounts(notices=notices, reports=reports, badge=notices + reports)


def render_notice_body(content: str) -> str:
    """Escape a notice body and turn ``[label](url)`` into links.

    Only http(s) URLs become anchors; anything else stays as escaped text.
    """
    parts = []
    position = 0
    for match in LINK_PATTERN.finditer(content):
        label, url = match.group(1), match.group(2)
        parts.append(html.escape(content[position:match.start()]))
        if url.startswith(("http://", "https://")):
            parts.append(
                f'<a href="{html.escape(url, quote=True)}" target="_blank" '
                f'rel="noopener noreferrer">{html.escape(label)}</a>'
            )
        else:
            parts.append(html.escape(match.group(0)))
        position = match.end()
    parts.append(html.escape(content[position:]))
    return "".join(parts)


class NotificationTracker:

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    # ===== Notices =====

    def list_notices(self) -> list[NoticeView]:
        """Published notices, pinned first, then newest."""
        views = []
        for row in NoticeRepository.list_published():
            notice = Notice(**row)
            views.append(NoticeView(**notice.model_dump(), content_html=render_notice_body(notice.content)))
        return views

    def notice_unread(self, customer_id: Optional[str]) -> int:
        if not customer_id:
            return 0
        published = NoticeRepository.get_published_ids()
        read = NoticeReadRepository.get_read_notice_ids(customer_id)
        return unread_notice_count(published, read)

    def mark_all_read(self, customer_id: Optional[str]) -> int:
        """Insert a read marker for every published notice not yet marked.

        Duplicate markers (already read, or marked concurrently) are no-ops.
        Returns the number of markers inserted.
        """
        if not customer_id:
            return 0

        published = NoticeRepository.get_published_ids()
        already_read = set(NoticeReadRepository.get_read_notice_ids(customer_id))

        marked = 0
        for notice_id in published:
            if notice_id in already_read:
                continue
            try:
                NoticeReadRepository.create(customer_id, notice_id)
                marked += 1
            except AlreadyExistsError:
                logger.debug(f"Notice {notice_id} already marked read for customer {customer_id}")

        logger.info(f"Marked {marked} notices read for customer {customer_id}")
        return marked

    # ===== Reports =====

    def list_reports(self, customer_id: Optional[str]) -> list[BugReport]:
        if not customer_id:
            return []
        return [BugReport(**row) for row in BugReportRepository.list_by_customer(customer_id)]

    def submit_report(self, data: BugReportCreate, reporter: Optional[Identity] = None) -> BugReport:
        """File a bug/feedback report, anonymously when no reporter is given.

        Raises:
            ValidationError: empty title or body, or body too long (nothing written).
        """
        title = data.title.strip()
        description = data.description.strip()
        if not title:
            raise ValidationError("Please enter a title")
        if not description:
            raise ValidationError("Please describe the problem")
        limit = self.settings.report_max_length
        if len(description) > limit:
            raise ValidationError(f"Description must be {limit} characters or fewer")

        row = BugReportRepository.create(
            category=data.category.value,
            report_type=REPORT_TYPES[data.category],
            title=title,
            description=description,
            customer_id=reporter.id if reporter else None,
            customer_phone=reporter.phone_number if reporter else None,
            customer_nickname=(reporter.nickname if reporter else None) or ANONYMOUS_NICKNAME,
        )
        if not row:
            raise StorageError("Report was not stored")

        logger.info(f"Received {data.category.value} report {row['id']}")
        return BugReport(**row)

    def report_unread(self, customer_id: Optional[str]) -> int:
        if not customer_id:
            return 0
        return unread_report_count(BugReportRepository.list_unread_responses(customer_id))

    def mark_reports_read(self, customer_id: Optional[str]) -> int:
        """Acknowledge every answered, unread report, one row at a time.

        A failure part-way leaves the remaining rows unread; they are picked
        up again on the next call. Returns the number of rows updated.
        """
        if not customer_id:
            return 0

        unread = [r for r in BugReportRepository.list_unread_responses(customer_id) if has_unread_response(r)]
        marked = 0
        for report in unread:
            if BugReportRepository.mark_response_read(report["id"]):
                marked += 1

        logger.info(f"Marked {marked} report responses read for customer {customer_id}")
        return marked

    # ===== Badge =====

    def counts(self, customer_id: Optional[str]) -> NotificationCounts:
        return badge_count(self.notice_unread(customer_id), self.report_unread(customer_id))


def create_notification_tracker() -> NotificationTracker:
    return NotificationTracker(get_settings())
