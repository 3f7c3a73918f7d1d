from enum import Enum
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime


# ============================================
# Identity Schemas
# ============================================

class Identity(BaseModel):
    """A customer as seen by the engine. ``id`` is None for guests."""
    id: Optional[str] = None
    phone_number: str
    nickname: Optional[str] = None
    current_stamps: int = 0
    total_stamps: int = 0
    visit_count: int = 0
    coupons: int = 0  # cached count of coupon_history rows
    is_guest: bool = False


class StampCard(BaseModel):
    stamps: int
    target: int
    remaining: int
    reward_ready: bool


class LoginRequest(BaseModel):
    phone_number: str


class NotificationCounts(BaseModel):
    notices: int = 0
    reports: int = 0
    badge: int = 0


class IdentityResponse(BaseModel):
    identity: Identity
    stamp_card: StampCard
    unread: NotificationCounts


# ============================================
# Visit Schemas
# ============================================

class Visit(BaseModel):
    id: str
    customer_id: str
    visit_date: datetime
    selected_card: Optional[str] = None
    card_review: Optional[str] = None
    stamps_earned: Optional[int] = None


class TarotCard(BaseModel):
    id: int
    name: str
    meaning: str


class AttachCardRequest(BaseModel):
    card: str
    review: Optional[str] = None


class ReviewRequest(BaseModel):
    review: Optional[str] = None


class VisitResponse(BaseModel):
    visit: Visit
    message: str


class ActionResponse(BaseModel):
    message: str


# ============================================
# Coupon Schemas
# ============================================

class CouponType(str, Enum):
    STAMP = "stamp"
    BIRTHDAY = "birthday"
    UNKNOWN = "unknown"


class Coupon(BaseModel):
    """A coupon row tagged with its type at the engine boundary."""
    id: str
    customer_id: str
    coupon_code: str
    coupon_type: CouponType
    issued_at: datetime
    valid_until: Optional[datetime] = None  # None = no expiry


class CouponBook(BaseModel):
    stamp: list[Coupon] = []
    birthday: list[Coupon] = []
    unknown: list[Coupon] = []

    @property
    def total(self) -> int:
        return len(self.stamp) + len(self.birthday) + len(self.unknown)


class RedeemRequest(BaseModel):
    secret: str


class RedemptionResult(BaseModel):
    coupon_id: str
    coupon_code: str
    coupon_type: CouponType
    remaining_coupons: int
    message: str


# ============================================
# Vote Schemas
# ============================================

class PollOption(BaseModel):
    id: int
    text: str


class Poll(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    options: list[PollOption] = []
    allow_multiple: bool = False
    max_selections: Optional[int] = None  # only meaningful when allow_multiple
    is_anonymous: bool = True
    end_date: Optional[datetime] = None
    is_active: bool = True
    created_at: Optional[datetime] = None


class VoteResponse(BaseModel):
    id: int
    vote_id: int
    customer_id: str
    selected_options: list[int] = []
    voted_at: Optional[datetime] = None


class Tally(BaseModel):
    poll_id: int
    counts: dict[int, int]
    total: int  # respondents, not selections


class TallyResponse(BaseModel):
    tally: Tally
    percentages: dict[int, int]


class ToggleRequest(BaseModel):
    selection: list[int] = []
    option_id: int


class ToggleResult(BaseModel):
    selection: list[int]
    warning: Optional[str] = None


class SubmitVoteRequest(BaseModel):
    voter_id: Optional[str] = None
    selection: list[int] = []


class SubmitVoteResult(BaseModel):
    response: VoteResponse
    revised: bool
    message: str


# ============================================
# Notice & Report Schemas
# ============================================

class Notice(BaseModel):
    id: int
    title: str
    content: str = ""
    is_pinned: bool = False
    is_published: bool = True
    created_at: Optional[datetime] = None


class NoticeView(Notice):
    content_html: str


class MarkReadResult(BaseModel):
    marked: int
    unread: NotificationCounts
    message: str


class ReportCategory(str, Enum):
    APP = "app"
    STORE = "store"


class ReportStatus(str, Enum):
    RECEIVED = "received"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    HELD = "held"


# Status values written by older clients, read as their current equivalent.
LEGACY_REPORT_STATUSES = {"pending": ReportStatus.RECEIVED}


class BugReport(BaseModel):
    id: int
    customer_id: Optional[str] = None
    customer_nickname: Optional[str] = None
    category: ReportCategory
    report_type: Optional[str] = None
    title: str
    description: str
    status: ReportStatus = ReportStatus.RECEIVED
    admin_response: Optional[str] = None
    response_read: bool = False
    created_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def map_legacy_status(cls, value):
        if isinstance(value, str):
            return LEGACY_REPORT_STATUSES.get(value, value)
        return value


class BugReportCreate(BaseModel):
    customer_id: Optional[str] = None  # None = anonymous
    category: ReportCategory = ReportCategory.APP
    title: str = ""
    description: str = ""


class BugReportResponse(BaseModel):
    report: BugReport
    message: str


class ErrorResponse(BaseModel):
    detail: str
    error: str = Field(default="loyalty_error")
