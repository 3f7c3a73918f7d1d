from functools import lru_cache

from app.services.coupons import CouponManager, create_coupon_manager
from app.services.identity import IdentityResolver, create_identity_resolver
from app.services.notifications import NotificationTracker, create_notification_tracker
from app.services.visits import VisitLedger, create_visit_ledger
from app.services.votes import VoteEngine, create_vote_engine


@lru_cache
def get_identity_resolver() -> IdentityResolver:
    return create_identity_resolver()


@lru_cache
def get_visit_ledger() -> VisitLedger:
    return create_visit_ledger()


@lru_cache
def get_coupon_manager() -> CouponManager:
    return create_coupon_manager()


@lru_cache
def get_vote_engine() -> VoteEngine:
    return create_vote_engine()


@lru_cache
def get_notification_tracker() -> NotificationTracker:
    return create_notification_tracker()
