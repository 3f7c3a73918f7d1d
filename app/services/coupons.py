"""Coupon lifecycle: classification, expiry and destructive redemption.

A coupon's type comes only from its code prefix and is attached once, when the
row enters the engine. Redeeming deletes the row; the owner's cached
``coupons`` count is then recomputed from the remaining rows.
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import Optional

from app.core.config import Settings, get_settings
from app.core.errors import (
    AuthorizationError,
    CounterRefreshError,
    ExpiredError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from app.domain.schemas import Coupon, CouponBook, CouponType, RedemptionResult
from app.repositories.coupon import CouponRepository
from app.services.counters import recompute_counters

logger = logging.getLogger(__name__)

# Checked in order; "BIRTH" also covers "BIRTHDAY".
COUPON_PREFIXES = (
    ("STAMP", CouponType.STAMP),
    ("COUPON", CouponType.STAMP),
    ("BIRTH", CouponType.BIRTHDAY),
)

TYPE_LABELS = {
    CouponType.STAMP: "Stamp coupon",
    CouponType.BIRTHDAY: "Birthday coupon",
    CouponType.UNKNOWN: "Coupon",
}


def classify(code: str) -> CouponType:
    """Coupon type from its code prefix."""
    for prefix, coupon_type in COUPON_PREFIXES:
        if code.startswith(prefix):
            return coupon_type
    return CouponType.UNKNOWN


def coupon_from_row(row: dict) -> Coupon:
    return Coupon(**{**row, "coupon_type": classify(row["coupon_code"])})


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_redeemable(coupon: Coupon, now: Optional[datetime] = None) -> bool:
    """False iff the coupon has an expiry that is already in the past."""
    if coupon.valid_until is None:
        return True
    now = _as_utc(now or datetime.now(timezone.utc))
    return not _as_utc(coupon.valid_until) < now


def partition(coupons: list[Coupon]) -> CouponBook:
    book = CouponBook()
    for coupon in coupons:
        if coupon.coupon_type == CouponType.STAMP:
            book.stamp.append(coupon)
        elif coupon.coupon_type == CouponType.BIRTHDAY:
            book.birthday.append(coupon)
        else:
            book.unknown.append(coupon)
    return book


class CouponManager:

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def list_coupons(self, customer_id: Optional[str]) -> CouponBook:
        """A customer's coupons partitioned by type, newest issued first."""
        if not customer_id:
            return CouponBook()
        rows = CouponRepository.list_by_customer(customer_id)
        return partition([coupon_from_row(row) for row in rows])

    def get_coupon(self, coupon_id: str) -> Coupon:
        row = CouponRepository.get_by_id(coupon_id)
        if not row:
            raise NotFoundError(f"Coupon {coupon_id} not found")
        return coupon_from_row(row)

    def check_secret(self, supplied_secret: Optional[str]) -> None:
        expected = self.settings.admin_redemption_secret
        # An unset secret never matches
        if not expected or not supplied_secret:
            raise AuthorizationError("Incorrect admin password")
        if not secrets.compare_digest(supplied_secret.encode(), expected.encode()):
            raise AuthorizationError("Incorrect admin password")

    def redeem(
        self,
        coupon: Optional[Coupon],
        supplied_secret: Optional[str],
        now: Optional[datetime] = None,
    ) -> RedemptionResult:
        """Redeem a coupon after admin confirmation.

        Checks, in order: a coupon is selected, the secret matches, the coupon
        has not expired. Then deletes the row and recomputes the owner's
        cached count (delete is awaited before the recount is issued).

        Raises:
            ValidationError: no coupon selected.
            AuthorizationError: wrong admin secret.
            ExpiredError: the coupon's expiry has passed.
            NotFoundError: the coupon row was already gone.
            CounterRefreshError: the row was deleted but the recount failed.
        """
        if coupon is None:
            raise ValidationError("Select a coupon to use")

        self.check_secret(supplied_secret)

        if not is_redeemable(coupon, now):
            raise ExpiredError(f"Coupon {coupon.coupon_code} expired on {coupon.valid_until:%Y-%m-%d}")

        if not CouponRepository.delete(coupon.id):
            raise NotFoundError(f"Coupon {coupon.coupon_code} was already used")

        logger.info(
            f"Redeemed {coupon.coupon_type.value} coupon {coupon.coupon_code} for customer {coupon.customer_id}"
        )

        try:
            identity = recompute_counters(coupon.customer_id)
        except (StorageError, NotFoundError) as e:
            logger.error(
                f"Coupon {coupon.id} deleted but coupon count for customer "
                f"{coupon.customer_id} is stale: {e}"
            )
            raise CounterRefreshError(
                "Coupon was used, but the coupon count could not be refreshed",
                coupon_id=coupon.id,
                customer_id=coupon.customer_id,
                cause=e,
            ) from e

        label = TYPE_LABELS[coupon.coupon_type]
        return RedemptionResult(
            coupon_id=coupon.id,
            coupon_code=coupon.coupon_code,
            coupon_type=coupon.coupon_type,
            remaining_coupons=identity.coupons,
            message=f"{label} has been used!",
        )


def create_coupon_manager() -> CouponManager:
    return CouponManager(get_settings())
