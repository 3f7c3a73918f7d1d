"""Projection of the cached counters on a customer row.

The ``coupons`` column is a cache of ``count(coupon_history WHERE customer_id)``.
It is only ever overwritten with a fresh count, never incremented in place.
"""

import logging

from app.core.errors import NotFoundError
from app.domain.schemas import Identity
from app.repositories.coupon import CouponRepository
from app.repositories.customer import CustomerRepository

logger = logging.getLogger(__name__)


def recompute_counters(customer_id: str) -> Identity:
    """Recount the customer's coupon rows and persist the count onto the customer.

    Must be called after the mutation that changed the coupon set has completed.

    Raises:
        NotFoundError: if the customer row no longer exists.
        StorageError: if either gateway call fails.
    """
    coupon_count = CouponRepository.count_by_customer(customer_id)
    row = CustomerRepository.update(customer_id, coupons=coupon_count)
    if not row:
        raise NotFoundError(f"Customer {customer_id} not found")

    logger.info(f"Recomputed counters for customer {customer_id}: coupons={coupon_count}")
    return Identity(**row)
