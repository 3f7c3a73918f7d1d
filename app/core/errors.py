"""Error taxonomy for the loyalty engine.

Validation and authorization failures are raised before any remote call.
Storage failures carry the underlying gateway exception as ``cause``.
"""

from typing import Optional


class LoyaltyError(Exception):
    """Base class for every error the engine raises."""

    code = "loyalty_error"
    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class ValidationError(LoyaltyError):
    """Bad input shape, length or cardinality."""

    code = "validation_error"
    status_code = 400


class AuthorizationError(LoyaltyError):
    """The supplied admin secret does not match."""

    code = "authorization_error"
    status_code = 403


class NotFoundError(LoyaltyError):
    code = "not_found"
    status_code = 404


class ExpiredError(LoyaltyError):
    """Redeeming a coupon whose expiry has passed."""

    code = "expired"
    status_code = 410


class StorageError(LoyaltyError):
    """Any record store failure not otherwise classified."""

    code = "storage_error"
    status_code = 502


class AlreadyExistsError(LoyaltyError):
    """The store rejected an insert on a unique key.

    Callers that expect races (vote submission, read markers) treat this as a
    normal-path signal rather than a failure.
    """

    code = "already_exists"
    status_code = 409


class CounterRefreshError(StorageError):
    """A coupon row was deleted but the cached count could not be refreshed.

    The coupon list is correct; only the customer's cached ``coupons`` value
    is stale until the next recount.
    """

    code = "counter_refresh_failed"

    def __init__(self, message: str, coupon_id: str, customer_id: str, cause: Optional[BaseException] = None):
        super().__init__(message, cause=cause)
        self.coupon_id = coupon_id
        self.customer_id = customer_id
