from fastapi import APIRouter, Depends

from app.api.deps import get_coupon_manager
from app.domain.schemas import CouponBook, RedeemRequest, RedemptionResult
from app.services.coupons import CouponManager

router = APIRouter()


@router.get("/{customer_id}", response_model=CouponBook)
def list_coupons(customer_id: str, manager: CouponManager = Depends(get_coupon_manager)):
    """Get a customer's coupons grouped into stamp, birthday and unknown."""
    return manager.list_coupons(customer_id)


@router.post("/{coupon_id}/redeem", response_model=RedemptionResult)
def redeem_coupon(
    coupon_id: str,
    data: RedeemRequest,
    manager: CouponManager = Depends(get_coupon_manager),
):
    """Use a coupon after staff enter the admin password.

    The coupon row is deleted and the owner's coupon count is recomputed.
    """
    coupon = manager.get_coupon(coupon_id)
    return manager.redeem(coupon, data.secret)
