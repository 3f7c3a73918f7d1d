from database.connection import get_db, with_retry


class CouponRepository:

    @staticmethod
    @with_retry()
    def list_by_customer(customer_id: str) -> list[dict]:
        """Get all coupons owned by a customer, newest issued first."""
        db = get_db()
        result = db.table("coupon_history").select("*").eq(
            "customer_id", customer_id
        ).order("issued_at", desc=True).execute()
        return result.data if result and result.data else []

    @staticmethod
    @with_retry()
    def get_by_id(coupon_id: str) -> dict | None:
        db = get_db()
        result = db.table("coupon_history").select("*").eq("id", coupon_id).limit(1).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def count_by_customer(customer_id: str) -> int:
        """Count the coupon rows a customer currently owns."""
        db = get_db()
        result = db.table("coupon_history").select(
            "id", count="exact"
        ).eq("customer_id", customer_id).execute()
        if result and result.count is not None:
            return result.count
        return len(result.data) if result and result.data else 0

    @staticmethod
    @with_retry()
    def delete(coupon_id: str) -> bool:
        """Delete a coupon. Redemption is destructive."""
        db = get_db()
        result = db.table("coupon_history").delete().eq("id", coupon_id).execute()
        return bool(result and result.data and len(result.data) > 0)
