from database.connection import get_db, with_retry


class VisitRepository:
    """Visit rows are created at the point of sale; customers only edit or remove them."""

    @staticmethod
    @with_retry()
    def list_by_customer(customer_id: str) -> list[dict]:
        """Get all visits for a customer, newest first."""
        db = get_db()
        result = db.table("visit_history").select("*").eq(
            "customer_id", customer_id
        ).order("visit_date", desc=True).execute()
        return result.data if result and result.data else []

    @staticmethod
    @with_retry()
    def get_by_id(visit_id: str) -> dict | None:
        db = get_db()
        result = db.table("visit_history").select("*").eq("id", visit_id).limit(1).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def update(visit_id: str, **kwargs) -> dict | None:
        """Patch an existing visit. Returns None when no row matched."""
        db = get_db()
        result = db.table("visit_history").update(kwargs).eq("id", visit_id).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def delete(visit_id: str) -> bool:
        """Delete a visit."""
        db = get_db()
        result = db.table("visit_history").delete().eq("id", visit_id).execute()
        return bool(result and result.data and len(result.data) > 0)
