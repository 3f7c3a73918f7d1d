from database.connection import get_db, with_retry


class NoticeRepository:

    @staticmethod
    @with_retry()
    def list_published() -> list[dict]:
        """Get published notices, pinned first, then newest first."""
        db = get_db()
        result = db.table("notices").select("*").eq(
            "is_published", True
        ).order("is_pinned", desc=True).order("created_at", desc=True).execute()
        return result.data if result and result.data else []

    @staticmethod
    @with_retry()
    def get_published_ids() -> list[int]:
        db = get_db()
        result = db.table("notices").select("id").eq("is_published", True).execute()
        return [row["id"] for row in result.data] if result and result.data else []


class NoticeReadRepository:
    """Read markers, unique per (customer_id, notice_id)."""

    @staticmethod
    @with_retry()
    def get_read_notice_ids(customer_id: str) -> list[int]:
        db = get_db()
        result = db.table("notice_reads").select("notice_id").eq(
            "customer_id", customer_id
        ).execute()
        return [row["notice_id"] for row in result.data] if result and result.data else []

    @staticmethod
    @with_retry()
    def create(customer_id: str, notice_id: int) -> dict | None:
        """Insert a read marker. Raises AlreadyExistsError if one exists."""
        db = get_db()
        result = db.table("notice_reads").insert({
            "customer_id": customer_id,
            "notice_id": notice_id,
        }).execute()
        return result.data[0] if result and result.data else None
