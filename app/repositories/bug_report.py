from database.connection import get_db, with_retry


class BugReportRepository:

    @staticmethod
    @with_retry()
    def create(
        category: str,
        report_type: str,
        title: str,
        description: str,
        customer_id: str | None = None,
        customer_phone: str | None = None,
        customer_nickname: str | None = None,
    ) -> dict | None:
        """Create a bug/feedback report with status 'received'."""
        db = get_db()
        data = {
            "customer_id": customer_id,
            "customer_phone": customer_phone,
            "customer_nickname": customer_nickname,
            "category": category,
            "report_type": report_type,
            "title": title,
            "description": description,
            "status": "received",
            "response_read": False,
        }
        result = db.table("bug_reports").insert(data).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def list_by_customer(customer_id: str) -> list[dict]:
        """Get a customer's reports, newest first."""
        db = get_db()
        result = db.table("bug_reports").select("*").eq(
            "customer_id", customer_id
        ).order("created_at", desc=True).execute()
        return result.data if result and result.data else []

    @staticmethod
    @with_retry()
    def list_unread_responses(customer_id: str) -> list[dict]:
        """Get a customer's reports whose response has not been acknowledged.

        Rows without an admin response are included; callers filter on it.
        """
        db = get_db()
        result = db.table("bug_reports").select(
            "id, admin_response, response_read"
        ).eq("customer_id", customer_id).eq("response_read", False).execute()
        return result.data if result and result.data else []

    @staticmethod
    @with_retry()
    def mark_response_read(report_id: int) -> bool:
        db = get_db()
        result = db.table("bug_reports").update({
            "response_read": True,
        }).eq("id", report_id).execute()
        return bool(result and result.data and len(result.data) > 0)
