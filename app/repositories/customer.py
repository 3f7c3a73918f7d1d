from database.connection import get_db, with_retry


class CustomerRepository:

    @staticmethod
    @with_retry()
    def get_by_id(customer_id: str) -> dict | None:
        """Get a customer by ID."""
        db = get_db()
        result = db.table("customers").select("*").eq("id", customer_id).limit(1).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def get_by_phone(phone_number: str) -> dict | None:
        """Get a customer by phone number (unique key)."""
        db = get_db()
        result = db.table("customers").select("*").eq(
            "phone_number", phone_number
        ).limit(1).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def update(customer_id: str, **kwargs) -> dict | None:
        """Update a customer."""
        db = get_db()
        result = db.table("customers").update(kwargs).eq("id", customer_id).execute()
        return result.data[0] if result and result.data else None
