"""Repositories for polls (``votes``) and per-voter responses (``vote_responses``)."""

from datetime import datetime, timezone

from database.connection import get_db, with_retry


class VoteRepository:

    @staticmethod
    @with_retry()
    def list_active() -> list[dict]:
        """Get all active polls, newest first."""
        db = get_db()
        result = db.table("votes").select("*").eq(
            "is_active", True
        ).order("created_at", desc=True).execute()
        return result.data if result and result.data else []

    @staticmethod
    @with_retry()
    def get_by_id(vote_id: int) -> dict | None:
        db = get_db()
        result = db.table("votes").select("*").eq("id", vote_id).limit(1).execute()
        return result.data[0] if result and result.data else None


class VoteResponseRepository:
    """At most one row per (vote_id, customer_id); the store enforces it with a unique index."""

    @staticmethod
    @with_retry()
    def get_for_voter(vote_id: int, customer_id: str) -> dict | None:
        db = get_db()
        result = db.table("vote_responses").select("*").eq(
            "vote_id", vote_id
        ).eq("customer_id", customer_id).limit(1).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def list_selections(vote_id: int) -> list[dict]:
        """Get every response's selected options for a poll."""
        db = get_db()
        result = db.table("vote_responses").select(
            "selected_options"
        ).eq("vote_id", vote_id).execute()
        return result.data if result and result.data else []

    @staticmethod
    @with_retry()
    def create(vote_id: int, customer_id: str, selected_options: list[int]) -> dict | None:
        """Insert a response. Raises AlreadyExistsError if the voter already has one."""
        db = get_db()
        result = db.table("vote_responses").insert({
            "vote_id": vote_id,
            "customer_id": customer_id,
            "selected_options": selected_options,
            "voted_at": datetime.now(timezone.utc).isoformat(),
        }).execute()
        return result.data[0] if result and result.data else None

    @staticmethod
    @with_retry()
    def update_selection(response_id: int, selected_options: list[int]) -> dict | None:
        """Replace a response's selection in place."""
        db = get_db()
        result = db.table("vote_responses").update({
            "selected_options": selected_options,
            "voted_at": datetime.now(timezone.utc).isoformat(),
        }).eq("id", response_id).execute()
        return result.data[0] if result and result.data else None
