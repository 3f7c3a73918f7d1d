"""Visit/stamp ledger.

Visits are created at the point of sale. Customers attach a card and a short
review to an existing visit, edit the review, or delete the visit. None of
these touch the stamp or coupon counters.
"""

import logging
from typing import Optional

from app.core.config import Settings, get_settings
from app.core.errors import NotFoundError, ValidationError
from app.domain.schemas import TarotCard, Visit
from app.repositories.visit import VisitRepository

logger = logging.getLogger(__name__)

CARD_DECK = [
    TarotCard(id=1, name="The Fool", meaning="New beginnings"),
    TarotCard(id=2, name="The Magician", meaning="Creation and will"),
    TarotCard(id=3, name="The Empress", meaning="Abundance and love"),
    TarotCard(id=4, name="The Emperor", meaning="Authority and stability"),
    TarotCard(id=5, name="Justice", meaning="Fairness and balance"),
    TarotCard(id=6, name="The Moon", meaning="Intuition and dreams"),
    TarotCard(id=7, name="The Sun", meaning="Success and joy"),
    TarotCard(id=8, name="The Star", meaning="Hope and inspiration"),
    TarotCard(id=9, name="The Lovers", meaning="Choice and love"),
    TarotCard(id=10, name="The Devil", meaning="Temptation and attachment"),
]

CARD_NAMES = {card.name for card in CARD_DECK}


class VisitLedger:

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def _check_review(self, review: Optional[str]) -> Optional[str]:
        if review is None:
            return None
        limit = self.settings.review_max_length
        if len(review) > limit:
            raise ValidationError(f"Review must be {limit} characters or fewer")
        return review or None  # empty review clears the column

    def list_visits(self, customer_id: Optional[str]) -> list[Visit]:
        """A customer's visits, newest first. Guests have none."""
        if not customer_id:
            return []
        return [Visit(**row) for row in VisitRepository.list_by_customer(customer_id)]

    def attach_card(self, visit_id: str, card: str, review: Optional[str] = None) -> Visit:
        """Set the selected card (and review) on an existing visit.

        Re-attaching overwrites the previous selection. Never inserts.

        Raises:
            ValidationError: unknown card or review too long (nothing written).
            NotFoundError: no visit with this id.
        """
        if card not in CARD_NAMES:
            raise ValidationError(f"Unknown card: {card}")
        review = self._check_review(review)

        row = VisitRepository.update(visit_id, selected_card=card, card_review=review)
        if not row:
            raise NotFoundError(f"Visit {visit_id} not found")

        logger.info(f"Attached card '{card}' to visit {visit_id}")
        return Visit(**row)

    def edit_review(self, visit_id: str, review: Optional[str]) -> Visit:
        """Replace a visit's review, with or without a card attached."""
        review = self._check_review(review)

        row = VisitRepository.update(visit_id, card_review=review)
        if not row:
            raise NotFoundError(f"Visit {visit_id} not found")

        logger.info(f"Updated review on visit {visit_id}")
        return Visit(**row)

    def delete_visit(self, visit_id: str) -> None:
        """Remove a visit row. Counters are left as they are."""
        if not VisitRepository.delete(visit_id):
            raise NotFoundError(f"Visit {visit_id} not found")
        logger.info(f"Deleted visit {visit_id}")


def create_visit_ledger() -> VisitLedger:
    return VisitLedger(get_settings())
