from fastapi import APIRouter, Depends

from app.api.deps import get_visit_ledger
from app.domain.schemas import (
    ActionResponse,
    AttachCardRequest,
    ReviewRequest,
    TarotCard,
    Visit,
    VisitResponse,
)
from app.services.visits import CARD_DECK, VisitLedger

router = APIRouter()


@router.get("/cards", response_model=list[TarotCard])
def list_cards():
    """The deck customers pick from after a visit."""
    return CARD_DECK


@router.get("/{customer_id}", response_model=list[Visit])
def list_visits(customer_id: str, ledger: VisitLedger = Depends(get_visit_ledger)):
    """Get a customer's visit history, newest first."""
    return ledger.list_visits(customer_id)


@router.put("/{visit_id}/card", response_model=VisitResponse)
def attach_card(
    visit_id: str,
    data: AttachCardRequest,
    ledger: VisitLedger = Depends(get_visit_ledger),
):
    """Attach the selected card (and optional review) to an existing visit."""
    visit = ledger.attach_card(visit_id, data.card, data.review)
    return VisitResponse(visit=visit, message="Your card has been saved!")


@router.put("/{visit_id}/review", response_model=VisitResponse)
def edit_review(
    visit_id: str,
    data: ReviewRequest,
    ledger: VisitLedger = Depends(get_visit_ledger),
):
    visit = ledger.edit_review(visit_id, data.review)
    return VisitResponse(visit=visit, message="Your review has been updated!")


@router.delete("/{visit_id}", response_model=ActionResponse)
def delete_visit(visit_id: str, ledger: VisitLedger = Depends(get_visit_ledger)):
    """Delete a visit from the history. Stamps and coupons are unaffected."""
    ledger.delete_visit(visit_id)
    return ActionResponse(message="Visit deleted.")
