from typing import Optional

from fastapi import APIRouter, Depends

from app.api.deps import get_vote_engine
from app.domain.schemas import (
    Poll,
    SubmitVoteRequest,
    SubmitVoteResult,
    TallyResponse,
    ToggleRequest,
    ToggleResult,
    VoteResponse,
)
from app.services.votes import VoteEngine, percentages, toggle_option

router = APIRouter()


@router.get("", response_model=list[Poll])
def list_polls(engine: VoteEngine = Depends(get_vote_engine)):
    """Get active polls, newest first."""
    return engine.list_open_polls()


@router.get("/{poll_id}/responses/{voter_id}", response_model=Optional[VoteResponse])
def get_my_response(poll_id: int, voter_id: str, engine: VoteEngine = Depends(get_vote_engine)):
    return engine.load_my_response(poll_id, voter_id)


@router.get("/{poll_id}/tally", response_model=TallyResponse)
def get_tally(poll_id: int, engine: VoteEngine = Depends(get_vote_engine)):
    """Live counts per option, respondents, and display percentages."""
    poll = engine.get_poll(poll_id)
    tally = engine.tally(poll_id, poll)
    return TallyResponse(tally=tally, percentages=percentages(poll, tally))


@router.post("/{poll_id}/toggle", response_model=ToggleResult)
def toggle(poll_id: int, data: ToggleRequest, engine: VoteEngine = Depends(get_vote_engine)):
    """Apply an option click to an unsaved selection."""
    poll = engine.get_poll(poll_id)
    return toggle_option(poll, data.selection, data.option_id)


@router.post("/{poll_id}/responses", response_model=SubmitVoteResult)
def submit_vote(poll_id: int, data: SubmitVoteRequest, engine: VoteEngine = Depends(get_vote_engine)):
    """Vote, or revise an existing vote in place."""
    poll = engine.get_poll(poll_id)
    return engine.submit(poll, data.voter_id, data.selection)
