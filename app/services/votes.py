"""Poll participation and live tallies.

Each (poll, voter) pair has at most one response row. A voter moves from
not-voted to voted through ``submit``; later submissions revise the same row
in place. Submission is the one place a duplicate-insert race is expected:
the insert is attempted, and a unique violation from the store is resolved by
re-reading the existing response and updating it.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from app.core.errors import AlreadyExistsError, NotFoundError, StorageError, ValidationError
from app.domain.schemas import (
    Poll,
    SubmitVoteResult,
    Tally,
    ToggleResult,
    VoteResponse,
)
from app.repositories.vote import VoteRepository, VoteResponseRepository

logger = logging.getLogger(__name__)


def max_selections(poll: Poll) -> int:
    if not poll.allow_multiple:
        return 1
    return poll.max_selections or 1


def is_open(poll: Poll, now: Optional[datetime] = None) -> bool:
    if not poll.is_active:
        return False
    if poll.end_date is None:
        return True
    now = now or datetime.now(timezone.utc)
    end = poll.end_date if poll.end_date.tzinfo else poll.end_date.replace(tzinfo=timezone.utc)
    return now < end


def toggle_option(poll: Poll, selection: list[int], option_id: int) -> ToggleResult:
    """Apply one click on an option to the current (unsaved) selection."""
    if option_id not in {option.id for option in poll.options}:
        return ToggleResult(
            selection=list(selection),
            warning=f"Option {option_id} is not part of this poll",
        )

    if not poll.allow_multiple:
        return ToggleResult(selection=[option_id])

    if option_id in selection:
        return ToggleResult(selection=[o for o in selection if o != option_id])

    limit = max_selections(poll)
    if len(selection) < limit:
        return ToggleResult(selection=[*selection, option_id])

    return ToggleResult(
        selection=list(selection),
        warning=f"You can select up to {limit} options",
    )


def validate_selection(poll: Poll, selection: list[int]) -> list[int]:
    """Check cardinality and membership; returns the de-duplicated selection."""
    selection = list(dict.fromkeys(selection))
    if not selection:
        raise ValidationError("Select at least one option")

    if not poll.allow_multiple and len(selection) != 1:
        raise ValidationError("This poll accepts exactly one option")

    limit = max_selections(poll)
    if len(selection) > limit:
        raise ValidationError(f"You can select up to {limit} options")

    known = {option.id for option in poll.options}
    unknown = [o for o in selection if o not in known]
    if unknown:
        raise ValidationError(f"Unknown options for this poll: {unknown}")

    return selection


def count_selections(poll: Poll, responses: list[dict]) -> Tally:
    """Count each option once per response; total counts respondents."""
    counts = {option.id: 0 for option in poll.options}
    for response in responses:
        for option_id in set(response.get("selected_options") or []):
            if option_id in counts:
                counts[option_id] += 1
            else:
                logger.debug(f"Ignoring unknown option {option_id} in poll {poll.id}")
    return Tally(poll_id=poll.id, counts=counts, total=len(responses))


def percentage(tally: Tally, option_id: int) -> int:
    """round(100 * count / total), half up; 0 when nobody has voted."""
    total = tally.total
    if total <= 0:
        return 0
    count = tally.counts.get(option_id, 0)
    return (200 * count + total) // (2 * total)


def percentages(poll: Poll, tally: Tally) -> dict[int, int]:
    """Display percentages for every option.

    Single-select polls use largest-remainder rounding so a poll with any
    respondents always sums to exactly 100.
    """
    if poll.allow_multiple:
        return {option.id: percentage(tally, option.id) for option in poll.options}

    counted = sum(tally.counts.get(option.id, 0) for option in poll.options)
    if counted == 0:
        return {option.id: 0 for option in poll.options}

    shares = {}
    remainders = []
    for index, option in enumerate(poll.options):
        scaled = 100 * tally.counts.get(option.id, 0)
        shares[option.id] = scaled // counted
        remainders.append((-(scaled % counted), index, option.id))

    deficit = 100 - sum(shares.values())
    for _, _, option_id in sorted(remainders)[:deficit]:
        shares[option_id] += 1
    return shares


class VoteEngine:

    def list_open_polls(self) -> list[Poll]:
        """Active polls, newest first."""
        return [Poll(**row) for row in VoteRepository.list_active()]

    def get_poll(self, poll_id: int) -> Poll:
        row = VoteRepository.get_by_id(poll_id)
        if not row:
            raise NotFoundError(f"Poll {poll_id} not found")
        return Poll(**row)

    def load_my_response(self, poll_id: int, voter_id: Optional[str]) -> Optional[VoteResponse]:
        if not voter_id:
            return None
        row = VoteResponseRepository.get_for_voter(poll_id, voter_id)
        return VoteResponse(**row) if row else None

    def tally(self, poll_id: int, poll: Optional[Poll] = None) -> Tally:
        """Count responses for a poll; pass ``poll`` when it is already loaded."""
        if poll is None:
            poll = self.get_poll(poll_id)
        return count_selections(poll, VoteResponseRepository.list_selections(poll.id))

    def submit(
        self,
        poll: Poll,
        voter_id: Optional[str],
        selection: list[int],
        now: Optional[datetime] = None,
    ) -> SubmitVoteResult:
        """Record or revise a voter's response.

        Raises:
            ValidationError: no voter, closed poll, or bad selection (nothing written).
            StorageError: the store failed.
        """
        if not voter_id:
            raise ValidationError("Register your phone number to vote")
        if not is_open(poll, now):
            raise ValidationError("This poll is closed")
        selection = validate_selection(poll, selection)

        existing = VoteResponseRepository.get_for_voter(poll.id, voter_id)
        if existing:
            return self._revise(poll, voter_id, existing, selection)

        try:
            row = VoteResponseRepository.create(poll.id, voter_id, selection)
        except AlreadyExistsError:
            logger.info(f"Concurrent vote detected for poll {poll.id} voter {voter_id}, revising instead")
            existing = VoteResponseRepository.get_for_voter(poll.id, voter_id)
            if not existing:
                raise StorageError(f"Vote for poll {poll.id} conflicted but no response was found")
            return self._revise(poll, voter_id, existing, selection)

        if not row:
            raise StorageError(f"Vote for poll {poll.id} was not stored")

        logger.info(f"Recorded vote for poll {poll.id} voter {voter_id}: {selection}")
        return SubmitVoteResult(
            response=VoteResponse(**row),
            revised=False,
            message="Your vote has been recorded!",
        )

    def _revise(self, poll: Poll, voter_id: str, existing: dict, selection: list[int]) -> SubmitVoteResult:
        row = VoteResponseRepository.update_selection(existing["id"], selection)
        if not row:
            raise StorageError(f"Vote for poll {poll.id} could not be updated")

        logger.info(f"Revised vote for poll {poll.id} voter {voter_id}: {selection}")
        return SubmitVoteResult(
            response=VoteResponse(**row),
            revised=True,
            message="Your vote has been updated!",
        )


def create_vote_engine() -> VoteEngine:
    return VoteEngine()
