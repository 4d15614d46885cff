"""Poll subsystem: creating polls, voting, tallies and removal.

A poll is open until it is closed explicitly or its ``closes_at`` passes;
closing is terminal. Each voter gets one vote per poll, guaranteed by the
``uq_poll_vote_poll_voter`` constraint rather than a lookup before insert.
After every vote write the affected option is recounted from scratch.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from food_connect.core.security import is_moderator
from food_connect.db.time import ensure_utc
from food_connect.models import Community, Poll, PollOption, PollVote, User
from food_connect.schemas.poll import PollCreate
from food_connect.services import membership
from food_connect.services.reconcile import reconcile_option_votes
from food_connect.services.results import ErrorKind, Failure, Ok, Result, fail

logger = logging.getLogger(__name__)

QUESTION_MIN_LENGTH = 5
QUESTION_MAX_LENGTH = 200
OPTION_MIN_LENGTH = 1
OPTION_MAX_LENGTH = 100
MIN_OPTIONS = 2
MAX_OPTIONS = 6


@dataclass(frozen=True)
class PollView:
    """A poll together with the reader's own vote, if any."""

    poll: Poll
    user_vote_option_id: int | None = None

    @property
    def has_voted(self) -> bool:
        return self.user_vote_option_id is not None


@dataclass(frozen=True)
class OptionResult:
    option: PollOption
    percentage: float


@dataclass(frozen=True)
class PollResults:
    poll: Poll
    options: list[OptionResult]
    total_votes: int


def get_poll(db: Session, poll_id: int) -> Result[Poll]:
    poll = db.get(Poll, poll_id)
    if poll is None:
        return fail(ErrorKind.NOT_FOUND, "Poll not found")
    return Ok(poll)


def _can_manage(poll: Poll, user: User) -> bool:
    return poll.created_by_id == user.id or is_moderator(user)


def _validate_poll(question: str, options: list[str]) -> Failure | None:
    if not QUESTION_MIN_LENGTH <= len(question) <= QUESTION_MAX_LENGTH:
        return fail(
            ErrorKind.VALIDATION_ERROR,
            f"Question must be between {QUESTION_MIN_LENGTH} and {QUESTION_MAX_LENGTH} characters",
        )
    if not MIN_OPTIONS <= len(options) <= MAX_OPTIONS:
        return fail(
            ErrorKind.VALIDATION_ERROR,
            f"Poll must have between {MIN_OPTIONS} and {MAX_OPTIONS} options",
        )
    for text in options:
        if not OPTION_MIN_LENGTH <= len(text) <= OPTION_MAX_LENGTH:
            return fail(
                ErrorKind.VALIDATION_ERROR,
                f"Each option must be between {OPTION_MIN_LENGTH} and "
                f"{OPTION_MAX_LENGTH} characters",
            )
    return None


def create_poll(
    db: Session,
    community: Community,
    creator: User,
    data: PollCreate,
) -> Result[Poll]:
    """Create a poll and its options in one transaction (members only)."""
    if not community.is_active:
        return fail(ErrorKind.NOT_FOUND, "Community not found")

    if not membership.is_member(db, community, creator.id):
        return fail(ErrorKind.FORBIDDEN, "Not authorized to create polls in this community")

    question = data.question.strip()
    option_texts = [text.strip() for text in data.options]
    if (failure := _validate_poll(question, option_texts)) is not None:
        return failure

    poll = Poll(
        community_id=community.id,
        created_by_id=creator.id,
        question=question,
        is_active=True,
        closes_at=ensure_utc(data.closes_at) if data.closes_at is not None else None,
        options=[PollOption(text=text, votes_count=0) for text in option_texts],
    )
    db.add(poll)
    db.commit()
    db.refresh(poll)
    logger.info("User %s created poll %s in community %s", creator.id, poll.id, community.id)
    return Ok(poll)


def list_polls(db: Session, community: Community, reader: User) -> Result[list[PollView]]:
    """Polls of a community, newest first, with the reader's votes."""
    if not community.is_active:
        return fail(ErrorKind.NOT_FOUND, "Community not found")

    if not membership.can_read(db, community, reader):
        return fail(ErrorKind.FORBIDDEN, "Not authorized to access polls in this community")

    polls = (
        db.query(Poll)
        .filter(Poll.community_id == community.id)
        .order_by(Poll.created_at.desc(), Poll.id.desc())
        .all()
    )
    if not polls:
        return Ok([])

    own_votes = dict(
        db.query(PollVote.poll_id, PollVote.option_id)
        .filter(
            PollVote.voter_id == reader.id,
            PollVote.poll_id.in_([poll.id for poll in polls]),
        )
        .all()
    )
    return Ok([PollView(poll=poll, user_vote_option_id=own_votes.get(poll.id)) for poll in polls])


def vote(db: Session, poll: Poll, voter: User, option_id: int) -> Result[PollVote]:
    """Record ``voter``'s choice and recount the chosen option."""
    if not membership.is_member(db, poll.community, voter.id):
        return fail(ErrorKind.FORBIDDEN, "Only community members can vote in this poll")

    if not poll.is_open():
        return fail(ErrorKind.POLL_CLOSED, "Poll is closed for voting")

    option = db.get(PollOption, option_id)
    if option is None:
        return fail(ErrorKind.NOT_FOUND, "Poll option not found")
    if option.poll_id != poll.id:
        return fail(ErrorKind.OPTION_MISMATCH, "Invalid option for this poll")

    poll_id, voter_id, option_id = poll.id, voter.id, option.id
    ballot = PollVote(poll_id=poll_id, option_id=option_id, voter_id=voter_id)
    try:
        with db.begin_nested():
            db.add(ballot)
    except IntegrityError:
        db.rollback()
        logger.debug("Duplicate vote by user %s in poll %s rejected", voter_id, poll_id)
        return fail(ErrorKind.ALREADY_VOTED, "You have already voted in this poll")

    reconcile_option_votes(db, option_id)
    db.commit()
    logger.debug("User %s voted for option %s in poll %s", voter_id, option_id, poll_id)
    return Ok(ballot)


def retract_vote(db: Session, poll: Poll, voter: User) -> Result[None]:
    """Withdraw ``voter``'s vote while the poll is still open."""
    if not membership.is_member(db, poll.community, voter.id):
        return fail(ErrorKind.FORBIDDEN, "Only community members can change their vote")

    if not poll.is_open():
        return fail(ErrorKind.POLL_CLOSED, "Poll is closed for voting")

    ballot = (
        db.query(PollVote)
        .filter(PollVote.poll_id == poll.id, PollVote.voter_id == voter.id)
        .first()
    )
    if ballot is None:
        return fail(ErrorKind.NOT_FOUND, "You have not voted in this poll")

    option_id = ballot.option_id
    db.delete(ballot)
    db.flush()
    reconcile_option_votes(db, option_id)
    db.commit()
    return Ok(None)


def poll_results(db: Session, poll: Poll, reader: User) -> Result[PollResults]:
    """Vote distribution; every percentage is 0 while nobody has voted."""
    if not membership.can_read(db, poll.community, reader):
        return fail(ErrorKind.FORBIDDEN, "Not authorized to view this poll")

    options = list(poll.options)
    total_votes = sum(option.votes_count for option in options)
    results = [
        OptionResult(
            option=option,
            percentage=(option.votes_count / total_votes) * 100 if total_votes > 0 else 0.0,
        )
        for option in options
    ]
    return Ok(PollResults(poll=poll, options=results, total_votes=total_votes))


def close_poll(db: Session, poll: Poll, acting_user: User) -> Result[Poll]:
    """Stop accepting votes (creator or moderator). Closing twice is a no-op."""
    if not _can_manage(poll, acting_user):
        return fail(ErrorKind.FORBIDDEN, "Not authorized to close this poll")

    if poll.is_active:
        poll.is_active = False
        db.commit()
        db.refresh(poll)
        logger.info("Poll %s closed by user %s", poll.id, acting_user.id)
    return Ok(poll)


def delete_poll(db: Session, poll: Poll, acting_user: User) -> Result[None]:
    """Delete a poll with its options and votes (creator or moderator)."""
    if not _can_manage(poll, acting_user):
        return fail(ErrorKind.FORBIDDEN, "Not authorized to delete this poll")

    poll_id = poll.id
    for stmt in (
        delete(PollVote).where(PollVote.poll_id == poll_id),
        delete(PollOption).where(PollOption.poll_id == poll_id),
        delete(Poll).where(Poll.id == poll_id),
    ):
        db.execute(stmt)
    db.commit()
    logger.info("Poll %s deleted by user %s", poll_id, acting_user.id)
    return Ok(None)
