"""Recount denormalized poll tallies from the vote rows.

Counts are always rebuilt from ``poll_vote`` instead of being nudged up or
down, so running a reconcile again is harmless and repairs any drift.
"""

from __future__ import annotations

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from food_connect.models import PollOption, PollVote


def reconcile_option_votes(db: Session, option_id: int) -> int:
    """Set one option's ``votes_count`` to its live vote count and return it."""
    votes = (
        db.query(func.count(PollVote.id)).filter(PollVote.option_id == option_id).scalar() or 0
    )
    db.execute(
        update(PollOption)
        .where(PollOption.id == option_id)
        .values(votes_count=votes)
        .execution_options(synchronize_session=False)
    )
    return votes


def reconcile_poll_votes(db: Session, poll_id: int) -> dict[int, int]:
    """Recount every option of a poll; returns ``{option_id: votes}``."""
    live = (
        select(func.count(PollVote.id))
        .where(PollVote.option_id == PollOption.id)
        .correlate(PollOption)
        .scalar_subquery()
    )
    db.execute(
        update(PollOption)
        .where(PollOption.poll_id == poll_id)
        .values(votes_count=live)
        .execution_options(synchronize_session=False)
    )
    rows = (
        db.query(PollOption.id, PollOption.votes_count)
        .filter(PollOption.poll_id == poll_id)
        .all()
    )
    return {option_id: votes for option_id, votes in rows}
