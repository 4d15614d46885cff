"""Poll endpoints for the Food Connect API."""

from __future__ import annotations

from fastapi import APIRouter, Response, status

from food_connect.models import Poll
from food_connect.schemas.poll import (
    PollCreate,
    PollOptionResponse,
    PollResponse,
    PollResultOption,
    PollResultsResponse,
    VoteRequest,
)
from food_connect.schemas.user import UserSummary
from food_connect.services import polls as poll_service

from ..dependencies import CurrentUserDep, SessionDep, unwrap
from .communities import get_community_or_404

router = APIRouter(tags=["polls"])


def _serialize_poll(poll: Poll, user_vote_option_id: int | None = None) -> PollResponse:
    return PollResponse(
        id=poll.id,
        community_id=poll.community_id,
        question=poll.question,
        creator=UserSummary.model_validate(poll.creator),
        is_active=poll.is_active,
        is_open=poll.is_open(),
        closes_at=poll.closes_at,
        created_at=poll.created_at,
        options=[PollOptionResponse.model_validate(option) for option in poll.options],
        has_voted=user_vote_option_id is not None,
        user_vote_option_id=user_vote_option_id,
    )


@router.get("/communities/{community_id}/polls", response_model=list[PollResponse])
async def get_community_polls(
    community_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> list[PollResponse]:
    """List a community's polls with the caller's votes."""
    community = get_community_or_404(db, community_id)
    views = unwrap(poll_service.list_polls(db, community, current_user))
    return [_serialize_poll(view.poll, view.user_vote_option_id) for view in views]


@router.post(
    "/communities/{community_id}/polls",
    response_model=PollResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_poll(
    community_id: int,
    poll_data: PollCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PollResponse:
    """Create a poll in a community the caller belongs to."""
    community = get_community_or_404(db, community_id)
    poll = unwrap(poll_service.create_poll(db, community, current_user, poll_data))
    return _serialize_poll(poll)


@router.post("/polls/{poll_id}/vote", status_code=status.HTTP_201_CREATED)
async def vote_in_poll(
    poll_id: int,
    vote_data: VoteRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> dict[str, str | int]:
    """Cast the caller's single vote in a poll."""
    poll = unwrap(poll_service.get_poll(db, poll_id))
    ballot = unwrap(poll_service.vote(db, poll, current_user, vote_data.option_id))
    return {"status": "voted", "option_id": ballot.option_id}


@router.delete(
    "/polls/{poll_id}/vote",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def retract_vote(
    poll_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Response:
    """Withdraw the caller's vote from an open poll."""
    poll = unwrap(poll_service.get_poll(db, poll_id))
    unwrap(poll_service.retract_vote(db, poll, current_user))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/polls/{poll_id}/results", response_model=PollResultsResponse)
async def get_poll_results(
    poll_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PollResultsResponse:
    """Get the vote distribution of a poll."""
    poll = unwrap(poll_service.get_poll(db, poll_id))
    results = unwrap(poll_service.poll_results(db, poll, current_user))
    return PollResultsResponse(
        poll=_serialize_poll(results.poll),
        results=[
            PollResultOption(
                id=entry.option.id,
                text=entry.option.text,
                votes_count=entry.option.votes_count,
                percentage=entry.percentage,
            )
            for entry in results.options
        ],
        total_votes=results.total_votes,
    )


@router.post("/polls/{poll_id}/close", response_model=PollResponse)
async def close_poll(
    poll_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> PollResponse:
    """Close a poll for voting (creator or admin)."""
    poll = unwrap(poll_service.get_poll(db, poll_id))
    closed = unwrap(poll_service.close_poll(db, poll, current_user))
    return _serialize_poll(closed)


@router.delete(
    "/polls/{poll_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_poll(
    poll_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Response:
    """Delete a poll with its options and votes (creator or admin)."""
    poll = unwrap(poll_service.get_poll(db, poll_id))
    unwrap(poll_service.delete_poll(db, poll, current_user))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
