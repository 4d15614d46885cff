"""Poll-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .user import UserSummary


class PollCreate(BaseModel):
    """Schema for creating a poll in a community."""

    question: str
    options: list[str] = Field(..., description="Between 2 and 6 answer choices")
    closes_at: datetime | None = Field(None, description="Voting stops after this instant")


class VoteRequest(BaseModel):
    """Schema for casting a vote."""

    option_id: int


class PollOptionResponse(BaseModel):
    id: int
    text: str
    votes_count: int

    model_config = ConfigDict(from_attributes=True)


class PollResponse(BaseModel):
    """Poll with its options and the caller's vote."""

    id: int
    community_id: int
    question: str
    creator: UserSummary
    is_active: bool
    is_open: bool
    closes_at: datetime | None
    created_at: datetime
    options: list[PollOptionResponse]
    has_voted: bool = False
    user_vote_option_id: int | None = None


class PollResultOption(BaseModel):
    id: int
    text: str
    votes_count: int
    percentage: float


class PollResultsResponse(BaseModel):
    """Vote distribution of a poll."""

    poll: PollResponse
    results: list[PollResultOption]
    total_votes: int
