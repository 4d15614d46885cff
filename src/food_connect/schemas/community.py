"""Community-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .user import UserSummary


class CommunityCreate(BaseModel):
    """Schema for creating a new community."""

    name: str
    description: str
    is_private: bool = False
    password: str | None = Field(None, description="Required for private communities")
    tags: list[str] = Field(default_factory=list)
    max_members: int | None = Field(None, description="Defaults to the configured capacity")


class CommunitySettingsUpdate(BaseModel):
    """Partial update of community settings; unset fields are left alone."""

    name: str | None = None
    description: str | None = None
    is_private: bool | None = None
    password: str | None = None
    tags: list[str] | None = None
    max_members: int | None = None


class JoinRequest(BaseModel):
    """Optional body for joining a community."""

    password: str | None = None


class CommunitySummary(BaseModel):
    """Limited view of a community shown to non-members."""

    id: int
    name: str
    description: str
    is_private: bool
    requires_password: bool
    member_count: int
    creator: UserSummary
    tags: list[str]
    max_members: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CommunityResponse(CommunitySummary):
    """Full community view for members, the creator and moderators."""

    invite_code: str
    is_active: bool
    members: list[UserSummary]
    updated_at: datetime


class CommunityDetailResponse(BaseModel):
    """Community lookup result together with the caller's relation to it."""

    community: CommunityResponse | CommunitySummary
    is_member: bool
    can_join: bool


class CommunityPage(BaseModel):
    """One page of discoverable communities."""

    items: list[CommunitySummary]
    total: int
    page: int
    pages: int
