"""Community-related endpoints for the Food Connect API."""

from __future__ import annotations

from fastapi import APIRouter, Body, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from food_connect.models import Community
from food_connect.schemas.community import (
    CommunityCreate,
    CommunityDetailResponse,
    CommunityPage,
    CommunityResponse,
    CommunitySettingsUpdate,
    CommunitySummary,
    JoinRequest,
)
from food_connect.services import communities as community_service
from food_connect.services import membership

from ..dependencies import CurrentUserDep, SessionDep, unwrap

router = APIRouter(prefix="/communities", tags=["communities"])


def get_community_or_404(db: Session, community_id: int) -> Community:
    community = db.get(Community, community_id)
    if community is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "NotFound", "message": "Community not found"},
        )
    return community


@router.get("/my", response_model=list[CommunityResponse])
async def list_my_communities(
    current_user: CurrentUserDep,
    db: SessionDep,
) -> list[CommunityResponse]:
    """List active communities the caller belongs to."""
    communities = community_service.list_my_communities(db, current_user)
    return [CommunityResponse.model_validate(community) for community in communities]


@router.get("/public", response_model=CommunityPage)
async def discover_communities(
    current_user: CurrentUserDep,
    db: SessionDep,
    search: str | None = Query(None, description="Match name, description or tags"),
    page: int = Query(1, ge=1),
    limit: int | None = Query(None, ge=1, le=100),
) -> CommunityPage:
    """Discover public communities the caller has not joined yet."""
    found = community_service.discover_communities(
        db,
        current_user,
        search=search,
        page=page,
        limit=limit,
    )
    return CommunityPage(
        items=[CommunitySummary.model_validate(community) for community in found.items],
        total=found.total,
        page=found.page,
        pages=found.pages,
    )


@router.post("/", response_model=CommunityResponse, status_code=status.HTTP_201_CREATED)
async def create_community(
    community_data: CommunityCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> CommunityResponse:
    """Create a public or private community."""
    community = unwrap(community_service.create_community(db, current_user, community_data))
    return CommunityResponse.model_validate(community)


@router.post("/invite/{invite_code}", response_model=CommunityResponse)
async def join_by_invite(
    invite_code: str,
    current_user: CurrentUserDep,
    db: SessionDep,
    join_data: JoinRequest | None = Body(None),
) -> CommunityResponse:
    """Join a community through its invite code."""
    password = join_data.password if join_data else None
    community = unwrap(membership.join_by_invite(db, invite_code, current_user.id, password))
    return CommunityResponse.model_validate(community)


@router.get("/{community_id}", response_model=CommunityDetailResponse)
async def get_community(
    community_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> CommunityDetailResponse:
    """Get a community; non-members receive a limited view."""
    community = get_community_or_404(db, community_id)
    view = unwrap(community_service.get_community_view(db, community, current_user))
    body: CommunityResponse | CommunitySummary
    if view.full_access:
        body = CommunityResponse.model_validate(community)
    else:
        body = CommunitySummary.model_validate(community)
    return CommunityDetailResponse(
        community=body,
        is_member=view.is_member,
        can_join=not view.is_member,
    )


@router.post("/{community_id}/join", response_model=CommunityResponse)
async def join_community(
    community_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
    join_data: JoinRequest | None = Body(None),
) -> CommunityResponse:
    """Join a community, supplying the password if it is private."""
    community = get_community_or_404(db, community_id)
    password = join_data.password if join_data else None
    joined = unwrap(membership.join(db, community, current_user.id, password))
    return CommunityResponse.model_validate(joined)


@router.post(
    "/{community_id}/leave",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def leave_community(
    community_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Response:
    """Leave a community."""
    community = get_community_or_404(db, community_id)
    unwrap(membership.leave(db, community, current_user.id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{community_id}/settings", response_model=CommunityResponse)
async def update_community_settings(
    community_id: int,
    changes: CommunitySettingsUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> CommunityResponse:
    """Update community settings (creator or admin only)."""
    community = get_community_or_404(db, community_id)
    updated = unwrap(community_service.update_settings(db, community, current_user, changes))
    return CommunityResponse.model_validate(updated)


@router.delete(
    "/{community_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_community(
    community_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Response:
    """Delete a community and all of its messages and polls (admin only)."""
    community = get_community_or_404(db, community_id)
    unwrap(community_service.delete_community(db, community, current_user))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
