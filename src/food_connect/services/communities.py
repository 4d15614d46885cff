"""Community lifecycle: creation, settings, discovery and removal.

A community starts active and becomes inactive when its last member leaves
(see :func:`food_connect.services.membership.leave`). Inactive communities
are hidden from discovery and cannot be joined; only a moderator can delete
them for good.
"""

from __future__ import annotations

import logging
import math
import secrets
from dataclasses import dataclass

from sqlalchemy import delete, exists, func, literal, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from food_connect.core.security import hash_password, is_moderator
from food_connect.core.settings import settings
from food_connect.models import (
    Community,
    CommunityMember,
    CommunityMessage,
    Poll,
    PollOption,
    PollVote,
    User,
)
from food_connect.schemas.community import CommunityCreate, CommunitySettingsUpdate
from food_connect.services import membership
from food_connect.services.results import ErrorKind, Failure, Ok, Result, fail

logger = logging.getLogger(__name__)

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 200
PASSWORD_MIN_LENGTH = 4
MAX_MEMBERS_LOWER = 2
MAX_MEMBERS_UPPER = 200


@dataclass(frozen=True)
class CommunityView:
    """A community as seen by one user."""

    community: Community
    is_member: bool
    # Members, the creator and moderators see invite code and member list.
    full_access: bool


@dataclass(frozen=True)
class DiscoveryPage:
    items: list[Community]
    total: int
    page: int
    pages: int


def generate_invite_code() -> str:
    """Return a random URL-safe invite token."""
    return secrets.token_urlsafe(settings.invite_code_bytes)


def _validate_name(name: str) -> Failure | None:
    if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
        return fail(
            ErrorKind.VALIDATION_ERROR,
            f"Name must be between {NAME_MIN_LENGTH} and {NAME_MAX_LENGTH} characters",
        )
    return None


def _validate_description(description: str) -> Failure | None:
    if not DESCRIPTION_MIN_LENGTH <= len(description) <= DESCRIPTION_MAX_LENGTH:
        return fail(
            ErrorKind.VALIDATION_ERROR,
            f"Description must be between {DESCRIPTION_MIN_LENGTH} and "
            f"{DESCRIPTION_MAX_LENGTH} characters",
        )
    return None


def _validate_max_members(max_members: int) -> Failure | None:
    if not MAX_MEMBERS_LOWER <= max_members <= MAX_MEMBERS_UPPER:
        return fail(
            ErrorKind.VALIDATION_ERROR,
            f"Max members must be between {MAX_MEMBERS_LOWER} and {MAX_MEMBERS_UPPER}",
        )
    return None


def _weak_password() -> Failure:
    return fail(
        ErrorKind.WEAK_PASSWORD,
        f"Private communities require a password of at least {PASSWORD_MIN_LENGTH} characters",
    )


def _clean_tags(tags: list[str]) -> list[str]:
    cleaned: list[str] = []
    for tag in tags:
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


def create_community(db: Session, creator: User, data: CommunityCreate) -> Result[Community]:
    """Create a community with the creator as its first member."""
    name = data.name.strip()
    description = data.description.strip()
    max_members = (
        data.max_members
        if data.max_members is not None
        else settings.community_default_max_members
    )

    for failure in (
        _validate_name(name),
        _validate_description(description),
        _validate_max_members(max_members),
    ):
        if failure is not None:
            return failure

    if data.is_private and (not data.password or len(data.password) < PASSWORD_MIN_LENGTH):
        return _weak_password()

    password_hash = hash_password(data.password) if data.is_private and data.password else None
    tags = _clean_tags(data.tags)

    attempts = max(1, settings.invite_code_max_attempts)
    for attempt in range(1, attempts + 1):
        community = Community(
            name=name,
            description=description,
            created_by_id=creator.id,
            is_private=data.is_private,
            password_hash=password_hash,
            invite_code=generate_invite_code(),
            is_active=True,
            tags=tags,
            max_members=max_members,
        )
        community.member_links.append(CommunityMember(user_id=creator.id))
        try:
            with db.begin_nested():
                db.add(community)
        except IntegrityError:
            # invite_code is the only unique column a fresh community can hit.
            if attempt == attempts:
                raise
            logger.info("Invite code collision on attempt %d, regenerating", attempt)
            continue
        break

    db.commit()
    db.refresh(community)
    logger.info("User %s created community %s", creator.id, community.id)
    return Ok(community)


def update_settings(
    db: Session,
    community: Community,
    acting_user: User,
    changes: CommunitySettingsUpdate,
) -> Result[Community]:
    """Apply a partial settings update (creator or moderator only).

    Every change is validated before anything is written. Switching to
    private keeps an existing password hash when no new password is given;
    switching to public clears it.
    """
    if community.created_by_id != acting_user.id and not is_moderator(acting_user):
        return fail(
            ErrorKind.FORBIDDEN,
            "Only community creator or admin can update settings",
        )
    if not community.is_active:
        return fail(ErrorKind.NOT_FOUND, "Community not found")

    update_data = changes.model_dump(exclude_unset=True)

    name = update_data.get("name")
    if name is not None:
        name = name.strip()
        if (failure := _validate_name(name)) is not None:
            return failure

    description = update_data.get("description")
    if description is not None:
        description = description.strip()
        if (failure := _validate_description(description)) is not None:
            return failure

    max_members = update_data.get("max_members")
    if max_members is not None and (failure := _validate_max_members(max_members)) is not None:
        return failure

    is_private = update_data.get("is_private")
    target_private = community.is_private if is_private is None else is_private
    password = update_data.get("password")
    password_hash = community.password_hash

    if target_private:
        if password is not None:
            if len(password) < PASSWORD_MIN_LENGTH:
                return _weak_password()
            password_hash = hash_password(password)
        elif password_hash is None:
            return _weak_password()
    else:
        if password is not None:
            return fail(
                ErrorKind.VALIDATION_ERROR,
                "A password can only be set on a private community",
            )
        password_hash = None

    if max_members is not None:
        # Conditional so a concurrent join cannot leave the community over capacity.
        current = (
            select(func.count())
            .select_from(CommunityMember)
            .where(CommunityMember.community_id == community.id)
            .scalar_subquery()
        )
        resized = db.execute(
            update(Community)
            .where(Community.id == community.id, current <= max_members)
            .values(max_members=max_members)
            .execution_options(synchronize_session=False)
        )
        if not resized.rowcount:
            db.rollback()
            return fail(
                ErrorKind.VALIDATION_ERROR,
                "Max members cannot be lower than the current member count",
            )

    if name is not None:
        community.name = name
    if description is not None:
        community.description = description
    if update_data.get("tags") is not None:
        community.tags = _clean_tags(update_data["tags"])
    community.is_private = target_private
    community.password_hash = password_hash

    db.commit()
    db.refresh(community)
    logger.info("User %s updated settings of community %s", acting_user.id, community.id)
    return Ok(community)


def get_community_view(db: Session, community: Community, user: User) -> Result[CommunityView]:
    """Return what ``user`` may see of an active community."""
    if not community.is_active:
        return fail(ErrorKind.NOT_FOUND, "Community not found")

    member = membership.is_member(db, community, user.id)
    full_access = member or is_moderator(user) or community.created_by_id == user.id
    return Ok(CommunityView(community=community, is_member=member, full_access=full_access))


def list_my_communities(db: Session, user: User) -> list[Community]:
    """Active communities the user belongs to, newest first."""
    return (
        db.query(Community)
        .join(CommunityMember, CommunityMember.community_id == Community.id)
        .filter(CommunityMember.user_id == user.id, Community.is_active.is_(True))
        .order_by(Community.created_at.desc(), Community.id.desc())
        .all()
    )


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _tag_elements(db: Session):
    """Table-valued expansion of ``Community.tags`` into one row per tag."""
    if db.get_bind().dialect.name == "postgresql":
        return func.json_array_elements_text(Community.tags).table_valued("value")
    return func.json_each(Community.tags).table_valued("value")


def _any_tag_matches(db: Session, pattern: str):
    tags = _tag_elements(db)
    return (
        select(literal(1))
        .select_from(tags)
        .where(tags.c.value.ilike(pattern, escape="\\"))
        .correlate(Community)
        .exists()
    )


def discover_communities(
    db: Session,
    user: User,
    search: str | None = None,
    page: int = 1,
    limit: int | None = None,
) -> DiscoveryPage:
    """Active public communities the user has not joined.

    Ordered by member count, then newest first.
    """
    page = max(1, page)
    limit = max(1, limit or settings.discovery_page_size)

    query = db.query(Community).filter(
        Community.is_active.is_(True),
        Community.is_private.is_(False),
        ~exists().where(
            CommunityMember.community_id == Community.id,
            CommunityMember.user_id == user.id,
        ),
    )

    if search:
        # On SQLite, ilike relies on the Unicode lower() from configure_sqlite.
        pattern = f"%{_escape_like(search.strip())}%"
        query = query.filter(
            or_(
                Community.name.ilike(pattern, escape="\\"),
                Community.description.ilike(pattern, escape="\\"),
                _any_tag_matches(db, pattern),
            )
        )

    total = query.count()
    member_total = (
        select(func.count())
        .where(CommunityMember.community_id == Community.id)
        .correlate(Community)
        .scalar_subquery()
    )
    items = (
        query.order_by(member_total.desc(), Community.created_at.desc(), Community.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return DiscoveryPage(items=items, total=total, page=page, pages=math.ceil(total / limit))


def delete_community(db: Session, community: Community, acting_user: User) -> Result[None]:
    """Remove a community and everything it owns (moderators only)."""
    if not is_moderator(acting_user):
        return fail(ErrorKind.FORBIDDEN, "Admin role required to delete a community")

    community_id = community.id
    poll_ids = select(Poll.id).where(Poll.community_id == community_id)
    for stmt in (
        delete(PollVote).where(PollVote.poll_id.in_(poll_ids)),
        delete(PollOption).where(PollOption.poll_id.in_(poll_ids)),
        delete(Poll).where(Poll.community_id == community_id),
        delete(CommunityMessage).where(CommunityMessage.community_id == community_id),
        delete(CommunityMember).where(CommunityMember.community_id == community_id),
        delete(Community).where(Community.id == community_id),
    ):
        db.execute(stmt)
    db.commit()
    logger.info("Admin %s deleted community %s", acting_user.id, community_id)
    return Ok(None)
