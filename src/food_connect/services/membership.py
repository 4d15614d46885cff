"""Membership ledger: who belongs to which community.

Adding and removing members is done with single conditional statements
against ``community_member`` rather than by rewriting a member list, so
concurrent joins and leaves cannot lose each other's updates.
"""

from __future__ import annotations

import logging

from sqlalchemy import DateTime, delete, exists, func, insert, literal, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from food_connect.core.security import is_moderator, verify_password
from food_connect.db.time import utcnow
from food_connect.models import Community, CommunityMember, User
from food_connect.services.results import ErrorKind, Failure, Ok, Result, fail

logger = logging.getLogger(__name__)


def is_member(db: Session, community: Community, user_id: int) -> bool:
    """Return True iff ``user_id`` is in the community's member set."""
    found = db.query(
        exists().where(
            CommunityMember.community_id == community.id,
            CommunityMember.user_id == user_id,
        )
    ).scalar()
    return bool(found)


def can_read(db: Session, community: Community, user: User) -> bool:
    """Members and moderators may read a community's channel and polls."""
    return is_moderator(user) or is_member(db, community, user.id)


def count_members(db: Session, community_id: int) -> int:
    return (
        db.query(func.count())
        .select_from(CommunityMember)
        .filter(CommunityMember.community_id == community_id)
        .scalar()
        or 0
    )


def _check_password(community: Community, supplied: str | None) -> Failure | None:
    if not community.is_private:
        return None
    if not supplied:
        return fail(
            ErrorKind.PASSWORD_REQUIRED,
            "Password is required to join this private community",
        )
    if community.password_hash is None or not verify_password(supplied, community.password_hash):
        return fail(ErrorKind.INVALID_PASSWORD, "Invalid password for this private community")
    return None


def _insert_member_if_room(db: Session, community_id: int, user_id: int) -> bool:
    """Add the member only while the community is active and below capacity.

    Returns False when the conditional insert matched no row.

    Raises:
        IntegrityError: If the user is already in the member set.
    """
    current = (
        select(func.count())
        .select_from(CommunityMember)
        .where(CommunityMember.community_id == community_id)
        .scalar_subquery()
    )
    candidate = select(
        Community.id,
        literal(user_id),
        literal(utcnow(), DateTime(timezone=True)),
    ).where(
        Community.id == community_id,
        Community.is_active.is_(True),
        current < Community.max_members,
    )
    stmt = insert(CommunityMember.__table__).from_select(
        ["community_id", "user_id", "joined_at"],
        candidate,
    )
    with db.begin_nested():
        result = db.execute(stmt)
    return bool(result.rowcount)


def join(
    db: Session,
    community: Community,
    user_id: int,
    password: str | None = None,
) -> Result[Community]:
    """Add ``user_id`` to the community.

    Checks run in a fixed order: already a member, capacity, then password.
    A full private community therefore rejects for capacity even when the
    password is right.
    """
    if not community.is_active:
        return fail(ErrorKind.NOT_FOUND, "Community not found")

    if is_member(db, community, user_id):
        return fail(ErrorKind.ALREADY_MEMBER, "You are already a member of this community")

    if count_members(db, community.id) >= community.max_members:
        logger.debug("Join to community %s by user %s rejected: full", community.id, user_id)
        return fail(ErrorKind.COMMUNITY_FULL, "Community has reached maximum member limit")

    password_failure = _check_password(community, password)
    if password_failure is not None:
        logger.debug(
            "Join to community %s by user %s rejected: %s",
            community.id,
            user_id,
            password_failure.kind.value,
        )
        return password_failure

    try:
        inserted = _insert_member_if_room(db, community.id, user_id)
    except IntegrityError:
        db.rollback()
        return fail(ErrorKind.ALREADY_MEMBER, "You are already a member of this community")

    if not inserted:
        # Lost a race for the last seat.
        db.rollback()
        return fail(ErrorKind.COMMUNITY_FULL, "Community has reached maximum member limit")

    db.commit()
    db.refresh(community)
    logger.info("User %s joined community %s", user_id, community.id)
    return Ok(community)


def join_by_invite(
    db: Session,
    invite_code: str,
    user_id: int,
    password: str | None = None,
) -> Result[Community]:
    """Join the active community that owns ``invite_code``.

    The invite code only replaces discovery; private communities still
    require their password, and a missing one is reported as
    ``PasswordRequired`` so the client can prompt for it.
    """
    community = (
        db.query(Community)
        .filter(Community.invite_code == invite_code, Community.is_active.is_(True))
        .first()
    )
    if community is None:
        return fail(ErrorKind.NOT_FOUND, "Invalid invite code or community not found")
    return join(db, community, user_id, password)


def leave(db: Session, community: Community, user_id: int) -> Result[Community]:
    """Remove ``user_id``; the community goes inactive when nobody is left."""
    removed = db.execute(
        delete(CommunityMember)
        .where(
            CommunityMember.community_id == community.id,
            CommunityMember.user_id == user_id,
        )
        .execution_options(synchronize_session=False)
    )
    if not removed.rowcount:
        db.rollback()
        return fail(ErrorKind.NOT_MEMBER, "You are not a member of this community")

    deactivated = db.execute(
        update(Community)
        .where(
            Community.id == community.id,
            Community.is_active.is_(True),
            ~exists().where(CommunityMember.community_id == community.id),
        )
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.refresh(community)

    logger.info("User %s left community %s", user_id, community.id)
    if deactivated.rowcount:
        logger.info("Community %s has no members left and is now inactive", community.id)
    return Ok(community)
