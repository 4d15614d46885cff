"""Tests for the membership ledger."""

import pytest
from sqlalchemy import insert
from sqlalchemy.exc import IntegrityError

from food_connect.db.time import utcnow
from food_connect.models import CommunityMember
from food_connect.services import communities as community_service
from food_connect.services import membership
from food_connect.services.results import ErrorKind, Failure, Ok


def test_creator_is_first_member(db_session, community, member_user) -> None:
    assert community.member_ids == [member_user.id]
    assert community.member_count == 1
    assert membership.is_member(db_session, community, member_user.id)


def test_join_public_community(db_session, community, outsider_user) -> None:
    result = membership.join(db_session, community, outsider_user.id)

    assert isinstance(result, Ok)
    assert membership.is_member(db_session, community, outsider_user.id)
    assert set(community.member_ids) == {community.created_by_id, outsider_user.id}


def test_join_twice_is_rejected(db_session, community, outsider_user) -> None:
    assert isinstance(membership.join(db_session, community, outsider_user.id), Ok)

    result = membership.join(db_session, community, outsider_user.id)

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.ALREADY_MEMBER
    assert membership.count_members(db_session, community.id) == 2


def test_join_inactive_community_is_not_found(db_session, community, outsider_user) -> None:
    community.is_active = False
    db_session.commit()

    result = membership.join(db_session, community, outsider_user.id)

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.NOT_FOUND


def test_capacity_of_two(db_session, make_user, make_community) -> None:
    """Creator plus one joiner fill a community capped at two."""
    user_a = make_user("A")
    user_b = make_user("B")
    user_c = make_user("C")
    test_community = make_community(user_a, name="Test", max_members=2)
    assert test_community.member_count == 1

    assert isinstance(membership.join(db_session, test_community, user_b.id), Ok)
    assert test_community.member_count == 2

    result = membership.join(db_session, test_community, user_c.id)
    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.COMMUNITY_FULL
    assert test_community.member_count == 2

    # A freed seat can be taken again.
    assert isinstance(membership.leave(db_session, test_community, user_b.id), Ok)
    assert isinstance(membership.join(db_session, test_community, user_c.id), Ok)
    assert set(test_community.member_ids) == {user_a.id, user_c.id}


def test_conditional_insert_refuses_when_full(db_session, make_user, make_community) -> None:
    owner = make_user()
    guest = make_user()
    late = make_user()
    small = make_community(owner, max_members=2)
    assert isinstance(membership.join(db_session, small, guest.id), Ok)

    # Simulates losing the race for the last seat after the pre-check passed.
    assert membership._insert_member_if_room(db_session, small.id, late.id) is False
    db_session.rollback()
    assert membership.count_members(db_session, small.id) == 2


def test_member_set_rejects_duplicate_rows(db_session, community, member_user) -> None:
    with pytest.raises(IntegrityError):
        db_session.execute(
            insert(CommunityMember.__table__).values(
                community_id=community.id,
                user_id=member_user.id,
                joined_at=utcnow(),
            )
        )
    db_session.rollback()


def test_private_join_requires_password(db_session, private_community, outsider_user) -> None:
    result = membership.join(db_session, private_community, outsider_user.id)

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.PASSWORD_REQUIRED


def test_private_join_rejects_wrong_password(db_session, private_community, outsider_user) -> None:
    result = membership.join(db_session, private_community, outsider_user.id, "not-it")

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.INVALID_PASSWORD
    assert not membership.is_member(db_session, private_community, outsider_user.id)


def test_private_join_with_password(
    db_session, private_community, outsider_user, private_password
) -> None:
    result = membership.join(db_session, private_community, outsider_user.id, private_password)

    assert isinstance(result, Ok)
    assert membership.is_member(db_session, private_community, outsider_user.id)


def test_full_private_community_rejects_correct_password(
    db_session, make_user, make_community, private_password
) -> None:
    owner = make_user()
    guest = make_user()
    late = make_user()
    club = make_community(owner, is_private=True, password=private_password, max_members=2)
    assert isinstance(membership.join(db_session, club, guest.id, private_password), Ok)

    result = membership.join(db_session, club, late.id, private_password)

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.COMMUNITY_FULL


def test_join_by_invite_code(db_session, community, outsider_user) -> None:
    result = membership.join_by_invite(db_session, community.invite_code, outsider_user.id)

    assert isinstance(result, Ok)
    assert result.value.id == community.id
    assert membership.is_member(db_session, community, outsider_user.id)


def test_join_by_unknown_invite_code(db_session, outsider_user) -> None:
    result = membership.join_by_invite(db_session, "no-such-code", outsider_user.id)

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.NOT_FOUND


def test_join_by_invite_still_checks_private_password(
    db_session, private_community, outsider_user, private_password
) -> None:
    code = private_community.invite_code

    missing = membership.join_by_invite(db_session, code, outsider_user.id)
    wrong = membership.join_by_invite(db_session, code, outsider_user.id, "wrong")
    right = membership.join_by_invite(db_session, code, outsider_user.id, private_password)

    assert isinstance(missing, Failure) and missing.kind is ErrorKind.PASSWORD_REQUIRED
    assert isinstance(wrong, Failure) and wrong.kind is ErrorKind.INVALID_PASSWORD
    assert isinstance(right, Ok)


def test_leave_when_not_member(db_session, community, outsider_user) -> None:
    result = membership.leave(db_session, community, outsider_user.id)

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.NOT_MEMBER


def test_last_member_leaving_deactivates(db_session, community, member_user, outsider_user) -> None:
    result = membership.leave(db_session, community, member_user.id)

    assert isinstance(result, Ok)
    assert community.is_active is False
    assert community.member_count == 0

    page = community_service.discover_communities(db_session, outsider_user)
    assert community.id not in [item.id for item in page.items]

    rejoin = membership.join(db_session, community, member_user.id)
    assert isinstance(rejoin, Failure)
    assert rejoin.kind is ErrorKind.NOT_FOUND


def test_leave_keeps_community_active_while_members_remain(
    db_session, community, member_user, outsider_user
) -> None:
    assert isinstance(membership.join(db_session, community, outsider_user.id), Ok)

    assert isinstance(membership.leave(db_session, community, member_user.id), Ok)

    assert community.is_active is True
    assert community.member_ids == [outsider_user.id]


def test_can_read_for_members_and_moderators(
    db_session, community, member_user, outsider_user, admin_user
) -> None:
    assert membership.can_read(db_session, community, member_user)
    assert membership.can_read(db_session, community, admin_user)
    assert not membership.can_read(db_session, community, outsider_user)
