"""Tests for the community lifecycle service."""

from unittest.mock import patch

from food_connect.core.security import verify_password
from food_connect.models import Community, CommunityMessage, Poll, PollOption, PollVote
from food_connect.schemas.community import CommunityCreate, CommunitySettingsUpdate
from food_connect.schemas.message import MessageCreate
from food_connect.schemas.poll import PollCreate
from food_connect.services import communities as community_service
from food_connect.services import membership, messaging, polls
from food_connect.services.results import ErrorKind, Failure, Ok


def _create(db_session, creator, **fields):
    data = {"name": "Dumpling Night", "description": "Folding dumplings every Friday"}
    data.update(fields)
    return community_service.create_community(db_session, creator, CommunityCreate(**data))


def test_create_public_community(db_session, member_user) -> None:
    result = _create(db_session, member_user, tags=[" dumplings ", "friday", "friday", ""])

    assert isinstance(result, Ok)
    created = result.value
    assert created.is_active is True
    assert created.is_private is False
    assert created.password_hash is None
    assert created.max_members == 50
    assert created.tags == ["dumplings", "friday"]
    assert created.invite_code
    assert created.member_ids == [member_user.id]


def test_create_private_community_with_four_char_password(db_session, member_user) -> None:
    result = _create(db_session, member_user, is_private=True, password="abcd")

    assert isinstance(result, Ok)
    assert result.value.password_hash is not None
    assert result.value.password_hash != "abcd"
    assert verify_password("abcd", result.value.password_hash)


def test_create_private_community_with_short_password(db_session, member_user) -> None:
    result = _create(db_session, member_user, is_private=True, password="abc")

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.WEAK_PASSWORD
    assert db_session.query(Community).count() == 0


def test_create_private_community_without_password(db_session, member_user) -> None:
    result = _create(db_session, member_user, is_private=True)

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.WEAK_PASSWORD


def test_create_public_community_ignores_password(db_session, member_user) -> None:
    result = _create(db_session, member_user, password="abcd")

    assert isinstance(result, Ok)
    assert result.value.password_hash is None


def test_create_validates_bounds(db_session, member_user) -> None:
    for fields in (
        {"name": "x"},
        {"name": "n" * 51},
        {"description": "too short"},
        {"description": "d" * 201},
        {"max_members": 1},
        {"max_members": 201},
    ):
        result = _create(db_session, member_user, **fields)
        assert isinstance(result, Failure), fields
        assert result.kind is ErrorKind.VALIDATION_ERROR


def test_invite_codes_are_unique(db_session, member_user) -> None:
    first = _create(db_session, member_user)
    second = _create(db_session, member_user)

    assert first.value.invite_code != second.value.invite_code


def test_create_retries_on_invite_code_collision(db_session, member_user) -> None:
    taken = _create(db_session, member_user).value.invite_code

    with patch.object(
        community_service,
        "generate_invite_code",
        side_effect=[taken, "fresh-invite-code"],
    ):
        result = _create(db_session, member_user, name="Second Batch")

    assert isinstance(result, Ok)
    assert result.value.invite_code == "fresh-invite-code"
    assert db_session.query(Community).count() == 2


def test_update_settings_requires_creator(db_session, community, outsider_user) -> None:
    result = community_service.update_settings(
        db_session, community, outsider_user, CommunitySettingsUpdate(name="Hijacked")
    )

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.FORBIDDEN


def test_admin_can_update_settings(db_session, community, admin_user) -> None:
    result = community_service.update_settings(
        db_session, community, admin_user, CommunitySettingsUpdate(name="Renamed Cooks")
    )

    assert isinstance(result, Ok)
    assert community.name == "Renamed Cooks"


def test_update_settings_partial(db_session, community, member_user) -> None:
    original_description = community.description

    result = community_service.update_settings(
        db_session,
        community,
        member_user,
        CommunitySettingsUpdate(tags=["late-night"], max_members=10),
    )

    assert isinstance(result, Ok)
    assert community.tags == ["late-night"]
    assert community.max_members == 10
    assert community.description == original_description


def test_switch_to_private_needs_password(db_session, community, member_user) -> None:
    missing = community_service.update_settings(
        db_session, community, member_user, CommunitySettingsUpdate(is_private=True)
    )
    weak = community_service.update_settings(
        db_session,
        community,
        member_user,
        CommunitySettingsUpdate(is_private=True, password="abc"),
    )
    ok = community_service.update_settings(
        db_session,
        community,
        member_user,
        CommunitySettingsUpdate(is_private=True, password="abcd"),
    )

    assert isinstance(missing, Failure) and missing.kind is ErrorKind.WEAK_PASSWORD
    assert isinstance(weak, Failure) and weak.kind is ErrorKind.WEAK_PASSWORD
    assert isinstance(ok, Ok)
    assert community.is_private is True
    assert verify_password("abcd", community.password_hash)


def test_switch_to_public_clears_password(db_session, private_community, member_user) -> None:
    result = community_service.update_settings(
        db_session, private_community, member_user, CommunitySettingsUpdate(is_private=False)
    )

    assert isinstance(result, Ok)
    assert private_community.is_private is False
    assert private_community.password_hash is None


def test_password_on_public_community_is_rejected(db_session, community, member_user) -> None:
    result = community_service.update_settings(
        db_session, community, member_user, CommunitySettingsUpdate(password="abcd")
    )

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.VALIDATION_ERROR
    assert community.password_hash is None


def test_change_private_password(
    db_session, private_community, member_user, outsider_user, private_password
) -> None:
    result = community_service.update_settings(
        db_session, private_community, member_user, CommunitySettingsUpdate(password="new-pass")
    )

    assert isinstance(result, Ok)
    old = membership.join(db_session, private_community, outsider_user.id, private_password)
    assert isinstance(old, Failure) and old.kind is ErrorKind.INVALID_PASSWORD
    assert isinstance(membership.join(db_session, private_community, outsider_user.id, "new-pass"), Ok)


def test_capacity_cannot_drop_below_member_count(
    db_session, community, member_user, make_user
) -> None:
    for _ in range(2):
        assert isinstance(membership.join(db_session, community, make_user().id), Ok)

    result = community_service.update_settings(
        db_session, community, member_user, CommunitySettingsUpdate(max_members=2)
    )

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.VALIDATION_ERROR
    assert community.max_members == 50


def test_update_inactive_community_is_not_found(db_session, community, member_user) -> None:
    assert isinstance(membership.leave(db_session, community, member_user.id), Ok)

    result = community_service.update_settings(
        db_session, community, member_user, CommunitySettingsUpdate(name="Back Again")
    )

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.NOT_FOUND


def test_community_view_for_member_and_outsider(
    db_session, community, member_user, outsider_user, admin_user
) -> None:
    member_view = community_service.get_community_view(db_session, community, member_user).value
    outsider_view = community_service.get_community_view(db_session, community, outsider_user).value
    admin_view = community_service.get_community_view(db_session, community, admin_user).value

    assert member_view.is_member and member_view.full_access
    assert not outsider_view.is_member and not outsider_view.full_access
    assert not admin_view.is_member and admin_view.full_access


def test_list_my_communities(db_session, member_user, outsider_user, make_community) -> None:
    older = make_community(member_user, name="Older Club")
    newer = make_community(member_user, name="Newer Club")
    make_community(outsider_user, name="Someone Else")

    mine = community_service.list_my_communities(db_session, member_user)

    assert [c.id for c in mine] == [newer.id, older.id]


def test_list_my_communities_skips_inactive(db_session, community, member_user) -> None:
    membership.leave(db_session, community, member_user.id)

    assert community_service.list_my_communities(db_session, member_user) == []


def test_discover_excludes_private_joined_and_inactive(
    db_session, member_user, outsider_user, make_user, make_community, private_password
) -> None:
    visible = make_community(member_user, name="Open Kitchen")
    make_community(member_user, name="Hidden Club", is_private=True, password=private_password)
    joined = make_community(member_user, name="Joined Already")
    membership.join(db_session, joined, outsider_user.id)
    loner = make_user()
    gone = make_community(loner, name="Ghost Town")
    membership.leave(db_session, gone, loner.id)

    page = community_service.discover_communities(db_session, outsider_user)

    assert [c.id for c in page.items] == [visible.id]
    assert page.total == 1
    assert page.pages == 1


def test_discover_orders_by_member_count(
    db_session, member_user, outsider_user, make_user, make_community
) -> None:
    quiet = make_community(member_user, name="Quiet Corner")
    busy = make_community(member_user, name="Busy Hall")
    membership.join(db_session, busy, make_user().id)

    page = community_service.discover_communities(db_session, outsider_user)

    assert [c.id for c in page.items] == [busy.id, quiet.id]


def test_discover_search_matches_name_description_and_tags(
    db_session, member_user, outsider_user, make_community
) -> None:
    by_name = make_community(member_user, name="Taco Tuesday")
    by_description = make_community(
        member_user, name="Weekly Meetup", description="We rate every taco truck in town"
    )
    by_tag = make_community(member_user, name="Street Eats", tags=["TACOS"])
    make_community(member_user, name="Soup Club", description="Soups of the world, weekly")

    page = community_service.discover_communities(db_session, outsider_user, search="taco")

    assert {c.id for c in page.items} == {by_name.id, by_description.id, by_tag.id}


def test_discover_search_matches_non_ascii_tags(
    db_session, member_user, outsider_user, make_community
) -> None:
    cafe = make_community(member_user, name="Study Break", tags=["café"])

    exact = community_service.discover_communities(db_session, outsider_user, search="café")
    shouted = community_service.discover_communities(db_session, outsider_user, search="CAFÉ")

    assert [c.id for c in exact.items] == [cafe.id]
    assert [c.id for c in shouted.items] == [cafe.id]


def test_discover_search_matches_within_a_single_tag(
    db_session, member_user, outsider_user, make_community
) -> None:
    make_community(member_user, name="Street Eats", tags=["pizza", "pasta"])

    across_tags = community_service.discover_communities(
        db_session, outsider_user, search='", "'
    )
    bracket = community_service.discover_communities(db_session, outsider_user, search="[")

    assert across_tags.items == []
    assert bracket.items == []


def test_discover_search_escapes_wildcards(
    db_session, member_user, outsider_user, make_community
) -> None:
    make_community(member_user, name="Pasta Lovers")

    page = community_service.discover_communities(db_session, outsider_user, search="%")

    assert page.items == []
    assert page.total == 0


def test_discover_paginates(db_session, member_user, outsider_user, make_community) -> None:
    for index in range(5):
        make_community(member_user, name=f"Club {index}")

    first = community_service.discover_communities(db_session, outsider_user, page=1, limit=2)
    last = community_service.discover_communities(db_session, outsider_user, page=3, limit=2)

    assert first.total == 5
    assert first.pages == 3
    assert len(first.items) == 2
    assert len(last.items) == 1


def test_delete_community_requires_admin(db_session, community, member_user) -> None:
    result = community_service.delete_community(db_session, community, member_user)

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.FORBIDDEN


def test_admin_deletes_community_and_contents(
    db_session, community, member_user, admin_user
) -> None:
    messaging.post_message(db_session, community, member_user, MessageCreate(text="Hello"))
    poll = polls.create_poll(
        db_session,
        community,
        member_user,
        PollCreate(question="Pizza or sushi?", options=["Pizza", "Sushi"]),
    ).value
    polls.vote(db_session, poll, member_user, poll.options[0].id)
    community_id = community.id

    result = community_service.delete_community(db_session, community, admin_user)

    assert isinstance(result, Ok)
    assert db_session.get(Community, community_id) is None
    for model in (CommunityMessage, Poll, PollOption, PollVote):
        assert db_session.query(model).count() == 0
