# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-do-not-use-in-production")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from food_connect.core.security import ROLE_ADMIN, create_access_token
from food_connect.db.session import Base, configure_sqlite
from food_connect.db.session import get_db as app_get_session
from food_connect.main import app as fastapi_app
from food_connect.models import Community, Place, User
from food_connect.schemas.community import CommunityCreate
from food_connect.services import communities as community_service
from food_connect.services.results import Ok

TEST_DB_URL = "sqlite://"
PRIVATE_PASSWORD = "secret-pass"

_USER_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    configure_sqlite(engine)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()

        # Services commit, so wipe every table for the next test.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory that persists users with unique emails."""

    def _make_user(name: str | None = None, role: str = "user") -> User:
        number = next(_USER_COUNTER)
        user = User(
            name=name or f"User {number}",
            email=f"user{number}@example.com",
            role=role,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def member_user(make_user: Callable[..., User]) -> User:
    """Creator and first member of the default communities."""
    return make_user("Member")


@pytest.fixture()
def outsider_user(make_user: Callable[..., User]) -> User:
    """User who starts outside every community."""
    return make_user("Outsider")


@pytest.fixture()
def admin_user(make_user: Callable[..., User]) -> User:
    """Moderator who is not a member of any community."""
    return make_user("Admin", role=ROLE_ADMIN)


def auth_headers_for(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def auth_headers() -> Callable[[User], dict[str, str]]:
    """Return a helper building bearer headers for any user."""
    return auth_headers_for


@pytest.fixture()
def member_headers(member_user: User) -> dict[str, str]:
    return auth_headers_for(member_user)


@pytest.fixture()
def outsider_headers(outsider_user: User) -> dict[str, str]:
    return auth_headers_for(outsider_user)


@pytest.fixture()
def admin_headers(admin_user: User) -> dict[str, str]:
    return auth_headers_for(admin_user)


@pytest.fixture()
def place(db_session: Session) -> Place:
    """A place from the directory that messages can attach."""
    place = Place(name="Corner Noodle Bar", images=["https://images.example.com/noodles.jpg"])
    db_session.add(place)
    db_session.commit()
    db_session.refresh(place)
    return place


def create_test_community(db: Session, creator: User, **overrides: object) -> Community:
    """Create a community through the service so the creator is a member."""
    fields: dict[str, object] = {
        "name": "Campus Cooks",
        "description": "Students who cook and eat together",
        "tags": ["budget", "vegetarian"],
    }
    fields.update(overrides)
    result = community_service.create_community(db, creator, CommunityCreate(**fields))
    assert isinstance(result, Ok), result
    return result.value


@pytest.fixture()
def make_community(db_session: Session) -> Callable[..., Community]:
    """Return a factory creating communities through the service."""

    def _make_community(creator: User, **overrides: object) -> Community:
        return create_test_community(db_session, creator, **overrides)

    return _make_community


@pytest.fixture()
def private_password() -> str:
    return PRIVATE_PASSWORD


@pytest.fixture()
def community(db_session: Session, member_user: User) -> Community:
    """A public community created by ``member_user``."""
    return create_test_community(db_session, member_user)


@pytest.fixture()
def private_community(db_session: Session, member_user: User) -> Community:
    """A private community created by ``member_user``."""
    return create_test_community(
        db_session,
        member_user,
        name="Secret Supper Club",
        description="Invite-only dinners around campus",
        is_private=True,
        password=PRIVATE_PASSWORD,
    )
