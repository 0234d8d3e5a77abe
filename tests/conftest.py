"""
Pytest configuration for the temple booking backend.

Settings are read from the environment when ``templebook.config`` is first
imported, so test defaults are installed here before anything from the
package is imported. Every test gets its own file-backed SQLite database
built with the same engine factory the application uses, so the
BEGIN IMMEDIATE locking policy is exercised by the tests as well.
"""

import os
import sys
import tempfile
from datetime import date, time, timedelta
from decimal import Decimal
from pathlib import Path
from types import SimpleNamespace

import pytest


def _ensure_repo_on_sys_path() -> None:
    """Allow ``import templebook`` without an editable install."""
    repo_root = str(Path(__file__).resolve().parents[1])
    if repo_root not in sys.path:
        sys.path.insert(0, repo_root)


_ensure_repo_on_sys_path()

os.environ.setdefault("SECRET_KEY", "test-jwt-secret")
os.environ.setdefault("QR_SECRET_KEY", "test-ticket-secret")
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="templebook-logs-"))
os.environ.setdefault("LOG_LEVEL", "WARNING")
# The module-level engine is never used by tests
os.environ["DATABASE_URL"] = "sqlite://"

from sqlalchemy.orm import sessionmaker  # noqa: E402

from templebook.auth.principal import Principal  # noqa: E402
from templebook.auth.utils import create_access_token, get_password_hash  # noqa: E402
from templebook.bookings.ticket_codec import TicketCodec  # noqa: E402
from templebook.database import Base, create_db_engine  # noqa: E402
from templebook.enums import Role  # noqa: E402
from templebook.models import Temple, TimeSlot, User  # noqa: E402

TEST_PASSWORD = "secret123"
TICKET_SECRET = "test-ticket-secret"


@pytest.fixture(scope="session")
def password_hash():
    # bcrypt is slow on purpose; hash once per run
    return get_password_hash(TEST_PASSWORD)


@pytest.fixture(scope="session")
def codec():
    return TicketCodec(secret=TICKET_SECRET)


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'templebook.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def visit_date():
    return date.today() + timedelta(days=7)


@pytest.fixture
def make_user(session_factory, password_hash):
    """Insert a user in its own session and return the caller Principal for it."""
    counter = {"n": 0}

    def _make_user(role=Role.USER, is_approved=True, name=None, phone="+91 9000000000", email=None):
        counter["n"] += 1
        session = session_factory()
        try:
            user = User(
                name=name or f"{role.value.title()} {counter['n']}",
                email=email or f"{role.value.lower()}{counter['n']}@example.com",
                phone=phone,
                password=password_hash,
                role=role.value,
                is_approved=is_approved,
            )
            session.add(user)
            session.commit()
            return Principal(user_id=user.id, role=role, is_approved=is_approved)
        finally:
            session.close()

    return _make_user


@pytest.fixture
def make_temple(session_factory, board):
    """Insert an active temple with slots; returns its id and slot ids."""

    def _make_temple(owner=None, daily_ticket_limit=10, ticket_price=Decimal("50"),
                     slots=((time(9, 0), time(11, 0), 6),), name="Shri Test Temple"):
        owner = owner or board
        session = session_factory()
        try:
            temple = Temple(
                owner_id=owner.user_id,
                name=name,
                city="Pune",
                state="Maharashtra",
                daily_ticket_limit=daily_ticket_limit,
                ticket_price=ticket_price,
            )
            temple.time_slots = [
                TimeSlot(start_time=start, end_time=end, capacity=capacity)
                for start, end, capacity in slots
            ]
            session.add(temple)
            session.commit()
            return SimpleNamespace(
                id=temple.id,
                slot_ids=[slot.id for slot in temple.time_slots],
                owner=owner,
            )
        finally:
            session.close()

    return _make_temple


@pytest.fixture
def visitor(make_user):
    return make_user(Role.USER, name="Asha Devotee", phone="+91 9876543212")


@pytest.fixture
def board(make_user):
    return make_user(Role.TEMPLE_BOARD, name="Temple Board Manager")


@pytest.fixture
def other_board(make_user):
    return make_user(Role.TEMPLE_BOARD, name="Other Temple Board")


@pytest.fixture
def superuser(make_user):
    return make_user(Role.SUPERUSER, name="System Admin")


@pytest.fixture
def temple(make_temple):
    return make_temple()


@pytest.fixture
def auth_headers():
    def _auth_headers(principal: Principal):
        token = create_access_token({"sub": str(principal.user_id), "role": principal.role.value})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def client(session_factory, codec):
    from fastapi.testclient import TestClient

    from templebook.bookings.dependencies import get_ticket_codec
    from templebook.database import get_db
    from templebook.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ticket_codec] = lambda: codec
    yield TestClient(app)
    app.dependency_overrides.clear()
