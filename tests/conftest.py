"""Test fixtures — in-memory database, recording notifier, HTTP client.

Learn: Tests run against SQLite (aiosqlite) held in memory behind a
StaticPool, so every session in a test sees the same database and the
whole thing vanishes afterwards. The notifier records broadcasts instead
of talking to Redis. The app's lifespan doesn't run under ASGITransport,
so the fixtures put both resources on app.state directly — the real
get_db / get_notifier dependencies are exercised unchanged.
"""

import os

# Must be set before staffdesk.config builds its settings singleton.
os.environ.setdefault("STAFFDESK_ENVIRONMENT", "test")
os.environ.setdefault("STAFFDESK_BCRYPT_ROUNDS", "4")
os.environ.setdefault("STAFFDESK_JWT_SECRET", "test-secret-not-for-production")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import select  # noqa: E402
from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from staffdesk.auth.jwt import SessionClaims, issue_session_token  # noqa: E402
from staffdesk.auth.password import hash_password  # noqa: E402
from staffdesk.db.engine import Database  # noqa: E402
from staffdesk.db.models import OFFICE_STAFF_ROLE, Account, StaffProfile  # noqa: E402
from staffdesk.main import app  # noqa: E402
from staffdesk.realtime.pubsub import ProfileNotifier  # noqa: E402


class RecordingNotifier(ProfileNotifier):
    """Notifier that remembers which accounts were announced."""

    def __init__(self):
        super().__init__(None)
        self.updated_user_ids: list[int] = []

    def notify_profile_updated(self, user_id: int) -> None:
        self.updated_user_ids.append(user_id)


@pytest_asyncio.fixture()
async def database():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    db = Database(engine)
    await db.create_all()
    try:
        yield db
    finally:
        await db.dispose()


@pytest_asyncio.fixture()
async def db_session(database):
    async with database.session_factory() as session:
        yield session


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest_asyncio.fixture()
async def client(database, notifier):
    """HTTP client against the real app, wired to the test database."""
    app.state.database = database
    app.state.notifier = notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture()
def create_staff(database):
    """Factory: insert an office staff account + profile, return the account."""

    async def _create(
        username: str = "alice",
        password: str = "pw1",
        email: str | None = None,
        department: str = "Registrar",
        account_id: int | None = None,
        **profile_fields,
    ) -> Account:
        async with database.session_factory() as session:
            account = Account(
                id=account_id,
                username=username,
                email=email or f"{username}@example.com",
                password=hash_password(password),
                role=OFFICE_STAFF_ROLE,
            )
            session.add(account)
            await session.flush()
            session.add(
                StaffProfile(user_id=account.id, department=department, **profile_fields)
            )
            await session.commit()
            return account

    return _create


@pytest.fixture()
def fetch_account(database):
    """Read an account + profile back with a fresh session."""

    async def _fetch(account_id: int) -> tuple[Account, StaffProfile]:
        async with database.session_factory() as session:
            q = (
                select(Account, StaffProfile)
                .join(StaffProfile, StaffProfile.user_id == Account.id)
                .where(Account.id == account_id)
            )
            row = (await session.execute(q)).one()
            return row[0], row[1]

    return _fetch


@pytest.fixture()
def auth_headers():
    """Build a Cookie header from a token issued directly (no login round-trip)."""

    def _headers(account: Account, staff_id: int = 1, department: str = "Registrar") -> dict:
        token = issue_session_token(
            SessionClaims(
                account_id=account.id,
                staff_id=staff_id,
                username=account.username,
                role=OFFICE_STAFF_ROLE,
                department=department,
            )
        )
        return {"Cookie": f"token={token}"}

    return _headers
