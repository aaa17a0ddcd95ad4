"""Shared pytest fixtures for server tests."""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable, Generator
from datetime import datetime, timezone
import httpx
import pytest
from cryptography.fernet import Fernet
from sqlalchemy import create_engine
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

def _ensure_test_environment() -> None:
    """Guarantee a valid Fernet key and an offline configuration for tests."""

    current = os.environ.get("ENCRYPTION_KEY")
    valid = False
    if current:
        try:
            Fernet(current.encode() if isinstance(current, str) else current)
            valid = True
        except ValueError:
            pass
    if not valid:
        os.environ["ENCRYPTION_KEY"] = Fernet.generate_key().decode()

    os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
    os.environ["RATE_LIMIT_ENABLED"] = "false"


_ensure_test_environment()

import main
from app.core.config import settings
from app.core.security import get_password_hash
from app.db.base import Base
from app.db.session import get_db
from app.models.user import User
from app.services.roles import assign_role


@compiles(UUID, "sqlite")
def compile_uuid_sqlite(_element, _compiler, **_kw) -> str:
    """Render UUID columns as TEXT for the SQLite test database."""

    return "TEXT"


TEST_DATABASE_URL = "sqlite+pysqlite:///:memory:"

test_engine = create_engine(
    TEST_DATABASE_URL,
    future=True,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(
    bind=test_engine,
    autocommit=False,
    autoflush=False,
    future=True,
)

Base.metadata.create_all(bind=test_engine)

DEFAULT_PASSWORD = "secret1"


class SyncASGITestClient:
    """Synchronous wrapper around httpx.AsyncClient for ASGI apps."""

    def __init__(self, app, *, raise_app_exceptions: bool = True) -> None:
        transport = httpx.ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions)
        self._client = httpx.AsyncClient(transport=transport, base_url="http://testserver")

    @property
    def cookies(self) -> httpx.Cookies:
        return self._client.cookies

    def request(self, method: str, url: str, **kwargs) -> httpx.Response:
        return asyncio.run(self._client.request(method, url, **kwargs))

    def get(self, url: str, **kwargs) -> httpx.Response:
        return self.request("GET", url, **kwargs)

    def post(self, url: str, **kwargs) -> httpx.Response:
        return self.request("POST", url, **kwargs)

    def delete(self, url: str, **kwargs) -> httpx.Response:
        return self.request("DELETE", url, **kwargs)

    def put(self, url: str, **kwargs) -> httpx.Response:
        return self.request("PUT", url, **kwargs)

    def patch(self, url: str, **kwargs) -> httpx.Response:
        return self.request("PATCH", url, **kwargs)

    def options(self, url: str, **kwargs) -> httpx.Response:
        return self.request("OPTIONS", url, **kwargs)

    def __enter__(self) -> "SyncASGITestClient":
        return self

    def __exit__(self, exc_type, exc, traceback) -> None:
        asyncio.run(self._client.aclose())


@pytest.fixture(autouse=True)
def verify_connection_tracker(monkeypatch: pytest.MonkeyPatch) -> Generator[dict[str, int], None, None]:
    """Track how many times the startup connection verifier is called."""

    tracker = {"calls": 0, "migrations": 0}

    def fake_verify_connection() -> None:
        tracker["calls"] += 1

    def fake_run_migrations() -> None:
        tracker["migrations"] += 1

    monkeypatch.setattr(main, "verify_connection", fake_verify_connection)
    monkeypatch.setattr(main, "run_migrations", fake_run_migrations)
    yield tracker


@pytest.fixture()
def db_session() -> Generator[Session, None, None]:
    """Provide a clean database session for each test."""

    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    session: Session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(autouse=True)
def override_get_db(db_session: Session) -> Generator[None, None, None]:
    """Override the FastAPI dependency to use the test session."""

    def _get_db() -> Generator[Session, None, None]:
        try:
            yield db_session
        finally:
            pass

    main.app.dependency_overrides[get_db] = _get_db
    yield
    main.app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def client() -> Generator[SyncASGITestClient, None, None]:
    """Synchronous test client backed by httpx's ASGI transport."""

    with SyncASGITestClient(main.app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def capture_outbound_email(monkeypatch: pytest.MonkeyPatch) -> Generator[list[dict[str, str]], None, None]:
    """Record outbound verification and reset emails for assertions."""

    sent: list[dict[str, str]] = []

    def _capture(kind: str) -> Callable[[str, str], None]:
        def _send(recipient: str, link: str) -> None:
            sent.append({"kind": kind, "recipient": recipient, "link": link})

        return _send

    monkeypatch.setattr("app.services.email.send_verification_email", _capture("verification"))
    monkeypatch.setattr("app.services.email.send_password_reset_email", _capture("password_reset"))
    yield sent


@pytest.fixture()
def user_factory(db_session: Session) -> Callable[..., User]:
    """Insert users directly, verified by default."""

    counter = {"n": 0}

    def _create(
        email: str | None = None,
        *,
        username: str | None = None,
        password: str = DEFAULT_PASSWORD,
        verified: bool = True,
    ) -> User:
        counter["n"] += 1
        user = User(
            username=username or f"user{counter['n']}",
            email=email or f"user{counter['n']}@example.com",
            hashed_password=get_password_hash(password),
            email_verified_at=datetime.now(timezone.utc) if verified else None,
        )
        db_session.add(user)
        db_session.flush()
        assign_role(db_session, user, settings.default_user_role)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _create


def login(client: SyncASGITestClient, email: str, password: str = DEFAULT_PASSWORD) -> httpx.Response:
    return client.post("/api/login", json={"email": email, "password": password})


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def logged_in_user(client: SyncASGITestClient, user_factory) -> tuple[User, str]:
    """A verified user and the plaintext token from a real login."""

    user = user_factory("alice@example.com", username="alice")
    response = login(client, user.email)
    assert response.status_code == 200
    return user, response.json()["data"]["token"]["plain_text_token"]
