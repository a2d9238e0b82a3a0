import os
import tempfile

# Point the app at a throwaway database and storage dir before it is imported
_tmp_dir = tempfile.mkdtemp(prefix="dayplanner-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_tmp_dir, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["STORAGE_DIR"] = os.path.join(_tmp_dir, "storage")
os.environ["APP_URL"] = "http://test"
os.environ["API_PREFIX"] = "/api"
os.environ["APP_DEBUG"] = "false"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from dayplanner.core.security import get_password_hash
from dayplanner.core.timeutils import utcnow
from dayplanner.database import Base, SessionLocal, engine
from dayplanner.main import app
from dayplanner.models.user import User
from dayplanner.services.zoho_mail import get_mail_service

from fakes import FakeMailService

API = "/api"
PASSWORD = "TestPassword123!"


@pytest.fixture(scope="function")
def session_for_tests():
    """Fresh tables for every test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def mailer():
    return FakeMailService()


@pytest.fixture(scope="function")
def app_with_overrides(session_for_tests, mailer):
    app.dependency_overrides[get_mail_service] = lambda: mailer
    yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def client(app_with_overrides):
    transport = ASGITransport(app=app_with_overrides)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def make_user(session_for_tests):
    def _make_user(email="user@example.com", password=PASSWORD, name="Test User", verified=True):
        user = User(
            name=name,
            email=email,
            password=get_password_hash(password),
            email_verified_at=utcnow() if verified else None,
        )
        session_for_tests.add(user)
        session_for_tests.commit()
        session_for_tests.refresh(user)
        return user
    return _make_user


async def login(client, email, password=PASSWORD):
    response = await client.post(f"{API}/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["authorization"]["token"]


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}
