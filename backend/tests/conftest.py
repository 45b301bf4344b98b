# backend/tests/conftest.py
import os
import tempfile

# Settings are read when voicelink.core.config is first imported, so the test
# environment has to be in place before any application import below.
_TEST_ROOT = tempfile.mkdtemp(prefix="voicelink-tests-")
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("COOKIE_SECURE", "false")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{_TEST_ROOT}/voicelink.db")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_TEST_ROOT, "uploads"))
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("ELEVENLABS_API_KEY", "test-elevenlabs-key")
os.environ.setdefault("USAGE_STORE_BACKEND", "database")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tests.factories import UserFactory  # noqa: E402
from tests.utils.fake_ai_services import FakeAIServices  # noqa: E402
from voicelink.api.deps import get_speech_service  # noqa: E402
from voicelink.core.config import settings  # noqa: E402
from voicelink.core.rate_limit import limiter  # noqa: E402
from voicelink.core.users import get_access_token_jwt_strategy  # noqa: E402
from voicelink.db.base import Base  # noqa: E402
from voicelink.db.models.user import User  # noqa: E402
from voicelink.db.session import get_async_session  # noqa: E402
from voicelink.main import app as fastapi_app  # noqa: E402


@pytest.fixture(autouse=True)
def reset_rate_limits():
    limiter.reset()
    yield
    limiter.reset()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    """Point audio writes at a per-test directory."""
    directory = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", directory)
    return directory


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path):
    """A fresh SQLite database file for each test function."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", connect_args={"timeout": 30}
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture(scope="function")
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


@pytest.fixture
def fake_ai() -> FakeAIServices:
    return FakeAIServices()


@pytest_asyncio.fixture(scope="function")
async def test_client(
    db_session: AsyncSession, fake_ai: FakeAIServices, upload_dir
) -> AsyncGenerator[AsyncClient, None]:
    """
    httpx client bound to the app through ASGITransport.

    The request session is the test's ``db_session`` and the AI providers are
    answered by ``fake_ai``.
    """

    async def override_get_async_session_for_test() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    fastapi_app.dependency_overrides[get_async_session] = override_get_async_session_for_test
    fastapi_app.dependency_overrides[get_speech_service] = fake_ai.speech_service

    async with AsyncClient(
        transport=ASGITransport(app=fastapi_app), base_url="http://test"
    ) as client:
        yield client

    fastapi_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    user = UserFactory.create_user(
        session=db_session, email="member@example.com", password="password123"
    )
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict[str, str]:
    token = await get_access_token_jwt_strategy().write_token(test_user)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def superuser_headers(db_session: AsyncSession) -> dict[str, str]:
    admin = UserFactory.create_admin(session=db_session, email="admin@example.com")
    await db_session.commit()
    token = await get_access_token_jwt_strategy().write_token(admin)
    return {"Authorization": f"Bearer {token}"}
