import os
import tempfile
from pathlib import Path
from typing import Any, AsyncGenerator, Callable

TEST_DB = Path(tempfile.gettempdir()) / f"datashelf-test-{os.getpid()}.db"

os.environ["DATASHELF_DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_DB}"
os.environ["DATASHELF_JWT_SECRET"] = "datashelf-test-secret-0123456789abcdef"
os.environ["DATASHELF_JWT_AUDIENCE"] = "datashelf"
os.environ["DATASHELF_JWT_ISSUER"] = "https://auth.datashelf.test"
os.environ["DATASHELF_X_API_KEY"] = "datashelf-test-api-key"

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from datashelf.db.config import engine  # noqa: E402
from datashelf.db.repository import DatasetRepository  # noqa: E402
from datashelf.db.utils import create_database, drop_database  # noqa: E402
from datashelf.settings import settings  # noqa: E402
from datashelf.tests.fakes import FakeDispatcher, FakeStorage, make_token  # noqa: E402
from datashelf.web.api.utils import get_dispatcher, get_storage  # noqa: E402
from datashelf.web.application import get_app  # noqa: E402


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """
    Backend for anyio pytest plugin.

    :return: backend name.
    """
    return "asyncio"


@pytest.fixture
async def initialize_db(anyio_backend: Any) -> AsyncGenerator[None, None]:
    """
    Create models and databases.

    :yield: nothing, tables exist meanwhile.
    """
    await create_database()

    yield

    await drop_database()
    await engine.dispose()


@pytest.fixture
async def repository(initialize_db: None) -> DatasetRepository:
    """Repository over the test database."""
    return DatasetRepository()


@pytest.fixture
def fake_storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def fake_dispatcher() -> FakeDispatcher:
    return FakeDispatcher()


@pytest.fixture
def fastapi_app(fake_storage: FakeStorage, fake_dispatcher: FakeDispatcher) -> FastAPI:
    """
    Fixture for creating FastAPI app.

    :return: fastapi app with mocked dependencies.
    """
    application = get_app()
    application.dependency_overrides[get_storage] = lambda: fake_storage
    application.dependency_overrides[get_dispatcher] = lambda: fake_dispatcher
    return application  # noqa: WPS331


@pytest.fixture
async def client(
    fastapi_app: FastAPI,
    initialize_db: None,
    anyio_backend: Any,
) -> AsyncGenerator[AsyncClient, None]:
    """
    Fixture that creates client for requesting server.

    :param fastapi_app: the application.
    :yield: client for the app.
    """
    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Headers authenticating as the given user."""

    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(user_id)}"}

    return _headers


@pytest.fixture
def service_headers() -> dict[str, str]:
    return {"x-api-key": settings.x_api_key}
