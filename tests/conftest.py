"""Pytest configuration and fixtures."""

import io
import zipfile
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable

import pytest
from httpx import ASGITransport, AsyncClient

from ntando.config import Settings
from ntando.core.context import AppContext
from ntando.main import create_app
from ntando.models.deployment import Deployment

RegisterFn = Callable[..., Awaitable[dict[str, str]]]


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Memory-backed settings with an instant simulated provider."""
    return Settings(
        app_env="development",
        storage_backend="memory",
        hosting_provider="simulated",
        simulated_build_seconds=0,
        poll_interval_seconds=0,
        poll_max_attempts=3,
        upload_dir=str(tmp_path / "uploads"),
        jwt_secret="test-secret",
    )


@pytest.fixture
async def context(settings: Settings) -> AsyncIterator[AppContext]:
    """Application context as the lifespan would build it."""
    context = AppContext.from_settings(settings)
    await context.startup()
    yield context
    await context.shutdown()


@pytest.fixture
async def client(settings: Settings, context: AppContext) -> AsyncIterator[AsyncClient]:
    """Create an async test client bound to the test context."""
    app = create_app(settings)
    # ASGITransport does not run the lifespan
    app.state.context = context

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def register(client: AsyncClient) -> RegisterFn:
    """Register a user and return bearer headers for it."""

    async def _register(email: str = "alice@ntando.io", password: str = "s3cret-pass") -> dict[str, str]:
        response = await client.post(
            "/api/auth/register",
            json={"email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return {"Authorization": f"Bearer {response.json()['token']}"}

    return _register


@pytest.fixture
async def auth_headers(register: RegisterFn) -> dict[str, str]:
    return await register()


@pytest.fixture
def site_zip() -> bytes:
    """A small static site packed as a zip archive."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        zf.writestr("index.html", "<h1>Hello</h1>")
        zf.writestr("assets/app.js", "console.log('hi');")
    return buffer.getvalue()


@pytest.fixture
def make_deployment() -> Callable[..., Deployment]:
    def _make(domain: str = "demo.ntl.cloud", owner_id: str = "owner-1", **kwargs) -> Deployment:
        return Deployment(
            owner_id=owner_id,
            project_name=kwargs.pop("project_name", domain.split(".")[0]),
            domain=domain,
            **kwargs,
        )

    return _make
