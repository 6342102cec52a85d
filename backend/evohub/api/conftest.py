"""API test fixtures.

Provides an async HTTP client wired to the FastAPI app with the DI container
overridden. Identity is not faked: requests carry the gateway ``X-User-*``
headers, or nothing to act as a guest.

Pattern:
    1. Override get_container -> returns ``api_container`` (test_container by default)
    2. Send requests with the header helpers in ``tests/helpers.py``
    3. Assert on the HTTP envelope and on fake or store state
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from evohub.api.deps import get_container
from evohub.api.tests.helpers import BASE_URL


@pytest.fixture
def api_container(test_container):
    """Container served to the app. Override in a test module to swap parts."""
    return test_container


@pytest_asyncio.fixture
async def client(api_container):
    """Async HTTP client with the DI container overridden."""
    from evohub.main import app

    app.dependency_overrides[get_container] = lambda: api_container
    app.state.http_metrics = api_container.metrics.http

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=BASE_URL) as ac:
        yield ac

    app.dependency_overrides.clear()
