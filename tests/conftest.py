"""Shared test fixtures for Gremlin tests."""

import pytest
from starlette.datastructures import Headers
from starlette.requests import Request

from gremlin.adapters import InMemoryContentResourceAdapter
from gremlin.auth import GremlinSession, SessionProvider, SessionUser
from gremlin.executor import ExecutionContext
from gremlin.handler import GremlinAdapters, GremlinCallbacks, GremlinConfig

SESSION = GremlinSession(
    user=SessionUser(id="user_123", email="user@example.com", roles=["admin"]),
    expires="2099-01-01T00:00:00.000Z",
)


class FakeSessionProvider(SessionProvider):
    """Returns a fixed session and records the requests it saw."""

    def __init__(self, session=SESSION) -> None:
        self.session = session
        self.requests: list[Request] = []

    async def get_session(self, request):
        self.requests.append(request)
        return self.session


@pytest.fixture(autouse=True)
def _clear_singleton_caches():
    """Reset cached Settings and the effect runtime between tests."""
    from gremlin.deferred import get_effect_runtime, set_effect_runtime

    runtime = get_effect_runtime()
    yield
    set_effect_runtime(runtime)

    from gremlin.config import get_settings

    get_settings.cache_clear()


@pytest.fixture
def session():
    return SESSION


@pytest.fixture
def auth_provider():
    return FakeSessionProvider()


@pytest.fixture
def content_adapter():
    return InMemoryContentResourceAdapter()


@pytest.fixture
def make_config(auth_provider, content_adapter):
    """Build a GremlinConfig with fake collaborators; keyword overrides win."""

    def _make(**overrides) -> GremlinConfig:
        values = {
            "adapters": GremlinAdapters(content=content_adapter),
            "auth": auth_provider,
            "router": {},
            "callbacks": GremlinCallbacks(),
        }
        values.update(overrides)
        return GremlinConfig(**values)

    return _make


@pytest.fixture
def execution_context():
    """ExecutionContext for a POST /api/gremlin/rpc request with an x-trace-id header."""
    raw_headers = [(b"x-trace-id", b"trace_123")]
    request = Request(
        {
            "type": "http",
            "method": "POST",
            "path": "/api/gremlin/rpc",
            "headers": raw_headers,
            "query_string": b"",
        }
    )
    return ExecutionContext(request=request, session=SESSION, headers=Headers(raw=raw_headers))
