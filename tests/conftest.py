import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from smartlead_reporting.utils.http.identity import RequestIdentity  # noqa: E402


def pytest_configure(config):
    # Register the asyncio marker so pytest doesn't warn when it's used.
    config.addinivalue_line(
        "markers", "asyncio: mark test to run in an asyncio event loop"
    )
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )


@pytest.fixture(autouse=True)
def mock_env_vars(monkeypatch):
    """Set the environment the Settings class reads during tests.

    Values a developer's shell or ``.env`` may carry are overridden so
    tests never talk to the real API.
    """
    monkeypatch.setenv("SMARTLEAD_API_KEY", "test-api-key")
    monkeypatch.setenv("SMARTLEAD_BASE_URL", "https://api.test.local/api/v1")
    monkeypatch.delenv("VITE_SMARTLEAD_API_KEY", raising=False)
    monkeypatch.delenv("VITE_SMARTLEAD_BASE_URL", raising=False)
    monkeypatch.setenv("LOG_LEVEL", "INFO")
    yield


class FakeTransport:
    """Transport double returning canned responses per request path.

    ``routes`` maps a path to a JSON payload, an ``httpx.Response`` or an
    exception instance to raise. Unknown paths answer 404.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes = routes or {}
        self.calls: List[RequestIdentity] = []

    async def send(self, identity: RequestIdentity) -> httpx.Response:
        self.calls.append(identity)
        request = httpx.Request(identity.method, f"https://api.test.local{identity.path}")
        route = self.routes.get(identity.path)
        if route is None:
            return httpx.Response(404, request=request)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, httpx.Response):
            return route
        return httpx.Response(200, json=route, request=request)


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def sample_campaigns():
    """Three campaigns: two for client 1 in January, one for client 2 in March."""
    return [
        {
            "id": 101,
            "name": "January Outreach",
            "status": "ACTIVE",
            "created_at": "2024-01-05T10:00:00.000Z",
            "client_id": 1,
            "max_leads_per_day": 50,
            "follow_up_percentage": 40,
        },
        {
            "id": 102,
            "name": "January Follow Up",
            "status": "PAUSED",
            "created_at": "2024-01-20T23:30:00.000Z",
            "client_id": 1,
            "max_leads_per_day": 20,
            "follow_up_percentage": 60,
        },
        {
            "id": 201,
            "name": "Spring Launch",
            "status": "ACTIVE",
            "created_at": "2024-03-02T08:00:00.000Z",
            "client_id": 2,
            "max_leads_per_day": 100,
            "follow_up_percentage": 20,
        },
    ]


@pytest.fixture
def sample_clients():
    return [
        {"id": 1, "name": "Acme Corp", "email": "ops@acme.test"},
        {"id": 2, "name": "Globex", "email": "team@globex.test"},
    ]


def analytics_payload(campaign_id: int, sent: int, opens: int = 0, clicks: int = 0,
                      replies: int = 0, bounces: int = 0) -> Dict[str, Any]:
    """Analytics record shaped like the API's, counters as strings."""
    return {
        "id": campaign_id,
        "name": f"Campaign {campaign_id}",
        "sent_count": str(sent),
        "open_count": str(opens),
        "click_count": str(clicks),
        "reply_count": str(replies),
        "bounce_count": str(bounces),
        "sequence_count": "3",
        "campaign_lead_stats": {"total": sent, "completed": 0},
    }


@pytest.fixture
def make_analytics():
    return analytics_payload
