"""Shared test fixtures and Playwright doubles for trade interceptor tests."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
from unittest.mock import AsyncMock

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from trade_interceptor.models.capture import CapturedRequest


API_BASE = "https://www.pathofexile.com/api/trade2"
TRADE_URL = "https://www.pathofexile.com/trade2/search/poe2/LeagueX/AbC123"


class FakeRequest:
    """Stand-in for playwright.async_api.Request."""

    def __init__(self, method: str, url: str, headers: Optional[Dict[str, str]] = None,
                 post_data: Optional[str] = None):
        self.method = method
        self.url = url
        self.headers = headers or {}
        self.post_data = post_data


class FakeResponse:
    """Stand-in for playwright.async_api.APIResponse."""

    def __init__(self, body: Any = None, status: int = 200):
        self.body = body
        self.status = status

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    async def json(self) -> Any:
        if isinstance(self.body, str):
            return json.loads(self.body)
        return self.body

    async def text(self) -> str:
        if isinstance(self.body, str):
            return self.body
        return json.dumps(self.body)


class FakeRoute:
    """Stand-in for playwright.async_api.Route."""

    def __init__(self, response: Optional[FakeResponse] = None, fetch_error: Optional[Exception] = None):
        self.continue_ = AsyncMock()
        self.fulfill = AsyncMock()
        self.abort = AsyncMock()
        self.fetch = AsyncMock(return_value=response, side_effect=fetch_error)


Exchange = Tuple[FakeRequest, FakeResponse]


class FakePage:
    """Page that replays scripted exchanges through its route handler on goto()."""

    def __init__(self, script: Callable[[str], List[Exchange]], goto_error: Optional[Exception] = None):
        self.script = script
        self.goto_error = goto_error
        self.handler = None
        self.closed = False
        self.goto_calls: List[Dict[str, Any]] = []
        self.routes: List[FakeRoute] = []

    async def route(self, pattern: str, handler) -> None:
        self.handler = handler

    async def goto(self, url: str, wait_until: Optional[str] = None, timeout: Optional[int] = None) -> None:
        self.goto_calls.append({'url': url, 'wait_until': wait_until, 'timeout': timeout})
        for request, response in self.script(url):
            route = FakeRoute(response)
            self.routes.append(route)
            await self.handler(route, request)
            # Let concurrent sessions interleave
            await asyncio.sleep(0)
        if self.goto_error is not None:
            raise self.goto_error

    async def wait_for_timeout(self, timeout: float) -> None:
        await asyncio.sleep(0)

    async def close(self) -> None:
        self.closed = True


class FakeContext:
    """Browser context with its own cookie jar."""

    def __init__(self, factory: "FakeBrowserFactory"):
        self.factory = factory
        self.cookies: List[Dict[str, Any]] = []
        self.pages: List[FakePage] = []
        self.closed = False

    async def add_cookies(self, cookies: List[Dict[str, Any]]) -> None:
        self.cookies.extend(cookies)

    async def new_page(self) -> FakePage:
        page = FakePage(self.factory.script, goto_error=self.factory.goto_error)
        self.pages.append(page)
        return page

    async def close(self) -> None:
        self.closed = True


class FakeBrowserFactory:
    """Implements the BrowserFactory surface used by SessionManager."""

    def __init__(self, script: Optional[Callable[[str], List[Exchange]]] = None):
        self.script = script or (lambda url: [])
        self.goto_error: Optional[Exception] = None
        self.browser = None
        self.contexts: List[FakeContext] = []
        self.closed_contexts = 0
        self.start_calls = 0
        self.stop_calls = 0

    async def start(self) -> None:
        self.start_calls += 1
        self.browser = object()

    async def stop(self) -> None:
        self.stop_calls += 1
        self.browser = None

    async def create_context(self, **overrides) -> FakeContext:
        if self.browser is None:
            raise RuntimeError("Browser factory not started. Call start() first.")
        context = FakeContext(self)
        self.contexts.append(context)
        return context

    async def close_context(self, context: FakeContext) -> None:
        await context.close()
        self.closed_contexts += 1


def trade_exchanges(
    league: str = "LeagueX",
    trade_id: str = "AbC123",
    query: Optional[Dict[str, Any]] = None,
    item_ids: Tuple[str, ...] = ("h1", "h2"),
) -> List[Exchange]:
    """Exchanges a trade search page performs: data lookup, search POST, fetch GET."""
    query = query or {"query": {"status": {"option": "online"}}}
    ids = ",".join(item_ids)
    return [
        (
            FakeRequest("GET", f"{API_BASE}/data/items"),
            FakeResponse({"result": []}),
        ),
        (
            FakeRequest(
                "POST",
                f"{API_BASE}/search/poe2/{league}",
                headers={"cookie": "POESESSID=secret", "content-type": "application/json"},
                post_data=json.dumps(query),
            ),
            FakeResponse({"id": trade_id, "result": list(item_ids), "total": len(item_ids)}),
        ),
        (
            FakeRequest(
                "GET",
                f"{API_BASE}/fetch/{ids}?query={trade_id}",
                headers={"cookie": "POESESSID=secret"},
            ),
            FakeResponse({"result": [{"id": item_id, "listing": {}} for item_id in item_ids]}),
        ),
    ]


@pytest.fixture
def fake_browser_factory():
    """Browser factory double replaying a LeagueX/AbC123 search."""
    return FakeBrowserFactory(script=lambda url: trade_exchanges())


@pytest.fixture
def sample_post_request():
    """Captured search submission."""
    return CapturedRequest(
        method="POST",
        url=f"{API_BASE}/search/poe2/LeagueX",
        request_headers={"cookie": "POESESSID=secret"},
        request_body='{"query":{"status":{"option":"online"}}}',
        response_body={"id": "AbC123", "result": ["h1", "h2"]},
    )


@pytest.fixture
def sample_get_request():
    """Captured results fetch."""
    request = CapturedRequest(
        method="GET",
        url=f"{API_BASE}/fetch/h1,h2?query=AbC123",
        request_headers={"cookie": "POESESSID=secret"},
    )
    request.attach_response({"result": [{"id": "h1"}, {"id": "h2"}]})
    return request
