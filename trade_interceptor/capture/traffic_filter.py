"""Route-level traffic filter recording the trade API calls of one page.

The filter is registered as a Playwright route handler for every request a
page dispatches. Requests into the trade API namespace are recorded the moment
they are dispatched, forwarded to the real network, and their responses are
captured before being handed back to the page untouched. Everything else
passes straight through.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from playwright.async_api import Page, Request, Route

from ..models.capture import CapturedRequest

logger = logging.getLogger(__name__)


DEFAULT_API_NAMESPACE = "/api/trade2"
DEFAULT_EXCLUDED_PATHS = ("/api/trade2/data",)


class TrafficFilter:
    """Records matching requests of a single browsing session."""

    def __init__(
        self,
        api_namespace: str = DEFAULT_API_NAMESPACE,
        excluded_paths: Optional[Iterable[str]] = None,
        session_id: Optional[str] = None,
    ):
        """Initialize traffic filter.

        Args:
            api_namespace: URL fragment identifying the API of interest
            excluded_paths: URL fragments inside the namespace to ignore
            session_id: Identifier used to prefix log lines
        """
        self.api_namespace = api_namespace
        self.excluded_paths = tuple(
            DEFAULT_EXCLUDED_PATHS if excluded_paths is None else excluded_paths
        )
        self.session_id = session_id or "-"
        self.captured: List[CapturedRequest] = []
        self.stats: Dict[str, int] = {
            'matched': 0,
            'passed_through': 0,
            'responses_captured': 0,
        }

    @classmethod
    def for_api_base(
        cls,
        api_base: str,
        excluded_paths: Optional[Iterable[str]] = None,
        session_id: Optional[str] = None,
    ) -> "TrafficFilter":
        """Build a filter whose namespace is the path of an API base URL."""
        namespace = urlparse(api_base).path.rstrip('/') or DEFAULT_API_NAMESPACE
        return cls(namespace, excluded_paths=excluded_paths, session_id=session_id)

    async def attach(self, page: Page) -> None:
        """Register this filter for every request the page dispatches."""
        await page.route("**/*", self.handle_route)
        logger.debug(f"[{self.session_id}] Traffic filter attached")

    def matches(self, url: str) -> bool:
        """Check whether a URL belongs to the recorded API namespace."""
        if self.api_namespace not in url:
            return False
        return not any(excluded in url for excluded in self.excluded_paths)

    async def handle_route(self, route: Route, request: Request) -> None:
        """Route handler: record matching traffic, pass the rest through."""
        url = request.url

        if not self.matches(url):
            self.stats['passed_through'] += 1
            await route.continue_()
            return

        # Recorded before any await so list order follows dispatch order
        entry = self._record(request)
        logger.info(f"[{self.session_id}] Intercepting: {entry.method} {url}")

        try:
            response = await route.fetch()
        except Exception as e:
            logger.warning(f"[{self.session_id}] Fetch failed for {entry.method} {url}: {e}")
            await self._abort(route)
            return

        if response.ok:
            body = await self._read_body(response, entry)
            if body is not None:
                entry.attach_response(body)
                self.stats['responses_captured'] += 1
                logger.info(f"[{self.session_id}] Response captured for: {entry.method} {url}")
        else:
            logger.debug(f"[{self.session_id}] Response status {response.status} for {entry.method} {url}")

        await route.fulfill(response=response)

    def _record(self, request: Request) -> CapturedRequest:
        headers = {}
        try:
            headers = dict(request.headers)
        except Exception as e:
            logger.warning(f"[{self.session_id}] Failed to extract request headers: {e}")

        body = None
        try:
            body = request.post_data or None
        except Exception as e:
            logger.debug(f"[{self.session_id}] Failed to extract request body: {e}")

        entry = CapturedRequest(
            method=request.method,
            url=request.url,
            request_headers=headers,
            request_body=body,
        )
        self.captured.append(entry)
        self.stats['matched'] += 1
        return entry

    async def _read_body(self, response: Any, entry: CapturedRequest) -> Optional[Any]:
        """Parse the response as JSON, falling back to raw text."""
        try:
            return await response.json()
        except Exception as e:
            logger.debug(f"[{self.session_id}] Response for {entry.url} is not JSON: {e}")

        try:
            return await response.text()
        except Exception as e:
            logger.warning(f"[{self.session_id}] Failed to read response body for {entry.url}: {e}")
            return None

    async def _abort(self, route: Route) -> None:
        try:
            await route.abort()
        except Exception as e:
            logger.debug(f"[{self.session_id}] Failed to abort route: {e}")

    def __repr__(self) -> str:
        return (
            f"TrafficFilter(namespace={self.api_namespace}, "
            f"matched={self.stats['matched']}, "
            f"passed={self.stats['passed_through']})"
        )
