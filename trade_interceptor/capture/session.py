"""Isolated browsing sessions and their lifecycle management.

Every inbound call gets its own BrowsingSession: a fresh browser context
(cookie jar), a single page and a private TrafficFilter. Sessions are never
shared or reused, and SessionManager guarantees they are torn down.
"""

import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Iterable, List, Optional, Any

from playwright.async_api import BrowserContext, Page

from .browser_factory import BrowserFactory, BrowserConfig
from .exceptions import NotInitializedError
from .traffic_filter import TrafficFilter
from ..models.capture import CapturedRequest

logger = logging.getLogger(__name__)


def new_session_id() -> str:
    """Short random identifier used to tag a session's log lines."""
    return uuid.uuid4().hex[:9]


class BrowsingSession:
    """One isolated context, its page, and the requests captured on it."""

    def __init__(
        self,
        context: BrowserContext,
        page: Page,
        traffic_filter: TrafficFilter,
        session_id: Optional[str] = None,
    ):
        self.context = context
        self.page = page
        self.traffic_filter = traffic_filter
        self.session_id = session_id or new_session_id()
        self.closed = False

    @property
    def captured_requests(self) -> List[CapturedRequest]:
        """Live list of matched requests in dispatch order."""
        return self.traffic_filter.captured

    async def add_cookies(self, cookies: List[Dict[str, Any]]) -> None:
        """Install cookies into this session's cookie store."""
        await self.context.add_cookies(cookies)

    async def navigate(self, url: str, timeout_ms: int, wait_until: str = "networkidle") -> None:
        """Navigate the page and wait for the given load state."""
        await self.page.goto(url, wait_until=wait_until, timeout=timeout_ms)

    async def settle(self, delay_ms: int) -> None:
        """Give late client-side requests time to fire."""
        if delay_ms > 0:
            await self.page.wait_for_timeout(delay_ms)

    def __repr__(self) -> str:
        return (
            f"BrowsingSession(id={self.session_id}, "
            f"captured={len(self.captured_requests)}, closed={self.closed})"
        )


class SessionManager:
    """Creates and destroys isolated browsing sessions.

    The manager is the only owner of the process-wide browser handle.
    """

    def __init__(
        self,
        browser_config: Optional[BrowserConfig] = None,
        api_base: str = "https://www.pathofexile.com/api/trade2",
        excluded_paths: Optional[Iterable[str]] = None,
        browser_factory: Optional[BrowserFactory] = None,
    ):
        """Initialize session manager.

        Args:
            browser_config: Configuration for the browser to launch
            api_base: Base URL of the API whose traffic is recorded
            excluded_paths: URL fragments inside the API to ignore
            browser_factory: Pre-built factory (mainly for tests)
        """
        self.browser_factory = browser_factory or BrowserFactory(browser_config)
        self.api_base = api_base
        self.excluded_paths = excluded_paths
        self._active_sessions = 0

    async def start(self) -> None:
        """Launch the browser."""
        await self.browser_factory.start()

    async def stop(self) -> None:
        """Release the browser handle. Safe to call more than once."""
        await self.browser_factory.stop()

    @property
    def is_initialized(self) -> bool:
        return self.browser_factory.browser is not None

    @property
    def active_sessions(self) -> int:
        return self._active_sessions

    async def acquire(self, session_id: Optional[str] = None) -> BrowsingSession:
        """Create a new isolated session with its own traffic filter.

        Raises:
            NotInitializedError: If the browser has not been started
        """
        if not self.is_initialized:
            raise NotInitializedError()

        session_id = session_id or new_session_id()
        context = await self.browser_factory.create_context()

        try:
            page = await context.new_page()
            traffic_filter = TrafficFilter.for_api_base(
                self.api_base,
                excluded_paths=self.excluded_paths,
                session_id=session_id,
            )
            await traffic_filter.attach(page)
        except Exception:
            await self._close_context(context, session_id)
            raise

        self._active_sessions += 1
        logger.debug(f"[{session_id}] Session created with isolated context")
        return BrowsingSession(context, page, traffic_filter, session_id=session_id)

    async def release(self, session: BrowsingSession) -> None:
        """Close the session's page and context. Never raises."""
        if session.closed:
            return
        session.closed = True
        self._active_sessions = max(0, self._active_sessions - 1)

        try:
            await session.page.close()
        except Exception as e:
            logger.error(f"[{session.session_id}] Error closing page: {e}")

        await self._close_context(session.context, session.session_id)
        logger.debug(f"[{session.session_id}] Session cleaned up")

    @asynccontextmanager
    async def session(self, session_id: Optional[str] = None) -> AsyncGenerator[BrowsingSession, None]:
        """Context manager pairing acquire() with release()."""
        browsing_session = await self.acquire(session_id)
        try:
            yield browsing_session
        finally:
            await self.release(browsing_session)

    async def _close_context(self, context: BrowserContext, session_id: str) -> None:
        try:
            await self.browser_factory.close_context(context)
        except Exception as e:
            logger.error(f"[{session_id}] Error closing browser context: {e}")
