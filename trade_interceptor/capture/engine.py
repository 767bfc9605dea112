"""Interception engine orchestrating one fetch-and-extract run per caller.

This module provides the InterceptionEngine class that composes the session
manager, traffic filter, correlation poller and result extractor. Each call
runs in its own isolated browsing session and always yields a
TradeApiResponse: failures are reported in its ``error`` field, never raised.
"""

import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from .browser_factory import BrowserConfig
from .cookies import parse_cookie_string
from .exceptions import NavigationError, NotInitializedError
from .extractor import ResultExtractor, DEFAULT_ITEMS_FIELD
from .poller import CorrelationPoller, search_signature, fetch_signature
from .session import BrowsingSession, SessionManager, new_session_id
from ..models.capture import TradeApiResponse

logger = logging.getLogger(__name__)


class InterceptionEngineConfig:
    """Configuration for the interception engine."""

    def __init__(
        self,
        browser_config: Optional[BrowserConfig] = None,

        # Target site
        api_base: str = "https://www.pathofexile.com/api/trade2",
        excluded_paths: Optional[List[str]] = None,
        cookie_domain: str = ".pathofexile.com",
        default_credentials: Optional[str] = None,

        # Timing
        navigation_timeout_ms: int = 30000,
        settle_delay_ms: int = 3000,
        poll_interval_ms: int = 500,
        poll_deadline_ms: int = 15000,
        continue_on_navigation_timeout: bool = False,

        # Extraction
        items_field: str = DEFAULT_ITEMS_FIELD,

        # Resources
        max_concurrent_sessions: Optional[int] = 5,
    ):
        """Initialize interception engine configuration.

        Args:
            browser_config: Browser launch/context configuration
            api_base: Base URL of the trade API
            excluded_paths: URL fragments inside the API that are not recorded
            cookie_domain: Domain the supplied cookies are scoped to
            default_credentials: Cookie string used when a call supplies none
            navigation_timeout_ms: Bound on navigation until network idle
            settle_delay_ms: Extra wait after navigation for late requests
            poll_interval_ms: Interval between correlation scans
            poll_deadline_ms: Bound on the correlation wait
            continue_on_navigation_timeout: Poll anyway when navigation times out
            items_field: Field of the fetch response holding the item array
            max_concurrent_sessions: Bound on simultaneously open sessions (None = unbounded)
        """
        self.browser_config = browser_config or BrowserConfig()
        self.api_base = api_base.rstrip('/')
        self.excluded_paths = list(excluded_paths) if excluded_paths is not None else ["/api/trade2/data"]
        self.cookie_domain = cookie_domain
        self.default_credentials = default_credentials
        self.navigation_timeout_ms = navigation_timeout_ms
        self.settle_delay_ms = settle_delay_ms
        self.poll_interval_ms = poll_interval_ms
        self.poll_deadline_ms = poll_deadline_ms
        self.continue_on_navigation_timeout = continue_on_navigation_timeout
        self.items_field = items_field
        self.max_concurrent_sessions = max_concurrent_sessions

    def create_poller(self) -> CorrelationPoller:
        return CorrelationPoller(
            post_signature=search_signature(self.api_base),
            get_signature=fetch_signature(self.api_base),
            poll_interval_ms=self.poll_interval_ms,
            deadline_ms=self.poll_deadline_ms,
        )


class InterceptionEngine:
    """Runs isolated interception sessions against the trade site."""

    def __init__(
        self,
        config: Optional[InterceptionEngineConfig] = None,
        session_manager: Optional[SessionManager] = None,
    ):
        """Initialize interception engine.

        Args:
            config: Engine configuration (uses defaults if None)
            session_manager: Pre-built session manager (mainly for tests)
        """
        self.config = config or InterceptionEngineConfig()
        self.session_manager = session_manager or SessionManager(
            browser_config=self.config.browser_config,
            api_base=self.config.api_base,
            excluded_paths=self.config.excluded_paths,
        )
        self.poller = self.config.create_poller()
        self._semaphore: Optional[asyncio.Semaphore] = None
        if self.config.max_concurrent_sessions:
            self._semaphore = asyncio.Semaphore(self.config.max_concurrent_sessions)

        self.stats = {
            'calls_attempted': 0,
            'calls_completed': 0,
            'calls_failed': 0,
            'partial_captures': 0,
            'initialized_at': None,
        }

    async def initialize(self) -> None:
        """Start the browser. Must be called once before any run."""
        logger.info("Initializing interception engine")
        await self.session_manager.start()
        self.stats['initialized_at'] = datetime.utcnow()
        logger.info("Interception engine initialized")

    async def shutdown(self) -> None:
        """Release the browser. Idempotent."""
        if not self.session_manager.is_initialized:
            return
        logger.info("Shutting down interception engine")
        await self.session_manager.stop()
        self.stats['initialized_at'] = None
        logger.info("Interception engine stopped")

    @property
    def is_initialized(self) -> bool:
        return self.session_manager.is_initialized

    async def run_interception(
        self,
        target_url: str,
        credentials: Optional[str] = None
    ) -> TradeApiResponse:
        """Open the target page in an isolated session and extract the trade exchange.

        Args:
            target_url: Trade search page URL (already validated by the caller)
            credentials: Cookie string; falls back to the configured default

        Returns:
            TradeApiResponse; failures are reported in its ``error`` field
        """
        session_id = new_session_id()
        self.stats['calls_attempted'] += 1
        logger.info(f"[{session_id}] Starting isolated session for: {target_url}")

        if self._semaphore is None:
            return await self._run(session_id, target_url, credentials)

        async with self._semaphore:
            return await self._run(session_id, target_url, credentials)

    async def _run(
        self,
        session_id: str,
        target_url: str,
        credentials: Optional[str]
    ) -> TradeApiResponse:
        try:
            async with self.session_manager.session(session_id) as session:
                result = await self._intercept(session, target_url, credentials)

        except NotInitializedError as e:
            logger.error(f"[{session_id}] Session not created: {e}")
            self.stats['calls_failed'] += 1
            return TradeApiResponse.failure(f"Error during interception: {e}")
        except Exception as e:
            logger.error(f"[{session_id}] Error during interception: {e}")
            self.stats['calls_failed'] += 1
            return TradeApiResponse.failure(f"Error during interception: {e}")

        self.stats['calls_completed'] += 1
        if result.intercepted_requests_count < 2:
            self.stats['partial_captures'] += 1
        logger.info(f"[{session_id}] Session completed successfully")
        return result

    async def _intercept(
        self,
        session: BrowsingSession,
        target_url: str,
        credentials: Optional[str]
    ) -> TradeApiResponse:
        session_id = session.session_id

        await self._apply_credentials(session, credentials)

        logger.info(f"[{session_id}] Navigating to: {target_url}")
        await self._navigate(session, target_url)
        await session.settle(self.config.settle_delay_ms)

        match = await self.poller.wait_for_match(session)

        logger.info(f"[{session_id}] Processing {len(session.captured_requests)} intercepted requests")
        extractor = ResultExtractor(items_field=self.config.items_field, session_id=session_id)
        return extractor.extract(match.post_match, match.get_match)

    async def _apply_credentials(self, session: BrowsingSession, credentials: Optional[str]) -> None:
        cookie_string = credentials or self.config.default_credentials
        cookies = parse_cookie_string(cookie_string, domain=self.config.cookie_domain)
        if not cookies:
            return
        await session.add_cookies(cookies)
        logger.info(f"[{session.session_id}] {len(cookies)} cookies configured")

    async def _navigate(self, session: BrowsingSession, target_url: str) -> None:
        try:
            await session.navigate(target_url, timeout_ms=self.config.navigation_timeout_ms)
        except PlaywrightTimeoutError as e:
            if self.config.continue_on_navigation_timeout:
                logger.warning(f"[{session.session_id}] Navigation timeout, continuing with partial capture")
                return
            raise NavigationError(target_url, f"timeout after {self.config.navigation_timeout_ms}ms") from e
        except Exception as e:
            raise NavigationError(target_url, str(e)) from e

    def get_stats(self) -> Dict[str, Any]:
        """Engine statistics for monitoring."""
        stats = self.stats.copy()
        if stats['initialized_at']:
            stats['uptime_seconds'] = (datetime.utcnow() - stats['initialized_at']).total_seconds()
            stats['initialized_at'] = stats['initialized_at'].isoformat()
        stats['is_initialized'] = self.is_initialized
        stats['active_sessions'] = self.session_manager.active_sessions
        return stats

    def __repr__(self) -> str:
        return (
            f"InterceptionEngine(initialized={self.is_initialized}, "
            f"attempted={self.stats['calls_attempted']}, "
            f"failed={self.stats['calls_failed']})"
        )
