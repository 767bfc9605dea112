"""Owner of the process-wide Playwright browser.

The browser is launched once by the session manager and shared by every call.
Each call gets a brand-new context from ``create_context`` so cookies and
storage never leak between calls; contexts are not reused.
"""

import logging
from typing import Any, Dict, List, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Playwright,
    async_playwright,
)

logger = logging.getLogger(__name__)


DEFAULT_LAUNCH_ARGS = ['--no-sandbox', '--disable-setuid-sandbox']
DEFAULT_VIEWPORT = {'width': 1920, 'height': 1080}


class BrowserEngineType:
    """Supported browser engine types."""
    CHROMIUM = "chromium"
    FIREFOX = "firefox"
    WEBKIT = "webkit"


class BrowserConfig:
    """Launch and per-context options of the shared browser."""

    def __init__(
        self,
        engine: str = BrowserEngineType.CHROMIUM,
        headless: bool = True,
        launch_args: Optional[List[str]] = None,
        viewport: Optional[Dict[str, int]] = None,
        user_agent: Optional[str] = None,
        locale: Optional[str] = None,
    ):
        """Initialize browser configuration.

        Args:
            engine: chromium, firefox or webkit
            headless: Launch without a visible window
            launch_args: Browser command line (sandbox flags by default)
            viewport: Context viewport as {'width', 'height'}
            user_agent: User-Agent override for every context
            locale: Locale for every context
        """
        self.engine = engine
        self.headless = headless
        self.launch_args = list(DEFAULT_LAUNCH_ARGS if launch_args is None else launch_args)
        self.viewport = dict(viewport or DEFAULT_VIEWPORT)
        self.user_agent = user_agent
        self.locale = locale

    def to_launch_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``BrowserType.launch``."""
        options: Dict[str, Any] = {'headless': self.headless}
        if self.launch_args:
            options['args'] = self.launch_args
        return options

    def to_context_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``Browser.new_context``."""
        options: Dict[str, Any] = {'viewport': self.viewport}
        if self.user_agent:
            options['user_agent'] = self.user_agent
        if self.locale:
            options['locale'] = self.locale
        return options


class BrowserFactory:
    """Starts Playwright, launches the browser and hands out fresh contexts."""

    def __init__(self, config: Optional[BrowserConfig] = None):
        self.config = config or BrowserConfig()
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None

    async def start(self) -> None:
        """Launch the browser. A second call is ignored."""
        if self.playwright is not None:
            logger.warning("Browser already launched")
            return

        logger.info(f"Launching {self.config.engine} browser (headless={self.config.headless})")

        try:
            self.playwright = await async_playwright().start()
            browser_type = getattr(self.playwright, self.config.engine, self.playwright.chromium)
            self.browser = await browser_type.launch(**self.config.to_launch_options())
        except Exception as e:
            logger.error(f"Browser launch failed: {e}")
            await self.stop()
            raise

        logger.info("Browser launched")

    async def stop(self) -> None:
        """Close the browser and Playwright. Safe to call more than once."""
        if self.browser is None and self.playwright is None:
            return

        browser, self.browser = self.browser, None
        playwright, self.playwright = self.playwright, None

        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                logger.error(f"Error closing browser: {e}")

        if playwright is not None:
            try:
                await playwright.stop()
            except Exception as e:
                logger.error(f"Error stopping Playwright: {e}")

        logger.info("Browser closed")

    async def create_context(self) -> BrowserContext:
        """New isolated context with the configured options.

        Raises:
            RuntimeError: If the browser has not been launched
        """
        if self.browser is None:
            raise RuntimeError("Browser not launched. Call start() first.")
        return await self.browser.new_context(**self.config.to_context_options())

    async def close_context(self, context: BrowserContext) -> None:
        await context.close()
