"""Unit tests for browser factory."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from trade_interceptor.capture.browser_factory import (
    BrowserFactory, BrowserConfig, BrowserEngineType, DEFAULT_LAUNCH_ARGS, DEFAULT_VIEWPORT
)


class TestBrowserConfig:
    """Tests for BrowserConfig class."""

    def test_defaults(self):
        config = BrowserConfig()

        assert config.engine == BrowserEngineType.CHROMIUM
        assert config.to_launch_options() == {'headless': True, 'args': DEFAULT_LAUNCH_ARGS}
        assert config.to_context_options() == {'viewport': DEFAULT_VIEWPORT}

    def test_empty_launch_args_omitted(self):
        options = BrowserConfig(headless=False, launch_args=[]).to_launch_options()

        assert options == {'headless': False}

    def test_context_options(self):
        config = BrowserConfig(
            viewport={'width': 800, 'height': 600},
            user_agent="Test Agent",
            locale='en-US'
        )

        assert config.to_context_options() == {
            'viewport': {'width': 800, 'height': 600},
            'user_agent': "Test Agent",
            'locale': 'en-US',
        }


class TestBrowserFactory:
    """Tests for BrowserFactory class."""

    @pytest.fixture
    def mock_browser(self):
        browser = AsyncMock()
        browser.is_connected = MagicMock(return_value=True)
        browser.new_context.return_value = AsyncMock()
        return browser

    @pytest.fixture
    def mock_playwright(self, mock_browser):
        playwright = AsyncMock()
        playwright.chromium.launch.return_value = mock_browser
        playwright.firefox.launch.return_value = mock_browser
        return playwright

    @pytest.fixture
    def patched_playwright(self, mock_playwright):
        with patch('trade_interceptor.capture.browser_factory.async_playwright') as mock_async_playwright:
            mock_async_playwright.return_value.start = AsyncMock(return_value=mock_playwright)
            yield mock_async_playwright

    @pytest.mark.asyncio
    async def test_start_and_stop(self, patched_playwright, mock_playwright, mock_browser):
        factory = BrowserFactory()

        await factory.start()

        assert factory.browser is mock_browser
        mock_playwright.chromium.launch.assert_called_once_with(headless=True, args=DEFAULT_LAUNCH_ARGS)

        await factory.stop()

        mock_browser.close.assert_called_once()
        mock_playwright.stop.assert_called_once()
        assert factory.browser is None
        assert factory.playwright is None

    @pytest.mark.asyncio
    async def test_start_twice_launches_once(self, patched_playwright, mock_playwright):
        factory = BrowserFactory()

        await factory.start()
        await factory.start()

        assert mock_playwright.chromium.launch.call_count == 1

    @pytest.mark.asyncio
    async def test_firefox_engine(self, patched_playwright, mock_playwright):
        factory = BrowserFactory(BrowserConfig(engine=BrowserEngineType.FIREFOX))

        await factory.start()

        mock_playwright.firefox.launch.assert_called_once()
        mock_playwright.chromium.launch.assert_not_called()

    @pytest.mark.asyncio
    async def test_launch_failure_cleans_up(self, patched_playwright, mock_playwright):
        mock_playwright.chromium.launch.side_effect = RuntimeError("no browser binary")
        factory = BrowserFactory()

        with pytest.raises(RuntimeError, match="no browser binary"):
            await factory.start()

        mock_playwright.stop.assert_called_once()
        assert factory.playwright is None
        assert factory.browser is None

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, patched_playwright, mock_playwright):
        factory = BrowserFactory()
        await factory.stop()

        await factory.start()
        await factory.stop()
        await factory.stop()

        assert mock_playwright.stop.call_count == 1

    @pytest.mark.asyncio
    async def test_stop_tolerates_close_errors(self, patched_playwright, mock_playwright, mock_browser):
        mock_browser.close.side_effect = RuntimeError("already gone")
        factory = BrowserFactory()
        await factory.start()

        await factory.stop()

        mock_playwright.stop.assert_called_once()
        assert factory.browser is None

    @pytest.mark.asyncio
    async def test_create_context_requires_start(self):
        factory = BrowserFactory()

        with pytest.raises(RuntimeError, match="not launched"):
            await factory.create_context()

    @pytest.mark.asyncio
    async def test_create_and_close_context(self, patched_playwright, mock_browser):
        factory = BrowserFactory(BrowserConfig(user_agent="UA", locale='fr-FR'))
        await factory.start()

        context = await factory.create_context()

        mock_browser.new_context.assert_called_once_with(
            viewport=DEFAULT_VIEWPORT,
            user_agent="UA",
            locale='fr-FR'
        )

        await factory.close_context(context)

        context.close.assert_called_once()
