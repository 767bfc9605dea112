"""Interception-and-correlation engine for the trade site.

Main Components:
- Browser Factory: owns the single launched Playwright browser
- Session Manager: one isolated context/page/filter per call
- Traffic Filter: records the trade API calls a page makes
- Correlation Poller: waits for the search POST and the fetch GET
- Result Extractor: builds the sanitized TradeApiResponse
- Interception Engine: orchestrates a complete run

Usage:
    from trade_interceptor.capture import InterceptionEngine

    engine = InterceptionEngine()
    await engine.initialize()
    result = await engine.run_interception(trade_url, cookies)
    await engine.shutdown()
"""

__all__ = [
    # Main components
    "InterceptionEngine",
    "InterceptionEngineConfig",
    "BrowserFactory",
    "BrowserConfig",
    "SessionManager",
    "BrowsingSession",
    "TrafficFilter",
    "CorrelationPoller",
    "RequestSignature",
    "ResultExtractor",

    # Helpers
    "parse_cookie_string",
    "sanitize_request",

    # Errors
    "InterceptionError",
    "NotInitializedError",
    "NavigationError",
    "MalformedPayloadError",
]

from ..models.capture import sanitize_request

from .browser_factory import BrowserFactory, BrowserConfig
from .cookies import parse_cookie_string
from .engine import InterceptionEngine, InterceptionEngineConfig
from .exceptions import (
    InterceptionError,
    NotInitializedError,
    NavigationError,
    MalformedPayloadError,
)
from .extractor import ResultExtractor
from .poller import CorrelationPoller, RequestSignature
from .session import SessionManager, BrowsingSession
from .traffic_filter import TrafficFilter
