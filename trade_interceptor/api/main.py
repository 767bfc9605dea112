"""FastAPI application exposing the interception engine over HTTP.

The app validates trade URLs, sources cookies for the call, forwards the
request to the interception engine and returns its result with some
metadata. The engine is started and stopped with the application lifespan.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from trade_interceptor import __version__
from trade_interceptor.api.schemas import ErrorResponse, HealthResponse, TradeMetadata
from trade_interceptor.capture.engine import InterceptionEngine
from trade_interceptor.config import InterceptorSettings, load_settings
from trade_interceptor.utils.trade_url import (
    EXAMPLE_URL,
    EXPECTED_FORMAT,
    is_valid_trade_url,
    parse_trade_url,
)

logger = logging.getLogger(__name__)

SERVICE_NAME = "PoE2 Trade API Interceptor"
COOKIE_HEADER = "X-POE-Cookies"
AVAILABLE_ENDPOINTS = ["/", "/health", "/api/trade"]


def resolve_cookies(request: Request, settings: InterceptorSettings) -> Optional[str]:
    """Pick the cookies for a call.

    Order: the X-POE-Cookies header, then the configured development cookies
    (development only), then the request's own Cookie header.
    """
    custom_cookies = request.headers.get(COOKIE_HEADER)
    if custom_cookies:
        return custom_cookies

    if settings.is_development and settings.dev_cookies:
        return settings.dev_cookies

    return request.headers.get("cookie") or None


def create_app(
    settings: Optional[InterceptorSettings] = None,
    engine: Optional[InterceptionEngine] = None
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Loaded settings (loaded from the environment if None)
        engine: Interception engine (built from settings if None)

    Returns:
        Configured FastAPI application instance
    """
    settings = settings or load_settings()
    engine = engine or InterceptionEngine(settings.to_engine_config())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await engine.initialize()
        logger.info("Interceptor initialized")
        try:
            yield
        finally:
            logger.info("Shutting down server")
            await engine.shutdown()

    app = FastAPI(
        title=SERVICE_NAME,
        version=__version__,
        description="Opens trade search pages in an isolated headless browser and "
                    "returns the search submission and result listings the page requested.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", COOKIE_HEADER],
        expose_headers=["X-Request-ID"],
    )

    @app.middleware("http")
    async def add_request_id_and_logging(request: Request, call_next):
        """Add request ID and logging middleware."""
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.time()

        logger.info(
            f"Request started: {request.method} {request.url.path}",
            extra={"request_id": request_id, "method": request.method, "path": request.url.path}
        )

        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        duration = time.time() - start_time
        logger.info(
            f"Request completed: {request.method} {request.url.path} - {response.status_code}",
            extra={
                "request_id": request_id,
                "status_code": response.status_code,
                "duration_ms": round(duration * 1000, 2),
            }
        )
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """Keep error bodies in the service's own shape."""
        if exc.status_code == 404:
            body = ErrorResponse(error="Endpoint not found", available_endpoints=AVAILABLE_ENDPOINTS)
        else:
            body = ErrorResponse(error=str(exc.detail))
        return JSONResponse(status_code=exc.status_code, content=body.to_payload())

    @app.get("/api/trade", tags=["Trade"], summary="Intercept the trade requests of a search page")
    async def intercept_trade(request: Request, url: Optional[str] = Query(default=None)):
        if not url:
            return JSONResponse(
                status_code=400,
                content=ErrorResponse(
                    error='Parameter "url" is required',
                    example=f"/api/trade?url={EXAMPLE_URL}",
                ).to_payload()
            )

        if not is_valid_trade_url(url):
            return JSONResponse(
                status_code=400,
                content=ErrorResponse(
                    error="Invalid URL. Must be a valid PoE2 trade URL",
                    provided=url,
                    expected=EXPECTED_FORMAT,
                ).to_payload()
            )

        url_info = parse_trade_url(url)
        logger.info(
            f"Processing trade - league: {url_info.league if url_info else None}, "
            f"id: {url_info.trade_id if url_info else None}"
        )

        cookies = resolve_cookies(request, settings)
        if not cookies and not settings.is_development:
            return JSONResponse(
                status_code=401,
                content=ErrorResponse(
                    error=f"Cookies are required. Send them in the {COOKIE_HEADER} header",
                    note="In development, configure dev_cookies (TRADE_INTERCEPTOR_DEV_COOKIES)",
                ).to_payload()
            )
        logger.info(f"Using cookies: {'configured' if cookies else 'not provided'}")

        try:
            result = await engine.run_interception(url, cookies)
        except Exception as e:
            logger.error(f"Error in /api/trade endpoint: {e}", exc_info=True)
            return JSONResponse(
                status_code=500,
                content=ErrorResponse(error="Internal server error", details=str(e)).to_payload()
            )

        metadata = TradeMetadata(
            trade_url=url,
            league=url_info.league if url_info else None,
            trade_id=url_info.trade_id if url_info else None,
            timestamp=datetime.utcnow(),
            intercepted_requests_count=result.intercepted_requests_count,
        )
        payload = result.to_payload()
        payload["metadata"] = metadata.model_dump(mode="json", by_alias=True)
        return JSONResponse(status_code=200, content=payload)

    @app.get("/health", response_model=HealthResponse, tags=["System"], summary="Health check")
    async def health_check():
        browser_running = engine.is_initialized
        return HealthResponse(
            status="OK" if browser_running else "DEGRADED",
            service=SERVICE_NAME,
            version=__version__,
            timestamp=datetime.utcnow(),
            browser_running=browser_running,
            engine=engine.get_stats(),
        )

    @app.get("/", include_in_schema=False)
    async def root():
        return JSONResponse(
            content={
                "service": SERVICE_NAME,
                "version": __version__,
                "endpoints": {
                    "GET /api/trade?url={poe2_url}": "Intercepts the trade requests of a PoE2 search page",
                    "GET /health": "Service status",
                    "GET /": "This page",
                },
                "usage": {
                    "development": "Configure dev_cookies or TRADE_INTERCEPTOR_DEV_COOKIES",
                    "production": f"Send cookies in the {COOKIE_HEADER} header",
                },
                "example": f"/api/trade?url={EXAMPLE_URL}",
            }
        )

    return app


if __name__ == "__main__":
    import uvicorn

    _settings = load_settings()
    uvicorn.run(
        create_app(_settings),
        host=_settings.server.host,
        port=_settings.server.port,
        log_level=_settings.log_level.lower(),
    )
