"""Correlation poller waiting for the search submission and results fetch.

The poller never hooks into the traffic filter. It periodically scans the
session's capture list, so requests may arrive in any order and the recording
path stays untouched by correlation logic.
"""

import asyncio
import logging
from typing import Iterable, Optional

from .session import BrowsingSession
from ..models.capture import CapturedRequest, CorrelationMatch

logger = logging.getLogger(__name__)


DEFAULT_API_BASE = "https://www.pathofexile.com/api/trade2"


class RequestSignature:
    """Method plus URL fragment identifying one kind of API call."""

    def __init__(self, method: str, url_fragment: str):
        self.method = method.upper()
        self.url_fragment = url_fragment

    def matches(self, request: CapturedRequest) -> bool:
        return request.method.upper() == self.method and self.url_fragment in request.url

    def __repr__(self) -> str:
        return f"RequestSignature({self.method} {self.url_fragment})"


def search_signature(api_base: str = DEFAULT_API_BASE) -> RequestSignature:
    """POST that submits the trade search."""
    return RequestSignature("POST", f"{api_base.rstrip('/')}/search/poe2")


def fetch_signature(api_base: str = DEFAULT_API_BASE) -> RequestSignature:
    """GET that fetches the result listings."""
    return RequestSignature("GET", f"{api_base.rstrip('/')}/fetch")


def find_first(
    requests: Iterable[CapturedRequest],
    signature: RequestSignature
) -> Optional[CapturedRequest]:
    """Earliest captured request matching the signature."""
    for request in requests:
        if signature.matches(request):
            return request
    return None


class CorrelationPoller:
    """Polls a session's captures until both target requests are seen."""

    def __init__(
        self,
        post_signature: Optional[RequestSignature] = None,
        get_signature: Optional[RequestSignature] = None,
        poll_interval_ms: int = 500,
        deadline_ms: int = 15000,
        progress_log_interval_ms: int = 2000,
    ):
        """Initialize correlation poller.

        Args:
            post_signature: Signature of the search submission
            get_signature: Signature of the results fetch
            poll_interval_ms: Time between scans of the capture list
            deadline_ms: Default bound on the total wait
            progress_log_interval_ms: How often waiting progress is logged
        """
        self.post_signature = post_signature or search_signature()
        self.get_signature = get_signature or fetch_signature()
        self.poll_interval_ms = poll_interval_ms
        self.deadline_ms = deadline_ms
        self.progress_log_interval_ms = progress_log_interval_ms

    def scan(self, requests: Iterable[CapturedRequest]) -> CorrelationMatch:
        """Single pass over the captured requests."""
        requests = list(requests)
        return CorrelationMatch(
            post_match=find_first(requests, self.post_signature),
            get_match=find_first(requests, self.get_signature),
        )

    async def wait_for_match(
        self,
        session: BrowsingSession,
        deadline_ms: Optional[int] = None
    ) -> CorrelationMatch:
        """Wait until both requests are captured or the deadline elapses.

        Hitting the deadline is not an error: whatever subset was found is
        returned and absent requests are left unset.
        """
        deadline_ms = self.deadline_ms if deadline_ms is None else deadline_ms
        session_id = session.session_id
        loop = asyncio.get_running_loop()
        started = loop.time()
        deadline = started + deadline_ms / 1000.0
        next_progress_log = started

        while True:
            match = self.scan(session.captured_requests)
            if match.is_complete:
                logger.info(f"[{session_id}] Both target requests captured")
                logger.debug(f"[{session_id}]   - {match.post_match.short_description(80)}")
                logger.debug(f"[{session_id}]   - {match.get_match.short_description(80)}")
                return match

            now = loop.time()
            if now >= deadline:
                break

            if now >= next_progress_log:
                logger.info(
                    f"[{session_id}] Waiting for APIs: "
                    f"POST search {'found' if match.post_match else 'missing'} | "
                    f"GET fetch {'found' if match.get_match else 'missing'} "
                    f"({now - started:.1f}s)"
                )
                next_progress_log = now + self.progress_log_interval_ms / 1000.0

            await asyncio.sleep(min(self.poll_interval_ms / 1000.0, max(0.0, deadline - now)))

        logger.warning(f"[{session_id}] Timeout waiting for target API requests")
        logger.info(f"[{session_id}]   Intercepted: {len(session.captured_requests)} requests")
        for request in list(session.captured_requests):
            logger.info(f"[{session_id}]   - {request.short_description()}")

        return match
