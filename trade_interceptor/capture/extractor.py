"""Turns correlated raw captures into a sanitized TradeApiResponse.

Extraction never fails as a whole: a body that does not parse only drops the
field derived from it, and the sanitized request projections are produced for
whatever was matched.
"""

import json
import logging
from typing import Any, Optional

from .exceptions import MalformedPayloadError
from ..models.capture import CapturedRequest, TradeApiResponse, sanitize_request

logger = logging.getLogger(__name__)


DEFAULT_ITEMS_FIELD = "result"


def parse_structured(payload: str) -> Any:
    """Parse a JSON document.

    Raises:
        MalformedPayloadError: If the payload is not valid JSON
    """
    try:
        return json.loads(payload)
    except (TypeError, ValueError) as e:
        raise MalformedPayloadError(f"Invalid JSON payload: {e}") from e


class ResultExtractor:
    """Builds the caller-facing result from the matched requests."""

    def __init__(self, items_field: str = DEFAULT_ITEMS_FIELD, session_id: Optional[str] = None):
        """Initialize result extractor.

        Args:
            items_field: Field of the fetch response holding the item array
            session_id: Identifier used to prefix log lines
        """
        self.items_field = items_field
        self.session_id = session_id or "-"

    def extract(
        self,
        post_match: Optional[CapturedRequest] = None,
        get_match: Optional[CapturedRequest] = None
    ) -> TradeApiResponse:
        """Convert the matched requests into a TradeApiResponse."""
        result = TradeApiResponse()

        if post_match is not None:
            result.post_request = sanitize_request(post_match)
            if post_match.request_body:
                try:
                    result.search_data = parse_structured(post_match.request_body)
                    logger.info(f"[{self.session_id}] Search data extracted from POST")
                except MalformedPayloadError as e:
                    logger.warning(f"[{self.session_id}] Error parsing POST search data: {e}")

        if get_match is not None:
            result.get_request = sanitize_request(get_match)
            if get_match.response_body is not None:
                try:
                    result.items = self._extract_items(get_match.response_body)
                except MalformedPayloadError as e:
                    logger.warning(f"[{self.session_id}] Error processing GET fetch response: {e}")

        logger.info(
            f"[{self.session_id}] Specific requests found: "
            f"POST search {'yes' if post_match else 'no'}, "
            f"GET fetch {'yes' if get_match else 'no'}"
        )
        return result

    def _extract_items(self, response_body: Any) -> Any:
        data = response_body
        if isinstance(data, (str, bytes)):
            data = parse_structured(data)

        if isinstance(data, dict) and isinstance(data.get(self.items_field), list):
            logger.info(f"[{self.session_id}] Results array extracted from '{self.items_field}' field")
            return data[self.items_field]

        logger.info(f"[{self.session_id}] Results extracted directly from response")
        return data
