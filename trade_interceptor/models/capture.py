"""Pydantic models for intercepted trade traffic and extraction results.

This module defines the records kept while a browsing session observes the
trade site's API calls, the sanitized projections exposed to callers, and the
final response object returned by the interception engine.
"""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


class CapturedRequest(BaseModel):
    """A matched API request recorded by a session's traffic filter."""

    method: str = Field(description="HTTP method")
    url: str = Field(description="Request URL")
    request_headers: Dict[str, str] = Field(
        default_factory=dict,
        description="Request headers (may carry credentials)"
    )
    request_body: Optional[str] = Field(
        default=None,
        description="Raw request body, if any"
    )
    response_body: Optional[Any] = Field(
        default=None,
        description="Parsed JSON response, or raw text when parsing failed"
    )

    _response_attached: bool = PrivateAttr(default=False)

    def attach_response(self, body: Any) -> None:
        """Attach the captured response body.

        Args:
            body: Parsed JSON value or raw response text

        Raises:
            ValueError: If a response was already attached
        """
        if self._response_attached:
            raise ValueError(f"Response already attached for {self.method} {self.url}")
        self.response_body = body
        self._response_attached = True

    @property
    def has_response(self) -> bool:
        """Whether a response body has been attached."""
        return self._response_attached

    def short_description(self, max_url_length: int = 100) -> str:
        """Compact 'METHOD url' string for log output."""
        url = self.url
        if len(url) > max_url_length:
            url = f"{url[:max_url_length]}..."
        return f"{self.method} {url}"


class SanitizedRequest(BaseModel):
    """Caller-facing projection of a captured request.

    Headers and response bodies are never part of this model.
    """

    model_config = ConfigDict(populate_by_name=True)

    method: str = Field(description="HTTP method")
    url: str = Field(description="Request URL")
    post_data: Optional[str] = Field(
        default=None,
        alias="postData",
        description="Raw request body, if any"
    )


def sanitize_request(request: Union[CapturedRequest, SanitizedRequest]) -> SanitizedRequest:
    """Project a request onto the fields safe to expose.

    Sanitizing an already sanitized record returns an equal record.
    """
    if isinstance(request, SanitizedRequest):
        return SanitizedRequest(
            method=request.method,
            url=request.url,
            post_data=request.post_data,
        )
    return SanitizedRequest(
        method=request.method,
        url=request.url,
        post_data=request.request_body,
    )


class CorrelationMatch(BaseModel):
    """Outcome of waiting for the search submission and results fetch."""

    post_match: Optional[CapturedRequest] = None
    get_match: Optional[CapturedRequest] = None

    @property
    def is_complete(self) -> bool:
        """Both requests were observed."""
        return self.post_match is not None and self.get_match is not None

    @property
    def matched_count(self) -> int:
        return int(self.post_match is not None) + int(self.get_match is not None)


class TradeApiResponse(BaseModel):
    """Structured result of one interception run."""

    model_config = ConfigDict(populate_by_name=True)

    post_request: Optional[SanitizedRequest] = Field(default=None, alias="postRequest")
    get_request: Optional[SanitizedRequest] = Field(default=None, alias="getRequest")
    search_data: Optional[Any] = Field(default=None, alias="searchData")
    items: Optional[Any] = Field(default=None)
    error: Optional[str] = Field(default=None)

    @classmethod
    def failure(cls, message: str) -> "TradeApiResponse":
        """Build an error-only response."""
        return cls(error=message)

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def intercepted_requests_count(self) -> int:
        """Number of target requests that were matched (0, 1 or 2)."""
        return int(self.post_request is not None) + int(self.get_request is not None)

    def to_payload(self) -> Dict[str, Any]:
        """Serialize with camelCase keys, omitting unset fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
