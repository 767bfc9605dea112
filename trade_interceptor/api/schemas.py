"""API response schemas for the trade interceptor HTTP front door."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class TradeMetadata(BaseModel):
    """Context attached to every successful /api/trade response."""

    model_config = ConfigDict(populate_by_name=True)

    trade_url: str = Field(alias="tradeUrl")
    league: Optional[str] = None
    trade_id: Optional[str] = Field(default=None, alias="tradeId")
    timestamp: datetime
    intercepted_requests_count: int = Field(alias="interceptedRequestsCount")


class HealthResponse(BaseModel):
    """Service health snapshot."""

    status: str = Field(description="OK when the browser is running, otherwise DEGRADED")
    service: str
    version: str
    timestamp: datetime
    browser_running: bool
    engine: Dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Error body returned by the HTTP layer."""

    error: str
    details: Optional[str] = None
    example: Optional[str] = None
    provided: Optional[str] = None
    expected: Optional[str] = None
    note: Optional[str] = None
    available_endpoints: Optional[List[str]] = Field(default=None, alias="availableEndpoints")

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
