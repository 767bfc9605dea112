"""Data models for the trade interceptor."""

from .capture import (
    CapturedRequest,
    SanitizedRequest,
    CorrelationMatch,
    TradeApiResponse,
    sanitize_request,
)

__all__ = [
    'CapturedRequest',
    'SanitizedRequest',
    'CorrelationMatch',
    'TradeApiResponse',
    'sanitize_request',
]
