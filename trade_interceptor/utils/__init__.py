"""Utility modules for the trade interceptor."""

from .trade_url import TradeUrlInfo, is_valid_trade_url, parse_trade_url

__all__ = ['TradeUrlInfo', 'is_valid_trade_url', 'parse_trade_url']
