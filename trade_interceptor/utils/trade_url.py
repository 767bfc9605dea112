"""Validation and parsing of trade search page URLs.

Trade search pages live under ``/trade2/search/poe2/{league}/{tradeId}`` on
the official site; the league segment is URL encoded.
"""

from typing import NamedTuple, Optional
from urllib.parse import urlparse, unquote


TRADE_HOST = "www.pathofexile.com"
TRADE_SEARCH_PATH = "/trade2/search/poe2/"
EXPECTED_FORMAT = "https://www.pathofexile.com/trade2/search/poe2/{league}/{tradeId}"
EXAMPLE_URL = "https://www.pathofexile.com/trade2/search/poe2/Rise%20of%20the%20Abyssal/EB3jnpzzt5"


class TradeUrlInfo(NamedTuple):
    """League and search id extracted from a trade URL."""
    league: str
    trade_id: str


def is_valid_trade_url(url: Optional[str]) -> bool:
    """Check that a URL points at a trade search page on the official host."""
    if not url:
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return (
        parsed.scheme in ('http', 'https')
        and parsed.hostname == TRADE_HOST
        and TRADE_SEARCH_PATH in parsed.path
    )


def parse_trade_url(url: str) -> Optional[TradeUrlInfo]:
    """Extract league and trade id from a trade search URL.

    Returns:
        TradeUrlInfo, or None when the path does not follow the search scheme

    Example:
        >>> parse_trade_url("https://www.pathofexile.com/trade2/search/poe2/Standard/AbC123")
        TradeUrlInfo(league='Standard', trade_id='AbC123')
    """
    try:
        path_parts = urlparse(url).path.split('/')
    except ValueError:
        return None

    # ['', 'trade2', 'search', 'poe2', league, tradeId, ...]
    if len(path_parts) < 6 or path_parts[1:4] != ['trade2', 'search', 'poe2']:
        return None
    if not path_parts[4] or not path_parts[5]:
        return None

    return TradeUrlInfo(league=unquote(path_parts[4]), trade_id=path_parts[5])
