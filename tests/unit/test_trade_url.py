"""Unit tests for trade URL helpers."""

import pytest

from trade_interceptor.utils.trade_url import (
    EXAMPLE_URL,
    TradeUrlInfo,
    is_valid_trade_url,
    parse_trade_url,
)


class TestIsValidTradeUrl:
    """Tests for is_valid_trade_url."""

    @pytest.mark.parametrize("url", [
        "https://www.pathofexile.com/trade2/search/poe2/Standard/AbC123",
        "http://www.pathofexile.com/trade2/search/poe2/LeagueX/AbC123",
        EXAMPLE_URL,
    ])
    def test_valid(self, url):
        assert is_valid_trade_url(url) is True

    @pytest.mark.parametrize("url", [
        None,
        "",
        "not a url",
        "https://example.com/trade2/search/poe2/Standard/AbC123",
        "https://www.pathofexile.com/trade/search/Standard/AbC123",
        "ftp://www.pathofexile.com/trade2/search/poe2/Standard/AbC123",
    ])
    def test_invalid(self, url):
        assert is_valid_trade_url(url) is False


class TestParseTradeUrl:
    """Tests for parse_trade_url."""

    def test_extracts_league_and_id(self):
        info = parse_trade_url("https://www.pathofexile.com/trade2/search/poe2/LeagueX/AbC123")

        assert info == TradeUrlInfo(league="LeagueX", trade_id="AbC123")

    def test_unquotes_league(self):
        info = parse_trade_url(EXAMPLE_URL)

        assert info.league == "Rise of the Abyssal"
        assert info.trade_id == "EB3jnpzzt5"

    def test_missing_segments(self):
        assert parse_trade_url("https://www.pathofexile.com/trade2/search/poe2/Standard") is None
        assert parse_trade_url("https://www.pathofexile.com/trade2/search/poe2/Standard/") is None
        assert parse_trade_url("https://www.pathofexile.com/other/path/x/y/z") is None
