"""Unit tests for cookie string parsing."""

from trade_interceptor.capture.cookies import parse_cookie_string


DOMAIN = ".pathofexile.com"


def test_parses_pairs():
    cookies = parse_cookie_string("POESESSID=abc123; cf_clearance=xyz", domain=DOMAIN)

    assert cookies == [
        {'name': 'POESESSID', 'value': 'abc123', 'domain': DOMAIN, 'path': '/'},
        {'name': 'cf_clearance', 'value': 'xyz', 'domain': DOMAIN, 'path': '/'},
    ]


def test_value_may_contain_equals():
    cookies = parse_cookie_string("token=a=b==", domain=DOMAIN)

    assert cookies[0]['name'] == 'token'
    assert cookies[0]['value'] == 'a=b=='


def test_skips_empty_and_malformed_segments():
    cookies = parse_cookie_string(" ; novalue; =orphan; good=1;", domain=DOMAIN)

    assert [c['name'] for c in cookies] == ['good']


def test_empty_input():
    assert parse_cookie_string(None, domain=DOMAIN) == []
    assert parse_cookie_string("", domain=DOMAIN) == []


def test_custom_path():
    cookies = parse_cookie_string("a=1", domain="example.com", path="/trade2")

    assert cookies[0]['domain'] == "example.com"
    assert cookies[0]['path'] == "/trade2"
