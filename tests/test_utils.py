import pytest

from cashier_gate.messages import localize
from cashier_gate.utils.currency import display_code, get_min_withdrawal, is_cryptocurrency
from cashier_gate.utils.time import format_exclusion_date
from cashier_gate.utils.url import find_provider, get_hash_value, parse_cashier_type, url_for


@pytest.mark.parametrize("url, expected", [
    ("https://www.binary.com/en/cashier/forwardws.html?action=deposit", "deposit"),
    ("https://www.binary.com/en/cashier/forwardws.html?action=withdraw#token=x", "withdraw"),
    ("https://www.binary.com/en/cashier/forwardws.html?action=transfer", None),
    ("https://www.binary.com/en/cashier/forwardws.html", None),
])
def test_parse_cashier_type(url, expected):
    assert parse_cashier_type(url) == expected


def test_get_hash_value():
    assert get_hash_value("https://x.com/p?a=1#token=ab12CD34", "token") == "ab12CD34"
    assert get_hash_value("https://x.com/p#foo=1&token=zz", "token") == "zz"
    assert get_hash_value("https://x.com/p?token=query-only", "token") == ""


def test_find_provider():
    assert find_provider("https://www.binary.com/en/cashier/epg_forwardws.html") == "epg"
    assert find_provider("https://www.binary.com/en/cashier/forwardws.html") is None
    assert find_provider("https://x.com/alt/page", markers=["alt"]) == "alt"


def test_url_for():
    assert url_for("user/set-currency") == "https://www.binary.com/en/user/set-currency.html"


def test_currency_helpers():
    assert is_cryptocurrency("btc")
    assert not is_cryptocurrency("USD")
    assert not is_cryptocurrency("")
    assert get_min_withdrawal("ETH") == 0.002
    assert get_min_withdrawal("EUR") == 1.0
    assert display_code("UST") == "USDT"
    assert display_code("usd") == "USD"


def test_format_exclusion_date():
    assert format_exclusion_date(1893456000) == "01 Jan 2030"
    assert format_exclusion_date(None) == ""
    assert format_exclusion_date("soon") == ""


def test_localize():
    assert localize("until [_1].", "01 Jan 2030") == "until 01 Jan 2030."
    assert localize("[_1] and [_2]", "a") == "a and [_2]"
    assert localize("plain") == "plain"
