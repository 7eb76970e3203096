from typing import List, Optional
from urllib.parse import parse_qs, urlparse

from cashier_gate.settings import settings

CASHIER_TYPES = ("deposit", "withdraw")


def get_hash_value(url: str, key: str) -> str:
    """
    Read `key` from the URL fragment. Fragments look like `#token=abc` or
    `#foo=1&token=abc`; a missing key yields an empty string.
    """
    fragment = urlparse(url or "").fragment
    values = parse_qs(fragment, keep_blank_values=True).get(key)
    return values[0] if values else ""


def get_query_param(url: str, key: str) -> str:
    values = parse_qs(urlparse(url or "").query, keep_blank_values=True).get(key)
    return values[0] if values else ""


def parse_cashier_type(url: str) -> Optional[str]:
    action = get_query_param(url, "action")
    return action if action in CASHIER_TYPES else None


def get_path(url: str) -> str:
    return urlparse(url or "").path


def find_provider(url: str, markers: Optional[List[str]] = None) -> Optional[str]:
    """First provider marker contained in the page path, if any."""
    path = get_path(url)
    for marker in (markers if markers is not None else settings.provider_markers()):
        if marker and marker in path:
            return marker
    return None


def url_for(path: str) -> str:
    return f"{settings.SITE_BASE_URL.rstrip('/')}/{path.lstrip('/')}.html"
