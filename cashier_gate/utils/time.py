import time
from datetime import datetime, timezone
from typing import Optional

def now_ms() -> int:
    return int(time.time() * 1000)

def format_exclusion_date(excluded_until: Optional[int]) -> str:
    """
    Render a self-exclusion end (epoch seconds) as 'DD Mon YYYY' in UTC.
    Missing or malformed values render as an empty string.
    """
    if excluded_until is None:
        return ""
    try:
        dt = datetime.fromtimestamp(int(excluded_until), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError):
        return ""
    return dt.strftime("%d %b %Y")
