import hmac

from fastapi import Header, HTTPException
from cashier_gate.settings import settings


def _same_key(provided: str, expected: str) -> bool:
    return hmac.compare_digest((provided or "").encode(), (expected or "").encode())


def require_api_key(x_api_key: str = Header(default="", alias="x-api-key")):
    """
    Gate endpoints. The key is optional: with API_KEY unset every caller is
    let through, otherwise x-api-key must match.
    """
    if not settings.API_KEY:
        return
    if not _same_key(x_api_key, settings.API_KEY):
        raise HTTPException(status_code=401, detail="Invalid API key")


def require_admin(x_admin_key: str = Header(default="", alias="x-admin-key")):
    """Admin endpoints expose client outcomes; with RBAC on and no key configured they stay closed."""
    if not settings.ADMIN_RBAC_ENABLED:
        return
    if not settings.ADMIN_API_KEY:
        raise HTTPException(status_code=403, detail="Admin access disabled (no key configured)")
    if not _same_key(x_admin_key, settings.ADMIN_API_KEY):
        raise HTTPException(status_code=403, detail="Invalid admin key")
