"""
Request/response transport to the trading backend.

The gate only needs two coroutines from a transport:
  - send(request)   -> decoded response dict ({msg_type: ..., error?: ...})
  - wait(msg_type)  -> first response for msg_type, requested once if needed
Anything exposing those two (e.g. a websocket client) can stand in for
HttpTransport.
"""
import asyncio
import time
from typing import Any, Dict, Optional

import httpx

from cashier_gate.settings import settings
from cashier_gate.observability.logging import log


class TransportError(RuntimeError):
    """Connectivity / protocol failure below the API error layer."""

    def __init__(self, message: str, request: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.request = request or {}


def as_error_response(exc: Exception, code: str = "TransportError") -> Dict[str, Any]:
    """Shape a transport failure like an API error so stages can treat it as inconclusive."""
    return {"error": {"code": code, "message": str(exc)}}


def response_error(response: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
    """
    The response's error as {"code", "message"}, or None when there is none.
    A null or empty `error` counts as success; a bare string is taken as the message.
    """
    err = (response or {}).get("error")
    if not err:
        return None
    if isinstance(err, dict):
        return {"code": str(err.get("code") or ""), "message": str(err.get("message") or "")}
    return {"code": "", "message": str(err)}


def _msg_type(request: Dict[str, Any]) -> str:
    return next(iter(request), "") if request else ""


class HttpTransport:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: str = "",
        *,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.CASHIER_API_URL).rstrip("/")
        self.token = token
        self._client = client or httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.TRANSPORT_TIMEOUT_SEC
        )
        self._responses: Dict[str, Dict[str, Any]] = {}
        self._waiters: Dict[str, "asyncio.Future"] = {}

    def _headers(self) -> dict:
        h = {"Content-Type": "application/json"}
        if self.token:
            h["Authorization"] = f"Bearer {self.token}"
        return h

    async def send(self, request: Dict[str, Any]) -> Dict[str, Any]:
        if not self.base_url:
            raise TransportError("CASHIER_API_URL is not set", request)

        msg_type = _msg_type(request)
        start = time.time()
        try:
            resp = await self._client.post(self.base_url, headers=self._headers(), json=request)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            log("transport_error", msg_type=msg_type, statusCode=int(e.response.status_code),
                elapsedMs=int((time.time() - start) * 1000))
            raise TransportError(f"{msg_type}: HTTP {e.response.status_code}", request) from e
        except httpx.HTTPError as e:
            log("transport_error", msg_type=msg_type, errorType=type(e).__name__,
                elapsedMs=int((time.time() - start) * 1000))
            raise TransportError(f"{msg_type}: {type(e).__name__}: {e}", request) from e
        except ValueError as e:
            log("transport_error", msg_type=msg_type, errorType="InvalidJSON")
            raise TransportError(f"{msg_type}: response is not JSON", request) from e

        if not isinstance(data, dict):
            raise TransportError(f"{msg_type}: unexpected response shape", request)

        self._responses[data.get("msg_type") or msg_type] = data
        return data

    async def wait(self, msg_type: str) -> Dict[str, Any]:
        if msg_type in self._responses:
            return self._responses[msg_type]
        task = self._waiters.get(msg_type)
        if task is None:
            task = asyncio.ensure_future(self.send({msg_type: 1}))
            self._waiters[msg_type] = task
        try:
            return await task
        except TransportError:
            # Let a later wait() issue a fresh request
            self._waiters.pop(msg_type, None)
            raise

    def get_response(self, msg_type: str) -> Optional[Dict[str, Any]]:
        return self._responses.get(msg_type)

    async def aclose(self) -> None:
        await self._client.aclose()
