import asyncio
import json

import httpx
import pytest

from cashier_gate.transport.client import HttpTransport, TransportError, as_error_response, response_error

API = "https://api.example.com/v3"


def _transport(handler, token="a1-token"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpTransport(API, token, client=client)


def test_send_posts_json_with_bearer():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"msg_type": "cashier", "cashier": "https://pay.example.com/x"})

    async def scenario():
        transport = _transport(handler)
        try:
            return await transport.send({"cashier": "deposit"})
        finally:
            await transport.aclose()

    data = asyncio.run(scenario())

    assert data["cashier"] == "https://pay.example.com/x"
    assert seen[0].headers["Authorization"] == "Bearer a1-token"
    assert json.loads(seen[0].content) == {"cashier": "deposit"}


def test_api_errors_are_returned_not_raised():
    def handler(request):
        return httpx.Response(200, json={"msg_type": "cashier", "error": {"code": "ASK_TNC_APPROVAL"}})

    async def scenario():
        transport = _transport(handler)
        try:
            return await transport.send({"cashier": "deposit"})
        finally:
            await transport.aclose()

    assert asyncio.run(scenario())["error"]["code"] == "ASK_TNC_APPROVAL"


@pytest.mark.parametrize("handler", [
    lambda request: httpx.Response(502, text="bad gateway"),
    lambda request: httpx.Response(200, text="<html>not json</html>"),
    lambda request: httpx.Response(200, json=["not", "a", "dict"]),
])
def test_failures_raise_transport_error(handler):
    async def scenario():
        transport = _transport(handler)
        try:
            await transport.send({"get_account_status": 1})
        finally:
            await transport.aclose()

    with pytest.raises(TransportError) as exc:
        asyncio.run(scenario())
    assert exc.value.request == {"get_account_status": 1}


def test_connection_error_raises_transport_error():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    async def scenario():
        transport = _transport(handler)
        try:
            await transport.send({"get_settings": 1})
        finally:
            await transport.aclose()

    with pytest.raises(TransportError):
        asyncio.run(scenario())


def test_missing_base_url_raises():
    async def scenario():
        transport = HttpTransport("", client=httpx.AsyncClient())
        try:
            await transport.send({"get_settings": 1})
        finally:
            await transport.aclose()

    with pytest.raises(TransportError):
        asyncio.run(scenario())


def test_wait_shares_one_request_and_caches():
    calls = []

    def handler(request):
        calls.append(json.loads(request.content))
        return httpx.Response(200, json={"msg_type": "website_status", "website_status": {"site_status": "up"}})

    async def scenario():
        transport = _transport(handler)
        try:
            first, second = await asyncio.gather(transport.wait("website_status"), transport.wait("website_status"))
            third = await transport.wait("website_status")
            return first, second, third, transport.get_response("website_status")
        finally:
            await transport.aclose()

    first, second, third, cached = asyncio.run(scenario())

    assert calls == [{"website_status": 1}]
    assert first == second == third == cached


def test_wait_retries_after_failure():
    calls = []

    def handler(request):
        calls.append(1)
        if len(calls) == 1:
            return httpx.Response(503)
        return httpx.Response(200, json={"msg_type": "get_settings", "get_settings": {}})

    async def scenario():
        transport = _transport(handler)
        try:
            with pytest.raises(TransportError):
                await transport.wait("get_settings")
            return await transport.wait("get_settings")
        finally:
            await transport.aclose()

    assert asyncio.run(scenario())["msg_type"] == "get_settings"
    assert len(calls) == 2


def test_as_error_response_shape():
    assert as_error_response(TransportError("down")) == {"error": {"code": "TransportError", "message": "down"}}


@pytest.mark.parametrize("response, expected", [
    ({"msg_type": "cashier", "cashier": "https://x"}, None),
    ({"error": None}, None),
    ({"error": {}}, None),
    ({"error": {"code": "RateLimit", "message": "slow down"}}, {"code": "RateLimit", "message": "slow down"}),
    ({"error": {"code": "X"}}, {"code": "X", "message": ""}),
    ({"error": "rate limited"}, {"code": "", "message": "rate limited"}),
    (None, None),
])
def test_response_error(response, expected):
    assert response_error(response) == expected
