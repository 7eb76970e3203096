import asyncio

import pytest

from cashier_gate.store.models import ClientInfo


class FakeTransport:
    """
    In-memory stand-in for the backend transport.

    responses maps msg_type -> response dict, a list of dicts (consumed in
    order, the last one repeats), an exception instance (raised), or a
    callable(request) returning a dict.
    """

    def __init__(self, responses=None, token=""):
        self.responses = dict(responses or {})
        self.token = token
        self.sent = []
        self.waited = []
        self.closed = False

    def _resolve(self, msg_type, request):
        value = self.responses.get(msg_type, {"msg_type": msg_type, msg_type: {}})
        if isinstance(value, list):
            value = value.pop(0) if len(value) > 1 else value[0]
        if isinstance(value, BaseException):
            raise value
        if callable(value):
            value = value(request)
        return value

    async def send(self, request):
        self.sent.append(dict(request))
        await asyncio.sleep(0)
        return self._resolve(next(iter(request)), request)

    async def wait(self, msg_type):
        self.waited.append(msg_type)
        await asyncio.sleep(0)
        return self._resolve(msg_type, {msg_type: 1})

    async def aclose(self):
        self.closed = True

    def sent_types(self):
        return [next(iter(r)) for r in self.sent]


@pytest.fixture
def fake_transport():
    return FakeTransport


@pytest.fixture
def usd_client():
    return ClientInfo(loginid="CR90000001", email="client@example.com", currency="USD", balance=100.0)


@pytest.fixture
def btc_client():
    return ClientInfo(loginid="CR90000002", email="client@example.com", currency="BTC", balance=1.5)