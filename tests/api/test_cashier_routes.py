import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient

from cashier_gate.main import app
from cashier_gate.settings import settings

CLIENT = {"loginid": "CR1", "email": "a@b.c", "currency": "USD", "balance": "25.00"}


@pytest.fixture
def http():
    return TestClient(app)


@pytest.fixture
def backend(fake_transport):
    transports = []

    def factory(token=""):
        transport = fake_transport({
            "get_account_status": {"msg_type": "get_account_status", "get_account_status": {"status": []}},
            "cashier": {"msg_type": "cashier", "cashier": "https://pay.example.com/s/9"},
        }, token=token)
        transports.append(transport)
        return transport

    with patch("cashier_gate.api.routes.HttpTransport", side_effect=factory), \
         patch("cashier_gate.api.routes._publish") as mock_publish:
        yield transports, mock_publish


def test_root_and_health(http):
    assert http.get("/").json()["status"] == "ok"
    assert http.get("/health").json() == {"status": "ok"}


def test_session_embeds_cashier(http, backend):
    transports, mock_publish = backend
    res = http.post(
        "/api/cashier/session",
        json={"url": "https://www.binary.com/en/cashier/forwardws.html?action=deposit", "client": CLIENT},
        headers={"Authorization": "Bearer a1-abc"},
    )

    assert res.status_code == 200
    body = res.json()
    assert body["status"] == "success"
    assert body["outcome"]["outcome"] == "EMBEDDED"
    assert body["view"]["frameUrl"] == "https://pay.example.com/s/9"
    assert transports[0].token == "a1-abc"
    # Background close ran after the response
    assert transports[0].closed is True
    assert mock_publish.called


def test_session_zero_balance_withdrawal(http, backend):
    transports, _ = backend
    client = dict(CLIENT, balance=0)
    res = http.post(
        "/api/cashier/session",
        json={"url": "https://www.binary.com/en/cashier/forwardws.html?action=withdraw", "client": client},
    )

    body = res.json()
    assert body["outcome"]["outcome"] == "BLOCKED"
    assert body["outcome"]["reason"]["kind"] == "NoBalance"
    assert body["view"]["messageId"] == "no_balance_error"
    assert transports[0].sent == []


def test_session_consent_input_is_used(http, fake_transport):
    transport = fake_transport({
        "cashier": [
            {"msg_type": "cashier", "error": {"code": "ASK_UK_FUNDS_PROTECTION", "message": "consent"}},
            {"msg_type": "cashier", "cashier": "https://pay.example.com/s/10"},
        ],
    })
    with patch("cashier_gate.api.routes.HttpTransport", return_value=transport), \
         patch("cashier_gate.api.routes._publish"):
        res = http.post("/api/cashier/session", json={
            "url": "https://www.binary.com/en/cashier/forwardws.html?action=deposit",
            "client": CLIENT,
            "consent": {"fundsProtectionAck": True, "termsAck": True},
        })

    assert res.json()["outcome"]["outcome"] == "EMBEDDED"
    assert "ukgc_funds_protection" in transport.sent_types()


def test_evaluate_blocked(http):
    res = http.post("/api/cashier/evaluate", json={
        "accountStatus": {"status": ["cashier_locked"], "cashier_validation": ["system_maintenance"]},
        "cashierType": "withdraw",
        "currency": "BTC",
    })

    body = res.json()
    assert body["blocked"] is True
    assert body["reason"]["kind"] == "MaintenanceWithdrawal"
    assert body["reason"]["branch"] == "cashier_locked"
    assert body["panel"] == "errors"


def test_evaluate_canned_text_is_filled_in(http):
    res = http.post("/api/cashier/evaluate", json={
        "accountStatus": {"status": ["cashier_locked"], "cashier_validation": ["ASK_TIN_INFORMATION"]},
        "cashierType": "deposit",
        "currency": "USD",
    })

    body = res.json()
    assert body["messageId"] == "tin_error"
    assert "tax identification number" in body["message"]


def test_evaluate_not_blocked(http):
    res = http.post("/api/cashier/evaluate", json={"cashierType": "deposit", "currency": "USD"})
    assert res.json() == {"blocked": False, "reason": None, "panel": None, "messageId": None, "message": None}


def test_evaluate_rejects_unknown_cashier_type(http):
    res = http.post("/api/cashier/evaluate", json={"cashierType": "transfer", "currency": "USD"})
    assert res.status_code == 422


def test_frame_height(http):
    own = http.post("/api/cashier/frame-height", json={"origin": "https://www.binary.com", "data": "900"})
    assert own.json() == {"honoured": False, "height": None}

    provider = http.post("/api/cashier/frame-height", json={"origin": "https://cashier.doughflow.com", "data": "842"})
    assert provider.json() == {"honoured": True, "height": 842}


def test_reasons_listed(http):
    kinds = http.get("/api/cashier/reasons").json()["kinds"]
    assert "NoBalance" in kinds
    assert len(kinds) == len(set(kinds))


def test_api_key_enforced(http):
    with patch.object(settings, "API_KEY", "secret"):
        assert http.get("/api/cashier/reasons").status_code == 401
        assert http.get("/api/cashier/reasons", headers={"x-api-key": "secret"}).status_code == 200


def test_session_does_not_refresh_status_after_teardown(http, fake_transport):
    transport = fake_transport({
        "get_account_status": {"msg_type": "get_account_status", "get_account_status": {"status": []}},
        "get_limits": {"msg_type": "get_limits", "get_limits": {"remainder": 0.5}},
    })
    with patch("cashier_gate.api.routes.HttpTransport", return_value=transport), \
         patch("cashier_gate.api.routes._publish"):
        res = http.post("/api/cashier/session", json={
            "url": "https://www.binary.com/en/cashier/forwardws.html?action=withdraw#token=ab12CD34",
            "client": CLIENT,
        })

    assert res.json()["outcome"]["reason"]["kind"] == "WithdrawalLimitReached"
    assert transport.sent_types().count("get_account_status") == 1
