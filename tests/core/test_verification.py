import asyncio

from cashier_gate.core import state_machine as sm
from cashier_gate.core.context import SessionContext
from cashier_gate.core.verification import EMAIL_TYPE, VerificationFlow, is_valid_token
from cashier_gate.core.view import CashierView
from cashier_gate.store.models import ClientInfo
from cashier_gate.transport.client import TransportError

WITHDRAW_URL = "https://www.binary.com/en/cashier/forwardws.html?action=withdraw"


def _flow(transport, url=WITHDRAW_URL, is_app=False, view=None):
    client = ClientInfo(loginid="CR1", email="client@example.com", currency="USD", balance=10, is_app=is_app)
    ctx = SessionContext(client=client, url=url, cashier_type="withdraw")
    view = view or CashierView()
    return ctx, view, VerificationFlow(ctx, transport, view)


def test_is_valid_token():
    assert is_valid_token("ab12CD34")
    assert is_valid_token(" ab12CD34 ")
    assert not is_valid_token("short")
    assert not is_valid_token("")
    assert not is_valid_token(None)


def test_valid_url_token_is_ready_without_email(fake_transport):
    transport = fake_transport()
    ctx, view, flow = _flow(transport, url=WITHDRAW_URL + "#token=ab12CD34")

    token = asyncio.run(flow.resolve_token())

    assert token == "ab12CD34"
    assert ctx.verification_state == sm.TOKEN_READY
    assert transport.sent == []


def test_invalid_url_token_shows_token_error(fake_transport):
    transport = fake_transport()
    ctx, view, flow = _flow(transport, url=WITHDRAW_URL + "#token=abc")

    assert asyncio.run(flow.resolve_token()) is None
    assert view.panel == "errors"
    assert view.message_id == "token_error"
    assert transport.sent == []


def test_missing_token_requests_email_and_asks_to_check_inbox(fake_transport):
    transport = fake_transport({"verify_email": {"msg_type": "verify_email", "verify_email": 1}})
    ctx, view, flow = _flow(transport)

    assert asyncio.run(flow.resolve_token()) is None
    assert transport.sent == [{"verify_email": "client@example.com", "type": EMAIL_TYPE}]
    assert view.panel == "messages"
    assert view.message_id == "check_email_message"
    assert ctx.verification_state == sm.EMAIL_REQUESTED


def test_email_error_is_shown_verbatim(fake_transport):
    transport = fake_transport({"verify_email": {"error": {"code": "RateLimit", "message": "Too many requests."}}})
    ctx, view, flow = _flow(transport)

    asyncio.run(flow.resolve_token())

    assert view.panel == "errors"
    assert view.message_id == "custom_error"
    assert view.message == "Too many requests."


def test_email_transport_failure_is_shown_and_counted(fake_transport):
    transport = fake_transport({"verify_email": TransportError("connection reset")})
    ctx, view, flow = _flow(transport)

    asyncio.run(flow.resolve_token())

    assert ctx.transport_failures == 1
    assert view.message_id == "custom_error"
    assert view.message == "connection reset"


def test_email_request_is_idempotent(fake_transport):
    transport = fake_transport()
    ctx, view, flow = _flow(transport)

    async def scenario():
        first, second = await asyncio.gather(flow.request_email(), flow.request_email())
        third = await flow.request_email()
        return first, second, third

    first, second, third = asyncio.run(scenario())

    assert transport.sent_types() == ["verify_email"]
    assert first is second is third


def test_reset_allows_a_fresh_email(fake_transport):
    transport = fake_transport()
    ctx, view, flow = _flow(transport)

    async def scenario():
        await flow.request_email()
        flow.reset()
        await flow.request_email()

    asyncio.run(scenario())
    assert transport.sent_types() == ["verify_email", "verify_email"]


def test_spent_url_token_counts_as_absent(fake_transport):
    transport = fake_transport()
    ctx, view, flow = _flow(transport, url=WITHDRAW_URL + "#token=ab12CD34")
    ctx.sent_tokens.add("ab12CD34")

    assert asyncio.run(flow.resolve_token()) is None
    assert transport.sent_types() == ["verify_email"]
    assert view.message_id == "check_email_message"


def test_app_mode_uses_code_entry(fake_transport):
    transport = fake_transport()
    ctx, view, flow = _flow(transport, is_app=True, view=CashierView(verification_code="zx98YW76"))

    token = asyncio.run(flow.resolve_token())

    assert token == "zx98YW76"
    assert transport.sent_types() == ["verify_email"]
    assert ctx.verification_state == sm.TOKEN_READY
    assert view.loading is False


def test_app_mode_without_code_waits_on_code_entry(fake_transport):
    transport = fake_transport()
    ctx, view, flow = _flow(transport, is_app=True)

    assert asyncio.run(flow.resolve_token()) is None
    assert ctx.verification_state == sm.CODE_ENTRY_PENDING
    assert view.code_entry_visible is True
