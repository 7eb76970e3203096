import asyncio
from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Header
from starlette.concurrency import run_in_threadpool

from cashier_gate.api.auth import require_api_key
from cashier_gate.api.schemas import (
    Client,
    Consent,
    EvaluateRequest,
    EvaluateResponse,
    FrameHeightRequest,
    FrameHeightResponse,
    ReasonList,
    SessionRequest,
    SessionResponse,
)
from cashier_gate.core import reasons
from cashier_gate.core.cashier_session import is_foreign_origin, parse_height
from cashier_gate.core.consent import ConsentForm
from cashier_gate.core.gate import SessionGate
from cashier_gate.core.status_evaluator import evaluate
from cashier_gate.core.view import CashierView
from cashier_gate.messages import CANNED
from cashier_gate.observability import metrics
from cashier_gate.observability.logging import log
from cashier_gate.settings import settings
from cashier_gate.store.models import AccountStatus, ClientInfo, GateOutcome
from cashier_gate.store.outcome_repo import save_outcome
from cashier_gate.transport.client import HttpTransport

router = APIRouter(prefix="/api/cashier")


def _client_info(c: Client) -> ClientInfo:
    try:
        balance = float(c.balance)
    except (TypeError, ValueError):
        balance = float("nan")
    return ClientInfo(
        loginid=c.loginid,
        email=c.email,
        currency=c.currency,
        balance=balance,
        is_financial=c.isFinancial,
        excluded_until=c.excludedUntil,
        is_app=c.isApp,
    )


def _consent_form(consent: Optional[Consent]) -> Optional[ConsentForm]:
    if consent is None:
        return None
    return ConsentForm(funds_protection_ack=consent.fundsProtectionAck, terms_ack=consent.termsAck)


def _bearer(authorization: str) -> str:
    value = (authorization or "").strip()
    if value.lower().startswith("bearer "):
        return value[7:].strip()
    return value


def _publish(loginid: str, outcome: GateOutcome) -> None:
    """Metrics + last-outcome snapshot. Best-effort: Redis trouble never changes the answer."""
    try:
        if settings.METRICS_ENABLED:
            metrics.record_gate_outcome(outcome.outcome, outcome.reason.kind if outcome.reason else "")
            metrics.record_gate_latency(outcome.latency_ms)
            for _ in range(outcome.cashier_requests):
                metrics.increment_cashier_request()
            if outcome.cashier_error:
                metrics.record_cashier_error(outcome.cashier_error)
            for _ in range(outcome.transport_failures):
                metrics.increment_transport_failure()
        save_outcome(loginid, outcome)
    except Exception as e:
        log("outcome_publish_failed", loginid=loginid, errorType=type(e).__name__, error=str(e)[:200])


async def _close(gate: SessionGate, transport: HttpTransport) -> None:
    # Let the fire-and-forget status refresh settle before the client goes away
    if gate.ctx.background:
        results = await asyncio.gather(*gate.ctx.background, return_exceptions=True)
        for res in results:
            if isinstance(res, Exception):
                log("background_task_failed", loginid=gate.ctx.client.loginid, errorType=type(res).__name__)
    await transport.aclose()


@router.post("/session", response_model=SessionResponse, dependencies=[Depends(require_api_key)])
async def open_session(
    req: SessionRequest,
    background_tasks: BackgroundTasks,
    authorization: str = Header(default=""),
):
    transport = HttpTransport(token=_bearer(authorization))
    view = CashierView(verification_code=req.verificationCode, consent=_consent_form(req.consent))
    # The gate is torn down as soon as run() returns, so there is no header to refresh
    gate = SessionGate(_client_info(req.client), req.url, transport, view, refresh_status=False)
    try:
        outcome = await gate.run()
    finally:
        gate.teardown()
        background_tasks.add_task(_close, gate, transport)

    await run_in_threadpool(_publish, req.client.loginid, outcome)
    return SessionResponse(outcome=outcome.to_dict(), view=view.state())


@router.post("/evaluate", response_model=EvaluateResponse, dependencies=[Depends(require_api_key)])
def evaluate_status(req: EvaluateRequest):
    status = AccountStatus.from_payload(req.accountStatus)
    reason = evaluate(
        status,
        req.cashierType,
        req.currency,
        is_financial=req.isFinancial,
        excluded_until=req.excludedUntil,
    )
    if reason is None:
        return EvaluateResponse(blocked=False)
    panel, message_id, text = reasons.describe(reason)
    return EvaluateResponse(
        blocked=True,
        reason=asdict(reason),
        panel=panel,
        messageId=message_id,
        message=text or CANNED.get(message_id or "", None),
    )


@router.post("/frame-height", response_model=FrameHeightResponse, dependencies=[Depends(require_api_key)])
def frame_height(req: FrameHeightRequest):
    if not is_foreign_origin(req.origin):
        return FrameHeightResponse(honoured=False)
    return FrameHeightResponse(honoured=True, height=parse_height(req.data))


@router.get("/reasons", response_model=ReasonList, dependencies=[Depends(require_api_key)])
def list_reasons():
    return ReasonList(kinds=list(reasons.ALL_KINDS))
