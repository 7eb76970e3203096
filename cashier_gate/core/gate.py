import asyncio
from typing import Any, Dict, List, Optional

from cashier_gate import messages
from cashier_gate.core import reasons as r
from cashier_gate.core import response_router as rr
from cashier_gate.core import state_machine as sm
from cashier_gate.core.cashier_session import CashierSession
from cashier_gate.core.consent import CONSENT_PENDING, FLOW_DISPOSED, ConsentFlow
from cashier_gate.core.context import SessionContext
from cashier_gate.core.response_router import ResponseRouter
from cashier_gate.core.status_evaluator import DEPOSIT, WITHDRAW, evaluate
from cashier_gate.core.verification import VerificationFlow
from cashier_gate.core.view import CashierView
from cashier_gate.observability.logging import log
from cashier_gate.settings import settings
from cashier_gate.store.models import (
    AccountStatus,
    Action,
    BlockingReason,
    ClientInfo,
    FrameHeightMessage,
    GateOutcome,
)
from cashier_gate.transport.client import TransportError, as_error_response, response_error
from cashier_gate.utils.currency import display_code, get_min_withdrawal
from cashier_gate.utils.time import now_ms
from cashier_gate.utils.url import parse_cashier_type, url_for

REDIRECT = "Redirect"
AWAITING = "AwaitingInput"


class SessionGate:
    """
    Top-level orchestrator for one cashier page activation.

    Stages run strictly in order (see state_machine.STAGES); each await is a
    suspension point after which a torn-down gate stops without touching the
    view. Remote failures are never retried here: they make a stage
    inconclusive or are surfaced through the ResponseRouter.
    """

    def __init__(self, client: ClientInfo, url: str, transport, view: Optional[CashierView] = None,
                 *, router: Optional[ResponseRouter] = None, refresh_status: bool = True):
        self.ctx = SessionContext(client=client, url=url)
        self.transport = transport
        self.view = view if view is not None else CashierView()
        self.router = router or ResponseRouter()
        self.verification = VerificationFlow(self.ctx, transport, self.view)
        self.consent = ConsentFlow(self.ctx, transport, self.view, self.router)
        self.cashier = CashierSession(self.ctx, transport, self.view)
        self.refresh_status = refresh_status
        self.outcome: Optional[GateOutcome] = None
        self._started = 0

    # ------------------------------------------------------------------
    # Public surface
    # ------------------------------------------------------------------
    async def run(self) -> GateOutcome:
        self._started = now_ms()
        ctx = self.ctx
        ctx.cashier_type = parse_cashier_type(ctx.url)
        if ctx.cashier_type is None:
            log("gate_inactive", loginid=ctx.client.loginid)
            return self._finish(sm.INACTIVE)

        heading = messages.HEADING_WITHDRAW if ctx.cashier_type == WITHDRAW else messages.HEADING_DEPOSIT
        self.view.set_heading(f"{messages.localize(heading)} {display_code(ctx.client.currency)}".strip())

        self._enter(sm.CURRENCY_CHECK)
        if not ctx.client.currency:
            return self._block(BlockingReason(kind=r.NO_CURRENCY_SELECTED))

        self._enter(sm.BALANCE_CHECK)
        if ctx.cashier_type == WITHDRAW and ctx.has_no_balance:
            return self._block(BlockingReason(kind=r.NO_BALANCE))

        self._enter(sm.ACCOUNT_STATUS_CHECK)
        reason = await self._check_account_status()
        if ctx.disposed:
            return self._finish(sm.DISPOSED)
        if reason is not None:
            if reason.kind == r.CONSENT_REQUIRED:
                return await self._consent_then_cashier(reason)
            return self._block(reason)

        self._enter(sm.SUPPLEMENTARY_CHECKS)
        await self._supplementary_checks()
        if ctx.disposed:
            return self._finish(sm.DISPOSED)

        self._enter(sm.SETTINGS_READY)
        if ctx.cashier_type == WITHDRAW and self._withdrawal_limit_reached():
            if self.refresh_status:
                self._refresh_account_status()
            return self._block(BlockingReason(kind=r.WITHDRAWAL_LIMIT_REACHED))
        await self._wait_inconclusive("get_settings")
        if ctx.disposed:
            return self._finish(sm.DISPOSED)

        self._enter(sm.CASHIER_REQUEST)
        if ctx.cashier_type == DEPOSIT:
            ctx.token = ""
            return await self._cashier_loop(None)

        token = await self.verification.resolve_token()
        if token is None:
            return self._stopped_on_view()
        return await self._cashier_loop(token)

    def post_message(self, origin: str, data: Any) -> None:
        """Entry point for cross-context messages from the embedded provider page."""
        self.ctx.dispatch(FrameHeightMessage(origin=origin, data=data))

    def teardown(self) -> None:
        """Navigation away: drop the height listener and the cached verification email."""
        self.ctx.disposed = True
        self.cashier.detach()
        self.verification.reset()
        log("gate_teardown", loginid=self.ctx.client.loginid, stage=self.ctx.stage)

    @property
    def context(self) -> SessionContext:
        return self.ctx

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------
    def _enter(self, stage: str) -> None:
        self.ctx.stage = stage
        log("gate_stage", loginid=self.ctx.client.loginid, cashier_type=self.ctx.cashier_type, stage=stage)

    async def _check_account_status(self) -> Optional[BlockingReason]:
        try:
            response = await self.transport.send({"get_account_status": 1})
        except TransportError as e:
            self.ctx.transport_failures += 1
            response = as_error_response(e)
        if self.ctx.disposed:
            return None
        error = response_error(response)
        if error is not None:
            # Inconclusive: proceed as if nothing blocks
            log("account_status_inconclusive", loginid=self.ctx.client.loginid, code=error["code"])
            return None

        status = AccountStatus.from_payload(response.get("get_account_status"))
        client = self.ctx.client
        return evaluate(
            status,
            self.ctx.cashier_type,
            client.currency,
            is_financial=client.is_financial,
            excluded_until=client.excluded_until,
        )

    async def _wait_inconclusive(self, msg_type: str) -> Optional[Dict[str, Any]]:
        try:
            return await self.transport.wait(msg_type)
        except TransportError as e:
            self.ctx.transport_failures += 1
            log("wait_inconclusive", loginid=self.ctx.client.loginid, msg_type=msg_type, error=str(e)[:200])
            return None

    def _supplementary_requests(self) -> List[Dict[str, Any]]:
        if self.ctx.cashier_type == DEPOSIT:
            # Clients with a balance skip these lookups to speed up page load
            if self.ctx.has_no_balance:
                return [{"statement": 1, "limit": 1}, {"mt5_login_list": 1}]
            return []
        return [{"get_limits": 1}]

    async def _supplementary_checks(self) -> None:
        await self._wait_inconclusive("website_status")
        if self.ctx.disposed:
            return

        requests = self._supplementary_requests()
        results = await asyncio.gather(*(self.transport.send(req) for req in requests), return_exceptions=True)
        for req, res in zip(requests, results):
            msg_type = next(iter(req))
            if isinstance(res, TransportError):
                self.ctx.transport_failures += 1
                log("supplementary_lookup_failed", loginid=self.ctx.client.loginid, msg_type=msg_type)
                continue
            if isinstance(res, Exception):
                log("supplementary_lookup_failed", loginid=self.ctx.client.loginid, msg_type=msg_type,
                    errorType=type(res).__name__, error=str(res)[:200])
                continue
            if isinstance(res, BaseException):
                raise res
            error = response_error(res)
            if error is not None:
                log("supplementary_lookup_failed", loginid=self.ctx.client.loginid, msg_type=msg_type,
                    code=error["code"])
                continue
            self.ctx.primed[msg_type] = res

    def _withdrawal_limit_reached(self) -> bool:
        limits = (self.ctx.primed.get("get_limits") or {}).get("get_limits") or {}
        remainder = limits.get("remainder")
        if remainder is None:
            return False
        try:
            return float(remainder) < get_min_withdrawal(self.ctx.client.currency)
        except (TypeError, ValueError):
            return False

    def _refresh_account_status(self) -> None:
        """Fire-and-forget header refresh; never affects the gating outcome."""

        async def _refresh():
            try:
                response = await self.transport.send({"get_account_status": 1})
            except TransportError as e:
                self.ctx.transport_failures += 1
                log("account_status_refresh_failed", loginid=self.ctx.client.loginid, error=str(e)[:200])
                return
            if self.ctx.disposed or response_error(response) is not None:
                return
            self.view.display_account_status(response.get("get_account_status") or {})

        self.ctx.background.append(asyncio.ensure_future(_refresh()))

    async def _consent_then_cashier(self, reason: BlockingReason) -> GateOutcome:
        self._enter(sm.CASHIER_REQUEST)
        result = await self.consent.run()
        if result is not None:
            return self._consent_stopped(result, reason)
        return await self._cashier_loop(self.ctx.token or None)

    async def _cashier_loop(self, token: Optional[str]) -> GateOutcome:
        ctx = self.ctx
        while True:
            if ctx.cashier_attempts >= settings.MAX_CASHIER_ATTEMPTS:
                log("cashier_attempts_exhausted", loginid=ctx.client.loginid, attempts=ctx.cashier_attempts)
                action = Action(kind=rr.SHOW_CUSTOM, message_id="custom_error", message=messages.TOO_MANY_ATTEMPTS)
                self.view.show_error(action.message_id, action.message)
                return self._finish(sm.ERROR, action=action)

            response = await self.cashier.request(token)
            if ctx.disposed:
                return self._finish(sm.DISPOSED)
            if response.error is not None:
                ctx.last_cashier_error = response.error.code

            self.view.hide_all()
            action = self.router.route(response)
            log("cashier_routed", loginid=ctx.client.loginid, action=action.kind, code=ctx.last_cashier_error,
                attempt=ctx.cashier_attempts)

            if action.kind == rr.EMBED:
                self.cashier.embed(action.url)
                return self._finish(sm.EMBEDDED, action=action)

            if action.kind == rr.RETRY_VERIFICATION:
                token = await self.verification.resolve_token()
                if token is None:
                    return self._stopped_on_view()
                continue

            if action.kind == rr.SHOW_CONSENT_FLOW:
                result = await self.consent.run()
                if result is None:
                    continue
                return self._consent_stopped(result)

            if action.surface == "messages":
                self.view.show_message(action.message_id, action.message)
            else:
                self.view.show_error(action.message_id, action.message)
            return self._finish(sm.ERROR, action=action)

    # ------------------------------------------------------------------
    # Terminal helpers
    # ------------------------------------------------------------------
    def _block(self, reason: BlockingReason) -> GateOutcome:
        panel, message_id, text = r.describe(reason)
        if panel == r.PANEL_REDIRECT:
            url = f"{url_for(settings.SET_CURRENCY_PATH)}#redirect_{self.ctx.cashier_type}"
            self.view.redirect(url)
            return self._finish(sm.REDIRECTED, reason=reason, action=Action(kind=REDIRECT, url=url))
        if panel == r.PANEL_MESSAGES:
            self.view.show_message(message_id, text)
        else:
            self.view.show_error(message_id, text)
        return self._finish(sm.BLOCKED, reason=reason)

    def _consent_stopped(self, result: Action, reason: Optional[BlockingReason] = None) -> GateOutcome:
        if result.kind == FLOW_DISPOSED:
            return self._finish(sm.DISPOSED, reason=reason)
        if result.kind == CONSENT_PENDING:
            return self._finish(sm.AWAITING_INPUT, reason=reason, action=result)
        return self._finish(sm.ERROR, reason=reason, action=result)

    def _stopped_on_view(self) -> GateOutcome:
        """The verification flow ended on a user-facing surface; report what is shown."""
        if self.ctx.disposed:
            return self._finish(sm.DISPOSED)
        view = self.view
        if view.panel == "errors":
            kind = rr.SHOW_CUSTOM if view.message_id == "custom_error" else rr.SHOW_CANNED
            return self._finish(sm.ERROR, action=Action(kind=kind, message_id=view.message_id, message=view.message))
        if view.code_entry_visible:
            return self._finish(sm.AWAITING_INPUT, action=Action(kind=AWAITING, message_id="verification_code",
                                                                 surface="code_entry"))
        return self._finish(sm.AWAITING_INPUT, action=Action(kind=AWAITING, message_id=view.message_id,
                                                             message=view.message, surface="messages"))

    def _finish(self, outcome: str, *, reason: Optional[BlockingReason] = None,
                action: Optional[Action] = None) -> GateOutcome:
        ctx = self.ctx
        stage = ctx.stage
        ctx.stage = sm.TERMINAL
        result = GateOutcome(
            outcome=outcome,
            stage=stage,
            reason=reason,
            action=action,
            primed=sorted(ctx.primed),
            cashier_requests=ctx.cashier_attempts,
            cashier_error=ctx.last_cashier_error,
            transport_failures=ctx.transport_failures,
            latency_ms=now_ms() - self._started if self._started else 0,
        )
        self.outcome = result
        log(
            "gate_outcome",
            loginid=ctx.client.loginid,
            cashier_type=ctx.cashier_type,
            outcome=outcome,
            stage=stage,
            reason=reason.kind if reason else "",
            action=action.kind if action else "",
            cashier_requests=ctx.cashier_attempts,
            transport_failures=ctx.transport_failures,
            latency_ms=result.latency_ms,
        )
        return result
