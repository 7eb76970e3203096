"""
Email verification sub-flow (withdrawals, or any ASK_EMAIL_VERIFY answer).

NO_TOKEN -> EMAIL_REQUESTED -> CODE_ENTRY_PENDING -> TOKEN_READY

A token lives for one round: once it has been sent with a cashier request it
is treated as absent if verification is asked for again.
"""
import asyncio
from typing import Any, Dict, Optional

from cashier_gate.core import state_machine as sm
from cashier_gate.core.context import SessionContext
from cashier_gate.core.view import CashierView
from cashier_gate.observability.logging import log
from cashier_gate.settings import settings
from cashier_gate.transport.client import TransportError, as_error_response, response_error
from cashier_gate.utils.url import get_hash_value

EMAIL_TYPE = "payment_withdraw"


def is_valid_token(token: Optional[str]) -> bool:
    return bool(token) and len(token.strip()) == settings.TOKEN_LENGTH


class VerificationFlow:
    def __init__(self, ctx: SessionContext, transport, view: CashierView):
        self.ctx = ctx
        self.transport = transport
        self.view = view

    async def _send_email(self) -> Dict[str, Any]:
        request = {"verify_email": self.ctx.client.email, "type": EMAIL_TYPE}
        try:
            return await self.transport.send(request)
        except TransportError as e:
            self.ctx.transport_failures += 1
            log("verification_email_transport_error", loginid=self.ctx.client.loginid, error=str(e)[:500])
            return as_error_response(e)

    async def request_email(self) -> Dict[str, Any]:
        """Idempotent per activation: concurrent and later callers share one request."""
        if self.ctx.email_task is None:
            self.ctx.email_task = asyncio.ensure_future(self._send_email())
            self.ctx.verification_state = sm.EMAIL_REQUESTED
            log("verification_email_requested", loginid=self.ctx.client.loginid)
        return await self.ctx.email_task

    def _url_token(self) -> str:
        token = get_hash_value(self.ctx.url, "token")
        if token and token in self.ctx.sent_tokens:
            return ""
        return token

    async def resolve_token(self) -> Optional[str]:
        """
        Returns the token once TOKEN_READY. Returns None when the flow stopped
        on a user-facing surface (check email, code entry, token error).
        """
        token = self._url_token()

        if self.ctx.client.is_app:
            response = await self.request_email()
            if self.ctx.disposed:
                return None
            error = response_error(response)
            if error is not None:
                log("verification_email_failed", loginid=self.ctx.client.loginid, code=error["code"])
            self.view.hide_loading()
            self.ctx.verification_state = sm.CODE_ENTRY_PENDING
            code = await self.view.prompt_verification_code()
            if self.ctx.disposed or not code:
                return None
            return self._ready(code)

        if not token:
            response = await self.request_email()
            if self.ctx.disposed:
                return None
            error = response_error(response)
            if error is not None:
                self.view.show_error("custom_error", error["message"])
            else:
                self.view.show_message("check_email_message")
            return None

        if not is_valid_token(token):
            log("verification_token_invalid", loginid=self.ctx.client.loginid)
            self.view.show_error("token_error")
            return None

        return self._ready(token)

    def _ready(self, token: str) -> str:
        self.ctx.token = token.strip()
        self.ctx.verification_state = sm.TOKEN_READY
        return self.ctx.token

    def reset(self) -> None:
        self.ctx.email_task = None
        self.ctx.verification_state = sm.NO_TOKEN
