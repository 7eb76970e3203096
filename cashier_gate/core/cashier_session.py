"""
Embedded payment session: cashier URL request, frame embedding and live
height negotiation with the provider page.

Height messages are untrusted. Only messages whose origin is NOT the site's
own www domain are honoured; everything else comes from the host page.
"""
import math
import re
from typing import Any, Optional

from cashier_gate.core.context import SessionContext
from cashier_gate.core.view import CashierView
from cashier_gate.observability.logging import log
from cashier_gate.settings import settings
from cashier_gate.store.models import CashierRequest, CashierResponse, FrameHeightMessage
from cashier_gate.transport.client import TransportError, as_error_response
from cashier_gate.utils.url import find_provider


def is_foreign_origin(origin: Optional[str], site_domain: Optional[str] = None) -> bool:
    domain = site_domain if site_domain is not None else settings.SITE_DOMAIN
    return not re.search(r"www\." + re.escape(domain), origin or "", re.IGNORECASE)


def parse_height(data: Any, default: Optional[int] = None):
    """Numeric payload -> height; zero, negative or non-numeric -> default."""
    fallback = settings.DEFAULT_IFRAME_HEIGHT if default is None else default
    if data is None or isinstance(data, bool):
        return fallback
    try:
        value = float(str(data).strip())
    except ValueError:
        return fallback
    if not math.isfinite(value) or value <= 0:
        return fallback
    return int(value) if value.is_integer() else value


class CashierSession:
    def __init__(self, ctx: SessionContext, transport, view: CashierView):
        self.ctx = ctx
        self.transport = transport
        self.view = view

    def build_request(self, token: Optional[str] = None) -> CashierRequest:
        return CashierRequest(
            cashier_type=self.ctx.cashier_type,
            verification_code=token or None,
            provider=find_provider(self.ctx.url),
        )

    async def request(self, token: Optional[str] = None) -> CashierResponse:
        req = self.build_request(token)
        self.ctx.cashier_attempts += 1
        if req.verification_code:
            self.ctx.sent_tokens.add(req.verification_code)
        try:
            payload = await self.transport.send(req.to_payload())
        except TransportError as e:
            self.ctx.transport_failures += 1
            log("cashier_transport_error", loginid=self.ctx.client.loginid, error=str(e)[:500])
            payload = as_error_response(e)
        return CashierResponse.from_payload(payload)

    def embed(self, url: str) -> None:
        if self.ctx.is_crypto:
            self.view.embed(url, settings.DEFAULT_IFRAME_HEIGHT)
        else:
            # Provider page reports its content height for the session's lifetime
            self.ctx.add_listener(self.on_message)
            self.view.embed(url)
        log("cashier_embedded", loginid=self.ctx.client.loginid, cashier_type=self.ctx.cashier_type,
            autoHeight=not self.ctx.is_crypto)

    def on_message(self, message: FrameHeightMessage) -> None:
        if not is_foreign_origin(message.origin):
            return
        self.view.set_frame_height(parse_height(message.data))

    def detach(self) -> None:
        self.ctx.remove_listener(self.on_message)
