from dataclasses import dataclass
from typing import Any, Dict, Optional

from cashier_gate.core.context import SessionContext
from cashier_gate.core.response_router import ResponseRouter
from cashier_gate.core.view import CashierView
from cashier_gate.observability.logging import log
from cashier_gate.store.models import Action, CashierResponse
from cashier_gate.transport.client import TransportError, as_error_response

# Non-routing outcomes of the flow itself
CONSENT_PENDING = "ConsentPending"
FLOW_DISPOSED = "Disposed"


@dataclass(frozen=True)
class ConsentForm:
    funds_protection_ack: bool = False
    terms_ack: bool = False

    @property
    def can_submit(self) -> bool:
        return bool(self.funds_protection_ack and self.terms_ack)

    def to_request(self) -> Dict[str, Any]:
        return {"ukgc_funds_protection": 1, "tnc_approval": 1}

    @classmethod
    def coerce(cls, value: Any) -> Optional["ConsentForm"]:
        if value is None or isinstance(value, cls):
            return value
        if isinstance(value, dict):
            return cls(
                funds_protection_ack=bool(value.get("funds_protection_ack") or value.get("ukgc_funds_protection")),
                terms_ack=bool(value.get("terms_ack") or value.get("tnc_approval")),
            )
        return None


class ConsentFlow:
    """One-shot funds-protection / terms acknowledgement capture."""

    def __init__(self, ctx: SessionContext, transport, view: CashierView, router: ResponseRouter):
        self.ctx = ctx
        self.transport = transport
        self.view = view
        self.router = router
        self.submitted = False

    async def run(self) -> Optional[Action]:
        """
        Returns None when consent was accepted and the cashier request may be
        re-issued; otherwise the Action now on screen (pending form or error).
        """
        form = ConsentForm.coerce(await self.view.show_consent_form())
        if self.ctx.disposed:
            return Action(kind=FLOW_DISPOSED)
        if form is None or not form.can_submit:
            return Action(kind=CONSENT_PENDING, surface="consent")

        request = form.to_request()
        try:
            payload = await self.transport.send(request)
        except TransportError as e:
            self.ctx.transport_failures += 1
            payload = as_error_response(e)
        if self.ctx.disposed:
            return Action(kind=FLOW_DISPOSED)

        response = CashierResponse.from_payload(payload)
        action = self.router.route_submission(response)
        log("consent_submitted", loginid=self.ctx.client.loginid, ok=response.ok,
            code=response.error.code if response.error else "")
        if action is not None:
            self.view.show_error(action.message_id, action.message)
            return action
        self.submitted = True
        return None
