from typing import Callable, Dict, Optional, Tuple

from cashier_gate import messages
from cashier_gate.store.models import Action, CashierError, CashierResponse

# Action kinds
RETRY_VERIFICATION = "RetryVerification"
SHOW_CONSENT_FLOW = "ShowConsentFlow"
SHOW_CANNED = "ShowCanned"
SHOW_CUSTOM = "ShowCustom"
EMBED = "Embed"

# Codes answered with a canned message: code -> (message id, panel)
CANNED_CODES: Dict[str, Tuple[str, str]] = {
    "ASK_TNC_APPROVAL": ("tnc_error", "errors"),
    "ASK_AUTHENTICATE": ("not_authenticated_message", "messages"),
    "ASK_FINANCIAL_RISK_APPROVAL": ("financial_risk_error", "errors"),
    "ASK_AGE_VERIFICATION": ("age_error", "errors"),
    "ASK_SELF_EXCLUSION_MAX_TURNOVER_SET": ("limits_error", "errors"),
}

FieldLabel = Callable[[str], Optional[str]]


class ResponseRouter:
    """Maps cashier responses to exactly one Action. Unknown codes show the server text verbatim."""

    def __init__(self, field_label: FieldLabel = messages.field_label):
        self.field_label = field_label

    def route(self, response: CashierResponse) -> Action:
        if response.ok:
            return Action(kind=EMBED, url=response.url)

        error = response.error
        code = error.code
        if code == "ASK_EMAIL_VERIFY":
            return Action(kind=RETRY_VERIFICATION)
        if code == "ASK_UK_FUNDS_PROTECTION":
            return Action(kind=SHOW_CONSENT_FLOW)
        if code == "ASK_FIX_DETAILS":
            return Action(
                kind=SHOW_CUSTOM,
                message_id="personal_details_message",
                message=self._personal_details_text(error),
                surface="messages",
            )
        if code in CANNED_CODES:
            message_id, surface = CANNED_CODES[code]
            return Action(kind=SHOW_CANNED, message_id=message_id, surface=surface)
        return Action(kind=SHOW_CUSTOM, message_id="custom_error", message=error.message)

    def route_submission(self, response: CashierResponse) -> Optional[Action]:
        """Consent submissions: any error shows its message, success lets the caller proceed."""
        if response.ok:
            return None
        return Action(kind=SHOW_CUSTOM, message_id="custom_error", message=response.error.message)

    def _personal_details_text(self, error: CashierError) -> str:
        if error.fields:
            labels = [self.field_label(f) or f for f in error.fields]
            detail = ", ".join(labels)
        else:
            detail = messages.DETAILS_FALLBACK
        return messages.localize(messages.CANNED["personal_details_message"], detail)
