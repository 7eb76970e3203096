from typing import Optional, Tuple

from cashier_gate import messages
from cashier_gate.store.models import BlockingReason
from cashier_gate.utils.time import format_exclusion_date

# Blocking reason kinds (closed set; exactly one is active per evaluation)
MAINTENANCE_CASHIER = "MaintenanceCashier"
MAINTENANCE_DEPOSIT = "MaintenanceDeposit"
MAINTENANCE_WITHDRAWAL = "MaintenanceWithdrawal"
FIX_DETAILS_REQUIRED = "FixDetailsRequired"
LIMITS_EXCEEDED = "LimitsExceeded"
CONSENT_REQUIRED = "ConsentRequired"
FINANCIAL_ASSESSMENT_REQUIRED = "FinancialAssessmentRequired"
TIN_REQUIRED = "TinRequired"
AUTHENTICATE_FINANCIAL = "AuthenticateFinancial"
AUTHENTICATE_HIGH_RISK = "AuthenticateHighRisk"
DOCUMENTS_EXPIRED = "DocumentsExpired"
RISK_APPROVAL_REQUIRED = "RiskApprovalRequired"
LOCKED_OTHER = "LockedOther"
SELF_EXCLUDED = "SelfExcluded"
UNWELCOME = "Unwelcome"
WITHDRAWAL_ONLY = "WithdrawalOnly"
DEPOSIT_ONLY = "DepositOnly"
CURRENCY_RESTRICTED = "CurrencyRestricted"
WITHDRAWAL_LIMIT_REACHED = "WithdrawalLimitReached"
NO_BALANCE = "NoBalance"
NO_CURRENCY_SELECTED = "NoCurrencySelected"

ALL_KINDS = (
    MAINTENANCE_CASHIER, MAINTENANCE_DEPOSIT, MAINTENANCE_WITHDRAWAL,
    FIX_DETAILS_REQUIRED, LIMITS_EXCEEDED, CONSENT_REQUIRED,
    FINANCIAL_ASSESSMENT_REQUIRED, TIN_REQUIRED, AUTHENTICATE_FINANCIAL,
    AUTHENTICATE_HIGH_RISK, DOCUMENTS_EXPIRED, RISK_APPROVAL_REQUIRED,
    LOCKED_OTHER, SELF_EXCLUDED, UNWELCOME, WITHDRAWAL_ONLY, DEPOSIT_ONLY,
    CURRENCY_RESTRICTED, WITHDRAWAL_LIMIT_REACHED, NO_BALANCE,
    NO_CURRENCY_SELECTED,
)

# Rule tables a reason can come from
BRANCH_CASHIER_LOCKED = "cashier_locked"
BRANCH_DEPOSIT_LOCKED = "deposit_locked"
BRANCH_WITHDRAWAL_LOCKED = "withdrawal_locked"
BRANCH_CURRENCY = "currency"
BRANCH_GATE = "gate"

# Render panels
PANEL_ERRORS = "errors"
PANEL_MESSAGES = "messages"
PANEL_CONSENT = "consent"
PANEL_REDIRECT = "redirect"

# kind -> (panel, message id, text). Text None means the view's canned text for the id.
_RENDER = {
    MAINTENANCE_CASHIER: (PANEL_ERRORS, "custom_error", messages.MAINTENANCE_CASHIER),
    MAINTENANCE_DEPOSIT: (PANEL_ERRORS, "custom_error", messages.MAINTENANCE_DEPOSIT),
    MAINTENANCE_WITHDRAWAL: (PANEL_ERRORS, "custom_error", messages.MAINTENANCE_WITHDRAWAL),
    FIX_DETAILS_REQUIRED: (PANEL_MESSAGES, "cashier_personal_details_message", None),
    LIMITS_EXCEEDED: (PANEL_ERRORS, "limits_error", None),
    CONSENT_REQUIRED: (PANEL_CONSENT, None, None),
    FINANCIAL_ASSESSMENT_REQUIRED: (PANEL_ERRORS, "fa_error", None),
    TIN_REQUIRED: (PANEL_ERRORS, "tin_error", None),
    AUTHENTICATE_FINANCIAL: (PANEL_MESSAGES, "not_authenticated_message", None),
    AUTHENTICATE_HIGH_RISK: (PANEL_MESSAGES, "high_risk_not_authenticated_message", None),
    DOCUMENTS_EXPIRED: (PANEL_ERRORS, "custom_error", messages.DOCUMENTS_EXPIRED),
    RISK_APPROVAL_REQUIRED: (PANEL_ERRORS, "custom_error", messages.RISK_APPROVAL),
    LOCKED_OTHER: (PANEL_ERRORS, "custom_error", messages.CASHIER_LOCKED),
    SELF_EXCLUDED: (PANEL_ERRORS, "custom_error", messages.SELF_EXCLUDED),
    UNWELCOME: (PANEL_ERRORS, "custom_error", messages.WITHDRAWALS_ONLY),
    WITHDRAWAL_ONLY: (PANEL_ERRORS, "custom_error", messages.WITHDRAWALS_ONLY),
    DEPOSIT_ONLY: (PANEL_ERRORS, "custom_error", messages.DEPOSITS_ONLY),
    CURRENCY_RESTRICTED: (PANEL_ERRORS, "custom_error", messages.CURRENCY_RESTRICTED),
    WITHDRAWAL_LIMIT_REACHED: (PANEL_ERRORS, "custom_error", messages.WITHDRAWAL_LIMIT),
    NO_BALANCE: (PANEL_ERRORS, "no_balance_error", None),
    NO_CURRENCY_SELECTED: (PANEL_REDIRECT, None, None),
}


def describe(reason: BlockingReason) -> Tuple[str, Optional[str], Optional[str]]:
    """Return (panel, message id, text) used to render a blocking reason."""
    panel, message_id, text = _RENDER[reason.kind]

    if reason.branch == BRANCH_CASHIER_LOCKED:
        if reason.kind in (MAINTENANCE_DEPOSIT, MAINTENANCE_WITHDRAWAL):
            # Crypto accounts locked for maintenance see the crypto cashier text
            text = messages.MAINTENANCE_CRYPTO_CASHIER
        elif reason.kind == LOCKED_OTHER and reason.detail == "cashier_locked_status":
            text = messages.CASHIER_LOCKED_STATUS
    elif reason.branch == BRANCH_WITHDRAWAL_LOCKED and reason.kind == FIX_DETAILS_REQUIRED:
        message_id = "withdrawal_personal_details_message"

    if reason.kind == SELF_EXCLUDED:
        text = messages.localize(text, format_exclusion_date(reason.excluded_until))
    return panel, message_id, text
