"""
Canned cashier texts and the localization seam.

Translation itself is a host concern: `localize` only substitutes `[_1]`-style
placeholders so hosts can swap in their own catalogue by wrapping it.
"""
import re
from typing import Optional

_PLACEHOLDER = re.compile(r"\[_(\d+)\]")


def localize(text: str, *args) -> str:
    if not args:
        return text

    def _sub(m):
        idx = int(m.group(1)) - 1
        return str(args[idx]) if 0 <= idx < len(args) else m.group(0)

    return _PLACEHOLDER.sub(_sub, text)


# Message ids rendered by the view (error surface / message surface)
CANNED = {
    "check_email_message": "Please check your email for the verification link to complete the process.",
    "token_error": "Verification code is wrong. Please use the link sent to your email.",
    "no_balance_error": "You have no funds in your account.",
    "tnc_error": "Please accept the updated Terms and Conditions to access the cashier.",
    "limits_error": "Please set the 30-day turnover limit in your self-exclusion facilities to access the cashier.",
    "fa_error": "Please complete the financial assessment form to lift your cashier lock.",
    "tin_error": "Please provide your tax identification number in your personal details to access the cashier.",
    "financial_risk_error": "Please complete the Appropriateness Test to access your cashier.",
    "age_error": "Your account needs age verification. Please contact us via live chat.",
    "not_authenticated_message": "Please authenticate your account to access the cashier.",
    "high_risk_not_authenticated_message": "Please submit your proof of identity and address to access the cashier.",
    "cashier_personal_details_message": "Your personal details are incomplete. Please complete them to enable deposits and withdrawals.",
    "withdrawal_personal_details_message": "Your personal details are incomplete. Please complete them to enable withdrawals.",
    "personal_details_message": "Your [_1] in your personal details is missing or invalid. Please update your personal details.",
}

# Free-text messages shown through the custom_error surface
MAINTENANCE_CASHIER = "Our cashier is temporarily down due to system maintenance. You can access the Cashier in a few minutes when the maintenance is complete."
MAINTENANCE_CRYPTO_CASHIER = "Our cryptocurrency cashier is temporarily down due to system maintenance. You can access the Cashier in a few minutes when the maintenance is complete."
MAINTENANCE_DEPOSIT = "Deposits are temporarily unavailable due to system maintenance. You can make your deposits when the maintenance is complete."
MAINTENANCE_WITHDRAWAL = "Withdrawals are temporarily unavailable due to system maintenance. You can make your withdrawals when the maintenance is complete."
DOCUMENTS_EXPIRED = "The identification documents you submitted have expired. Please submit valid identity documents to unlock Cashier."
RISK_APPROVAL = "Please complete the Appropriateness Test to access your cashier."
CASHIER_LOCKED_STATUS = "Your cashier is currently locked. Please contact us via live chat to find out how to unlock it."
CASHIER_LOCKED = "Your cashier is locked."
SELF_EXCLUDED = "You have chosen to exclude yourself from trading on our website until [_1]. If you are unable to place a trade or deposit after your self-exclusion period, please contact us via live chat."
WITHDRAWALS_ONLY = "Unfortunately, you can only make withdrawals. Please contact us via live chat."
DEPOSITS_ONLY = "Unfortunately, you can only make deposits. Please contact us via live chat to enable withdrawals."
CURRENCY_RESTRICTED = "Please note that the selected currency is allowed for limited accounts only."
WITHDRAWAL_LIMIT = "You have reached the withdrawal limit. Please upload your proof of identity and address to lift your withdrawal limit and proceed with your withdrawal."
TOO_MANY_ATTEMPTS = "We could not open the cashier. Please refresh the page and try again."

HEADING_DEPOSIT = "Deposit"
HEADING_WITHDRAW = "Withdraw"
DETAILS_FALLBACK = "details"

FIELD_LABELS = {
    "address_city": "Town/City",
    "address_line_1": "First line of home address",
    "address_postcode": "Postal Code/ZIP",
    "address_state": "State/Province",
    "email": "Email address",
    "phone": "Telephone",
    "residence": "Country of Residence",
}


def field_label(field: str) -> Optional[str]:
    return FIELD_LABELS.get(field)
