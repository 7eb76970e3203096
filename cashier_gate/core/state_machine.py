# Gate stage constants (kept as plain strings for logging / snapshots)

# Interaction Surface: Page activation, cashier type parsed from ?action=
INIT = "INIT"

# Interaction Surface: Currency selection guard
# Exit: redirect to the set-currency page when the client has none
CURRENCY_CHECK = "CURRENCY_CHECK"

# Interaction Surface: Balance guard (withdraw only)
# Exit: NoBalance, no remote call issued
BALANCE_CHECK = "BALANCE_CHECK"

# Interaction Surface: {get_account_status: 1} + StatusEvaluator
# Exit: first matching BlockingReason; transport errors are inconclusive
ACCOUNT_STATUS_CHECK = "ACCOUNT_STATUS_CHECK"

# Interaction Surface: website_status wait + statement/mt5/get_limits lookups
SUPPLEMENTARY_CHECKS = "SUPPLEMENTARY_CHECKS"

# Interaction Surface: withdrawal limit guard + get_settings wait
SETTINGS_READY = "SETTINGS_READY"

# Interaction Surface: verification token, cashier URL, consent re-entry
CASHIER_REQUEST = "CASHIER_REQUEST"

# Interaction Surface: Terminal state (see outcomes below)
TERMINAL = "TERMINAL"

STAGES = (
    INIT,
    CURRENCY_CHECK,
    BALANCE_CHECK,
    ACCOUNT_STATUS_CHECK,
    SUPPLEMENTARY_CHECKS,
    SETTINGS_READY,
    CASHIER_REQUEST,
    TERMINAL,
)


# Terminal outcomes

# A BlockingReason is rendered
BLOCKED = "BLOCKED"

# Provider session URL embedded in the frame
EMBEDDED = "EMBEDDED"

# Navigation handed to the host (currency selection)
REDIRECTED = "REDIRECTED"

# Waiting on the user: check-email message, code entry or consent form
AWAITING_INPUT = "AWAITING_INPUT"

# A domain / validation / transport error surface is shown
ERROR = "ERROR"

# Flow torn down while a remote call was in flight
DISPOSED = "DISPOSED"

# No usable cashier type in the page URL
INACTIVE = "INACTIVE"

OUTCOMES = (BLOCKED, EMBEDDED, REDIRECTED, AWAITING_INPUT, ERROR, DISPOSED, INACTIVE)


# Verification sub-flow states
NO_TOKEN = "NO_TOKEN"
EMAIL_REQUESTED = "EMAIL_REQUESTED"
CODE_ENTRY_PENDING = "CODE_ENTRY_PENDING"
TOKEN_READY = "TOKEN_READY"
