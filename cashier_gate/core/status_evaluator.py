"""
Status Evaluator
----------------
Maps one AccountStatus snapshot to zero-or-one BlockingReason.

INVARIANT: evaluation is a pure function of its inputs and stops at the
first matching rule. Precedence lives in the ordered rule tables below, not
in control flow, so each table can be inspected and tested on its own.

Matching rule: a tag matches a sequence (status flags or cashier validation
codes) when the tag is a substring of any entry. Entries may be composite
strings, so exact matching would miss codes the backend joins together.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Tuple

from cashier_gate.core import reasons as r
from cashier_gate.store.models import AccountStatus, BlockingReason
from cashier_gate.utils.currency import is_cryptocurrency

DEPOSIT = "deposit"
WITHDRAW = "withdraw"


@dataclass(frozen=True)
class Facts:
    """Client-side inputs that qualify some rules."""
    cashier_type: str
    is_crypto: bool = False
    is_financial: bool = False
    risk_classification: str = "low"
    excluded_until: Optional[int] = None


@dataclass(frozen=True)
class StatusRule:
    tag: str
    kind: str
    when: Optional[Callable[[Facts], bool]] = None

    def applies(self, validation: Tuple[str, ...], facts: Facts) -> bool:
        if not matches(self.tag, validation):
            return False
        return self.when is None or bool(self.when(facts))


def matches(tag: str, entries: Iterable[str]) -> bool:
    return any(tag in entry for entry in entries)


def _crypto(f: Facts) -> bool:
    return f.is_crypto


def _crypto_deposit(f: Facts) -> bool:
    return f.is_crypto and f.cashier_type == DEPOSIT


def _crypto_withdraw(f: Facts) -> bool:
    return f.is_crypto and f.cashier_type == WITHDRAW


def _financial(f: Facts) -> bool:
    return f.is_financial


def _high_risk(f: Facts) -> bool:
    return f.risk_classification == "high"


# Priority order matters: first match wins.
# ASK_AUTHENTICATE is checked for financial accounts before high-risk ones.
CASHIER_LOCKED_RULES = (
    StatusRule("system_maintenance", r.MAINTENANCE_DEPOSIT, _crypto_deposit),
    StatusRule("system_maintenance", r.MAINTENANCE_WITHDRAWAL, _crypto_withdraw),
    StatusRule("system_maintenance", r.MAINTENANCE_CASHIER),
    StatusRule("ASK_FIX_DETAILS", r.FIX_DETAILS_REQUIRED),
    StatusRule("ASK_SELF_EXCLUSION_MAX_TURNOVER_SET", r.LIMITS_EXCEEDED),
    StatusRule("ASK_UK_FUNDS_PROTECTION", r.CONSENT_REQUIRED),
    StatusRule("FinancialAssessmentRequired", r.FINANCIAL_ASSESSMENT_REQUIRED),
    StatusRule("ASK_TIN_INFORMATION", r.TIN_REQUIRED),
    StatusRule("ASK_AUTHENTICATE", r.AUTHENTICATE_FINANCIAL, _financial),
    StatusRule("ASK_AUTHENTICATE", r.AUTHENTICATE_HIGH_RISK, _high_risk),
    StatusRule("documents_expired", r.DOCUMENTS_EXPIRED),
    StatusRule("ASK_FINANCIAL_RISK_APPROVAL", r.RISK_APPROVAL_REQUIRED),
    StatusRule("cashier_locked_status", r.LOCKED_OTHER),
)

DEPOSIT_LOCKED_RULES = (
    StatusRule("system_maintenance", r.MAINTENANCE_DEPOSIT, _crypto),
    StatusRule("SelfExclusion", r.SELF_EXCLUDED),
    StatusRule("unwelcome_status", r.UNWELCOME),
)

WITHDRAWAL_LOCKED_RULES = (
    StatusRule("system_maintenance", r.MAINTENANCE_WITHDRAWAL, _crypto),
    StatusRule("ASK_FIX_DETAILS", r.FIX_DETAILS_REQUIRED),
    StatusRule("ASK_AUTHENTICATE", r.AUTHENTICATE_HIGH_RISK, _high_risk),
    StatusRule("withdrawal_locked_status", r.DEPOSIT_ONLY),
    StatusRule("no_withdrawal_or_trading_status", r.DEPOSIT_ONLY),
)


def _first_match(rules, validation, facts: Facts, branch: str) -> Optional[BlockingReason]:
    for rule in rules:
        if rule.applies(validation, facts):
            return BlockingReason(
                kind=rule.kind,
                branch=branch,
                detail=rule.tag,
                is_crypto=facts.is_crypto,
                excluded_until=facts.excluded_until if rule.kind == r.SELF_EXCLUDED else None,
            )
    return None


def evaluate(
    status: AccountStatus,
    cashier_type: str,
    client_currency: str,
    *,
    is_financial: bool = False,
    excluded_until: Optional[int] = None,
) -> Optional[BlockingReason]:
    facts = Facts(
        cashier_type=cashier_type,
        is_crypto=is_cryptocurrency(client_currency),
        is_financial=bool(is_financial),
        risk_classification=status.risk_classification,
        excluded_until=excluded_until,
    )
    flags = tuple(status.status_flags)
    validation = status.cashier_validation

    if matches("cashier_locked", flags):
        found = _first_match(CASHIER_LOCKED_RULES, validation, facts, r.BRANCH_CASHIER_LOCKED)
        # Locked from the back office without a specific validation code
        return found or BlockingReason(kind=r.LOCKED_OTHER, branch=r.BRANCH_CASHIER_LOCKED, is_crypto=facts.is_crypto)

    found = None
    if cashier_type == DEPOSIT and matches("deposit_locked", flags):
        found = _first_match(DEPOSIT_LOCKED_RULES, validation, facts, r.BRANCH_DEPOSIT_LOCKED)
    elif cashier_type == WITHDRAW and matches("withdrawal_locked", flags):
        found = _first_match(WITHDRAWAL_LOCKED_RULES, validation, facts, r.BRANCH_WITHDRAWAL_LOCKED)
    if found:
        return found

    cfg = status.currency_config.get(client_currency)
    if cfg is not None:
        if (cashier_type == DEPOSIT and cfg.deposit_suspended) or (
            cashier_type == WITHDRAW and cfg.withdrawal_suspended
        ):
            return BlockingReason(kind=r.CURRENCY_RESTRICTED, branch=r.BRANCH_CURRENCY, is_crypto=facts.is_crypto)
    return None
