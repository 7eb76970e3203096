from dataclasses import asdict, dataclass, field
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, List, Mapping, Optional, Tuple

from cashier_gate.transport.client import response_error


def _as_tuple(value) -> Tuple[str, ...]:
    """Status/validation payloads arrive as lists, occasionally as one composite string."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value else ()
    return tuple(str(v) for v in value if v is not None)


@dataclass(frozen=True)
class CurrencyConfig:
    deposit_suspended: bool = False
    withdrawal_suspended: bool = False


@dataclass(frozen=True)
class AccountStatus:
    """Immutable snapshot of one get_account_status response."""
    status_flags: FrozenSet[str] = frozenset()
    cashier_validation: Tuple[str, ...] = ()
    risk_classification: str = "low"
    currency_config: Mapping[str, CurrencyConfig] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_payload(cls, data: Optional[Dict[str, Any]]) -> "AccountStatus":
        data = data or {}
        currency_config = {}
        for currency, cfg in (data.get("currency_config") or {}).items():
            cfg = cfg or {}
            currency_config[currency] = CurrencyConfig(
                deposit_suspended=bool(cfg.get("is_deposit_suspended")),
                withdrawal_suspended=bool(cfg.get("is_withdrawal_suspended")),
            )
        return cls(
            status_flags=frozenset(_as_tuple(data.get("status"))),
            cashier_validation=_as_tuple(data.get("cashier_validation")),
            risk_classification=str(data.get("risk_classification") or "low"),
            currency_config=MappingProxyType(currency_config),
        )


@dataclass(frozen=True)
class BlockingReason:
    kind: str
    # Which rule table produced the reason (cashier_locked / deposit_locked / ...)
    branch: str = "gate"
    # The validation tag that matched, if any
    detail: str = ""
    is_crypto: bool = False
    excluded_until: Optional[int] = None


@dataclass
class ClientInfo:
    """What the gate needs to know about the logged-in client."""
    loginid: str = ""
    email: str = ""
    currency: str = ""
    balance: float = 0.0
    # Client.isAccountOfType('financial')
    is_financial: bool = False
    excluded_until: Optional[int] = None
    # Running inside the host mobile/desktop application
    is_app: bool = False


@dataclass(frozen=True)
class CashierRequest:
    cashier_type: str
    verification_code: Optional[str] = None
    provider: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        req: Dict[str, Any] = {"cashier": self.cashier_type}
        if self.verification_code:
            req["verification_code"] = self.verification_code
        if self.provider:
            req["provider"] = self.provider
        return req


@dataclass(frozen=True)
class CashierError:
    code: str
    message: str = ""
    fields: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CashierResponse:
    url: Optional[str] = None
    error: Optional[CashierError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def from_payload(cls, data: Optional[Dict[str, Any]]) -> "CashierResponse":
        data = data or {}
        err = response_error(data)
        if err is not None:
            raw = data["error"] if isinstance(data["error"], dict) else {}
            details = raw.get("details") or {}
            fields = raw.get("fields") or (details.get("fields") if isinstance(details, dict) else None)
            return cls(error=CashierError(code=err["code"], message=err["message"], fields=_as_tuple(fields)))
        return cls(url=data.get("cashier"))


@dataclass(frozen=True)
class FrameHeightMessage:
    origin: str
    data: Any = None


@dataclass(frozen=True)
class Action:
    kind: str
    message_id: Optional[str] = None
    message: Optional[str] = None
    url: Optional[str] = None
    # "errors" or "messages" panel for canned ids
    surface: str = "errors"


@dataclass
class GateOutcome:
    outcome: str
    stage: str
    reason: Optional[BlockingReason] = None
    action: Optional[Action] = None
    primed: List[str] = field(default_factory=list)
    # Counters for metrics / snapshots
    cashier_requests: int = 0
    cashier_error: str = ""
    transport_failures: int = 0
    latency_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
