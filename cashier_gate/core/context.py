import asyncio
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

from cashier_gate.core import state_machine as sm
from cashier_gate.store.models import ClientInfo, FrameHeightMessage
from cashier_gate.utils.currency import is_cryptocurrency

Listener = Callable[[FrameHeightMessage], None]


@dataclass
class SessionContext:
    """
    Per page activation state, owned by exactly one SessionGate.
    Created on activation and thrown away on teardown; never shared.
    """
    client: ClientInfo
    url: str = ""
    cashier_type: Optional[str] = None
    stage: str = sm.INIT
    verification_state: str = sm.NO_TOKEN

    # Verification: current token and the ones already spent on a cashier request
    token: str = ""
    sent_tokens: Set[str] = field(default_factory=set)
    # Cached (possibly in-flight) verification-email request
    email_task: Optional["asyncio.Future"] = None

    # Height-message listeners registered by the embedded session
    listeners: List[Listener] = field(default_factory=list)
    # Fire-and-forget work (status refresh); kept referenced until done
    background: List["asyncio.Future"] = field(default_factory=list)
    # Supplementary lookups (msg_type -> response), primes later UI only
    primed: Dict[str, Any] = field(default_factory=dict)

    cashier_attempts: int = 0
    last_cashier_error: str = ""
    transport_failures: int = 0
    disposed: bool = False

    @property
    def is_crypto(self) -> bool:
        return is_cryptocurrency(self.client.currency)

    @property
    def has_no_balance(self) -> bool:
        try:
            return float(self.client.balance or 0) == 0
        except (TypeError, ValueError):
            return False

    def add_listener(self, listener: Listener) -> None:
        if listener not in self.listeners:
            self.listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self.listeners:
            self.listeners.remove(listener)

    def dispatch(self, message: FrameHeightMessage) -> None:
        if self.disposed:
            return
        for listener in list(self.listeners):
            listener(message)
