from typing import Any, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, Field

CashierType = Literal["deposit", "withdraw"]

class Client(BaseModel):
    loginid: str = ""
    email: str = ""
    currency: str = ""
    balance: Union[float, str] = 0
    isFinancial: bool = False
    # Epoch seconds; only used when a self-exclusion blocks deposits
    excludedUntil: Optional[int] = None
    isApp: bool = False

class Consent(BaseModel):
    fundsProtectionAck: bool = False
    termsAck: bool = False

class SessionRequest(BaseModel):
    # Full page URL: ?action=deposit|withdraw, #token=..., provider marker in path
    url: str
    client: Client
    # Code typed into the code-entry affordance (host application flow)
    verificationCode: Optional[str] = None
    consent: Optional[Consent] = None

class SessionResponse(BaseModel):
    status: Literal["success", "error"] = "success"
    outcome: Dict[str, Any]
    view: Dict[str, Any]

class EvaluateRequest(BaseModel):
    accountStatus: Dict[str, Any] = Field(default_factory=dict)
    cashierType: CashierType
    currency: str
    isFinancial: bool = False
    excludedUntil: Optional[int] = None

class EvaluateResponse(BaseModel):
    blocked: bool
    reason: Optional[Dict[str, Any]] = None
    panel: Optional[str] = None
    messageId: Optional[str] = None
    message: Optional[str] = None

class FrameHeightRequest(BaseModel):
    origin: str
    data: Any = None

class FrameHeightResponse(BaseModel):
    honoured: bool
    height: Optional[Union[int, float]] = None

class ReasonList(BaseModel):
    kinds: List[str]
