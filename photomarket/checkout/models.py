"""
Modèles du tunnel d'achat (identité -> moyen de paiement -> finalisation).
La session de checkout est transitoire et conservée côté client (cookie signé):
aucun mot de passe n'y est jamais stocké.
"""
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

class CheckoutStep(str, Enum):
    IDENTITY = "identity"
    METHOD = "method"
    FINISH = "finish"

class PaymentMethod(str, Enum):
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"

class AuthMode(str, Enum):
    LOGIN = "login"
    SIGNUP = "signup"

class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTH = "auth"
    SETTLEMENT = "settlement"
    RECORDING = "recording"

STEP_ORDER = [CheckoutStep.IDENTITY, CheckoutStep.METHOD, CheckoutStep.FINISH]

class CheckoutSession(BaseModel):
    album_id: str
    item_ids: List[str] = Field(default_factory=list)
    step: CheckoutStep = CheckoutStep.IDENTITY
    auth_mode: AuthMode = AuthMode.LOGIN
    full_name: Optional[str] = None
    email: Optional[str] = None
    method: Optional[PaymentMethod] = None
    client_secret: Optional[str] = None
    checkout_url: Optional[str] = None
    payment_reference: Optional[str] = None
    transaction_id: Optional[str] = None
    completed: bool = False

    def to_public(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")

class IdentityForm(BaseModel):
    auth_mode: AuthMode = AuthMode.LOGIN
    full_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

class CheckoutResult(BaseModel):
    success: bool
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None
    data: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ok(cls, **data: Any) -> "CheckoutResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str, **data: Any) -> "CheckoutResult":
        return cls(success=False, kind=kind, error=error, data=data)
