from typing import Any, Dict, Optional
from pydantic import BaseModel

class SellerPaymentProfile(BaseModel):
    """Coordonnées de paiement d'un photographe (ligne 'profiles')."""
    id: str
    full_name: Optional[str] = None
    stripe_account_id: Optional[str] = None
    bank_transfer_enabled: bool = False
    bank_name: Optional[str] = None
    account_holder: Optional[str] = None
    bank_code: Optional[str] = None
    account_number: Optional[str] = None
    rib: Optional[str] = None
    bank_details: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "SellerPaymentProfile":
        data = {k: v for k, v in (row or {}).items() if k in cls.model_fields}
        data["id"] = str(data.get("id") or "")
        data["bank_transfer_enabled"] = bool(data.get("bank_transfer_enabled"))
        return cls(**data)

    @property
    def accepts_card(self) -> bool:
        return bool(self.stripe_account_id)

    def bank_instructions(self) -> Dict[str, Optional[str]]:
        """Instructions de virement affichées à l'acheteur."""
        return {
            "bank_name": self.bank_name,
            "account_holder": self.account_holder or self.full_name,
            "bank_code": self.bank_code,
            "account_number": self.account_number,
            "rib": self.rib,
            "bank_details": self.bank_details,
        }
