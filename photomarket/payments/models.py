"""
Enregistrements du paiement.

Transaction: ligne canonique de la table 'transactions', écrite une seule fois
par référence de paiement externe. Les noms de colonnes de la base sont
traduits ici (photographer_id -> seller_id, unlocked_photo_ids ->
unlocked_item_ids, stripe_payment_intent_id -> payment_reference).
"""
import json
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

class TransactionStatus(str, Enum):
    PAID = "paid"
    MANUAL_PENDING = "manual_pending"

class Transaction(BaseModel):
    id: Optional[str] = None
    buyer_id: Optional[str] = None
    seller_id: str
    album_id: str
    amount: float = Field(ge=0)
    commission_amount: float = Field(ge=0)
    payment_reference: Optional[str] = None
    status: TransactionStatus = TransactionStatus.PAID
    # None: album complet (achats historiques); liste: achat partiel par paliers
    unlocked_item_ids: Optional[List[str]] = None
    payment_proof_url: Optional[str] = None
    seller_message: Optional[str] = None
    created_at: Optional[str] = None

    @property
    def is_fulfilled(self) -> bool:
        return self.status == TransactionStatus.PAID

    @property
    def is_partial(self) -> bool:
        return bool(self.unlocked_item_ids)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Transaction":
        unlocked = row.get("unlocked_photo_ids")
        if isinstance(unlocked, str):
            try:
                unlocked = json.loads(unlocked)
            except ValueError:
                unlocked = None
        return cls(
            id=str(row["id"]) if row.get("id") is not None else None,
            buyer_id=row.get("buyer_id"),
            seller_id=str(row.get("photographer_id") or ""),
            album_id=str(row.get("album_id") or ""),
            amount=float(row.get("amount") or 0),
            commission_amount=float(row.get("commission_amount") or 0),
            payment_reference=row.get("stripe_payment_intent_id"),
            status=row.get("status") or TransactionStatus.PAID,
            unlocked_item_ids=[str(i) for i in unlocked] if unlocked is not None else None,
            payment_proof_url=row.get("payment_proof_url"),
            seller_message=row.get("photographer_message"),
            created_at=row.get("created_at"),
        )

    def to_row(self) -> Dict[str, Any]:
        row: Dict[str, Any] = {
            "buyer_id": self.buyer_id,
            "photographer_id": self.seller_id,
            "album_id": self.album_id,
            "amount": self.amount,
            "commission_amount": self.commission_amount,
            "stripe_payment_intent_id": self.payment_reference,
            "status": self.status.value,
            "unlocked_photo_ids": self.unlocked_item_ids,
        }
        if self.payment_proof_url:
            row["payment_proof_url"] = self.payment_proof_url
        if self.seller_message:
            row["photographer_message"] = self.seller_message
        return row

    def to_public(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "album_id": self.album_id,
            "seller_id": self.seller_id,
            "amount": self.amount,
            "status": self.status.value,
            "payment_reference": self.payment_reference,
            "unlocked_item_ids": self.unlocked_item_ids,
            "payment_proof_url": self.payment_proof_url,
            "seller_message": self.seller_message,
            "created_at": self.created_at,
        }

class RedirectReturn(BaseModel):
    """Paramètres portés par l'URL de retour du paiement hébergé."""
    success: bool = False
    session_id: Optional[str] = None
    album_id: Optional[str] = None
    seller_id: Optional[str] = None
    amount: Optional[str] = None
    photos: Optional[str] = None

class SettlementOutcome(BaseModel):
    # created | already_recorded | duplicate_visit | deferred | ignored | unpaid | rejected | error
    status: str
    payment_reference: Optional[str] = None
    transaction_id: Optional[str] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status in ("created", "already_recorded", "duplicate_visit", "deferred")
