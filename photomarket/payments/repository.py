"""
Accès aux données pour la feature 'payments' (table 'transactions').
- Lectures tolérantes: [] / None en cas d'erreur (journalisée).
- Écritures du chemin de règlement: les erreurs REMONTENT (un paiement encaissé
  ne doit jamais être perdu silencieusement).
"""
from typing import Any, Dict, List, Optional
import logging

from postgrest.exceptions import APIError

import photomarket.infra.supabase_client as supabase_client
from .models import Transaction

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "23505"

class DuplicateTransaction(Exception):
    """Une transaction existe déjà pour cette référence de paiement (contrainte d'unicité)."""

    def __init__(self, payment_reference: Optional[str]):
        super().__init__(f"Transaction déjà enregistrée pour {payment_reference}")
        self.payment_reference = payment_reference

def _is_unique_violation(exc: Exception) -> bool:
    code = getattr(exc, "code", None)
    if code == UNIQUE_VIOLATION:
        return True
    return UNIQUE_VIOLATION in str(exc) or "duplicate key" in str(exc).lower()

# module photomarket.payments.repository
def find_transaction_by_reference(payment_reference: str) -> Optional[Transaction]:
    """
    Transaction existante pour une référence de paiement externe.
    - Lève l'erreur si la lecture échoue: le contrôle d'idempotence ne doit pas
      être confondu avec « absente ».
    """
    if not payment_reference:
        return None
    res = (
        supabase_client.get_service_supabase()
        .table("transactions")
        .select("*")
        .eq("stripe_payment_intent_id", payment_reference)
        .limit(1)
        .execute()
    )
    rows = res.data or []
    return Transaction.from_row(rows[0]) if rows else None

def insert_transaction(tx: Transaction) -> Transaction:
    """
    Insère la transaction via la clé de service et retourne la ligne créée.
    - DuplicateTransaction si la référence est déjà enregistrée (23505).
    - Toute autre erreur remonte telle quelle.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("transactions")
            .insert(tx.to_row())
            .execute()
        )
    except APIError as e:
        if tx.payment_reference and _is_unique_violation(e):
            raise DuplicateTransaction(tx.payment_reference) from e
        raise
    rows = res.data or []
    if not rows:
        raise RuntimeError("Insertion transaction sans ligne retournée")
    return Transaction.from_row(rows[0])

def get_transaction(tx_id: str) -> Optional[Transaction]:
    if not tx_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("transactions")
            .select("*")
            .eq("id", tx_id)
            .maybe_single()
            .execute()
        )
        row = (res.data if res else None) or None
        return Transaction.from_row(row) if row else None
    except Exception:
        logger.exception("payments.repository.get_transaction failed tx_id=%s", tx_id)
        return None

def list_transactions_by_buyer(buyer_id: str) -> List[Transaction]:
    return _list_transactions("buyer_id", [buyer_id] if buyer_id else [])

def list_transactions_by_references(references: List[str]) -> List[Transaction]:
    return _list_transactions("stripe_payment_intent_id", references)

def list_transactions_by_ids(tx_ids: List[str]) -> List[Transaction]:
    return _list_transactions("id", tx_ids)

def list_transactions_by_seller(seller_id: str) -> List[Transaction]:
    return _list_transactions("photographer_id", [seller_id] if seller_id else [])

def _list_transactions(column: str, values: List[str]) -> List[Transaction]:
    values = [str(v) for v in values or [] if v]
    if not values:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("transactions")
            .select("*")
            .in_(column, values)
            .order("created_at", desc=True)
            .execute()
        )
        return [Transaction.from_row(r) for r in res.data or []]
    except Exception:
        logger.exception("payments.repository._list_transactions failed column=%s", column)
        return []

def update_transaction(tx_id: str, fields: Dict[str, Any]) -> Optional[Transaction]:
    """Met à jour des colonnes libres (preuve de paiement, message). Lève en cas d'erreur."""
    res = (
        supabase_client.get_service_supabase()
        .table("transactions")
        .update(fields)
        .eq("id", tx_id)
        .execute()
    )
    rows = res.data or []
    return Transaction.from_row(rows[0]) if rows else None
