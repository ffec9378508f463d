"""
Module 'payments' (feature-first): point d'entrée public.
Réunit modèles de transaction, metadata Stripe, client Stripe, repository BD
et réconciliation du règlement.
"""

from .models import Transaction, TransactionStatus, RedirectReturn, SettlementOutcome
from .metadata import encode_item_ids, decode_item_ids, make_metadata, extract_metadata
from .stripe_client import require_stripe, create_session, get_session, parse_event
from .repository import (
    DuplicateTransaction,
    find_transaction_by_reference,
    insert_transaction,
)
from .settlement import SettlementReconciler, record_paid_transaction, record_from_event

__all__ = [
    # models
    "Transaction",
    "TransactionStatus",
    "RedirectReturn",
    "SettlementOutcome",
    # metadata
    "encode_item_ids",
    "decode_item_ids",
    "make_metadata",
    "extract_metadata",
    # stripe
    "require_stripe",
    "create_session",
    "get_session",
    "parse_event",
    # repository
    "DuplicateTransaction",
    "find_transaction_by_reference",
    "insert_transaction",
    # settlement
    "SettlementReconciler",
    "record_paid_transaction",
    "record_from_event",
]
