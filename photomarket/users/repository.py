"""Couche d'accès aux données (Supabase) pour les profils (acheteurs et photographes).
Les exceptions sont « catchées » et transforment les résultats en valeurs neutres (None, False).
"""
from typing import Any, Dict, Optional
import logging

import photomarket.infra.supabase_client as supabase_client
from .models import SellerPaymentProfile

logger = logging.getLogger(__name__)

SELLER_PAYMENT_FIELDS = (
    "id, full_name, stripe_account_id, bank_transfer_enabled, "
    "bank_name, account_holder, bank_code, account_number, rib, bank_details"
)

def get_profile_by_email(email: str) -> Optional[dict]:
    """Profil par email (table profiles). None si introuvable/erreur."""
    try:
        res = supabase_client.get_supabase().table("profiles").select("*").eq("email", email).maybe_single().execute()
        return (res.data if res else None) or None
    except Exception:
        return None

def get_seller_payment_profile(seller_id: str) -> Optional[Dict[str, Any]]:
    """Coordonnées de paiement du photographe (compte Stripe Connect, virement)."""
    if not seller_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("profiles")
            .select(SELLER_PAYMENT_FIELDS)
            .eq("id", seller_id)
            .maybe_single()
            .execute()
        )
        return (res.data if res else None) or None
    except Exception:
        logger.exception("users.repository.get_seller_payment_profile failed seller_id=%s", seller_id)
        return None

def get_seller(seller_id: str) -> Optional[SellerPaymentProfile]:
    row = get_seller_payment_profile(seller_id)
    return SellerPaymentProfile.from_row(row) if row else None
