"""
Adaptateur Stripe: centralise les appels et la configuration Stripe.
- Sessions Checkout en « destination charge » (Stripe Connect): la commission
  plateforme est prélevée via application_fee_amount, le reste est transféré
  au compte du photographe.
"""
import json
import urllib.parse
from typing import Any, Dict, List, Optional

import stripe
from fastapi import Request

from photomarket.config import (
    STRIPE_SECRET_KEY,
    STRIPE_WEBHOOK_SECRET as WEBHOOK_SECRET,
    CURRENCY,
    PLATFORM_NAME,
    BASE_URL,
    CHECKOUT_RETURN_PATH,
    CART_PAGE_PATH,
)
from photomarket.payments.metadata import make_metadata

# module photomarket.payments.stripe_client
def require_stripe():
    """
    Prépare et retourne le module stripe prêt à l'emploi.
    - Configure stripe.api_key via STRIPE_SECRET_KEY si disponible.
    - En absence de clé, les appels Stripe échoueront côté SDK (ex: No API key provided).
    """
    if STRIPE_SECRET_KEY:
        stripe.api_key = STRIPE_SECRET_KEY
    return stripe

def to_cents(amount: float) -> int:
    return int(round(float(amount or 0) * 100))

def build_return_url(
    *,
    album_id: str,
    amount: float,
    seller_id: str,
    item_ids: List[str],
    base_url: str = BASE_URL,
) -> str:
    """
    URL de retour après paiement.
    - session_id est laissé en gabarit: Stripe y substitue l'identifiant réel de la session.
    - Les IDs de photos voyagent en JSON encodé (paramètre photos).
    """
    params = {
        "success": "true",
        "album_id": album_id,
        "amount": f"{float(amount):.2f}",
        "seller_id": seller_id,
    }
    if item_ids:
        params["photos"] = json.dumps([str(i) for i in item_ids])
    query = urllib.parse.urlencode(params)
    return f"{base_url.rstrip('/')}{CHECKOUT_RETURN_PATH}?session_id={{CHECKOUT_SESSION_ID}}&{query}"

def create_session(
    *,
    album_id: str,
    amount: float,
    seller_routing_id: str,
    commission: float,
    item_ids: List[str],
    discount_code: Optional[str] = None,
    buyer_email: Optional[str] = None,
    mode: str = "embedded",
    seller_platform_id: str,
    buyer_id: Optional[str] = None,
    base_url: str = BASE_URL,
) -> Dict[str, Any]:
    """
    Crée une session Stripe Checkout pour un groupe (un album, un photographe).
    - mode "embedded": retourne client_secret (formulaire intégré)
    - mode "hosted": retourne url (page Stripe)
    - discount_code: identifiant de code promo Stripe (promotion_code), optionnel
    Retour: dict session (ex: {"id": "cs_test_...", "client_secret": "...", "url": None})
    """
    require_stripe()
    return_url = build_return_url(
        album_id=album_id,
        amount=amount,
        seller_id=seller_platform_id,
        item_ids=item_ids,
        base_url=base_url,
    )
    label = f"{len(item_ids)} photo(s)" if item_ids else "Album complet"
    params: Dict[str, Any] = {
        "mode": "payment",
        "line_items": [{
            "quantity": 1,
            "price_data": {
                "currency": CURRENCY,
                "unit_amount": to_cents(amount),
                "product_data": {"name": f"{PLATFORM_NAME} - {label}"},
            },
        }],
        "payment_intent_data": {
            "application_fee_amount": to_cents(commission),
            "transfer_data": {"destination": seller_routing_id},
        },
        "metadata": make_metadata(
            album_id=album_id,
            seller_id=seller_platform_id,
            amount=amount,
            item_ids=item_ids,
            buyer_id=buyer_id,
        ),
    }
    if buyer_email:
        params["customer_email"] = buyer_email
    if discount_code:
        params["discounts"] = [{"promotion_code": discount_code}]
    if mode == "hosted":
        params["success_url"] = return_url
        params["cancel_url"] = f"{base_url.rstrip('/')}{CART_PAGE_PATH}"
    else:
        params["ui_mode"] = "embedded"
        params["return_url"] = return_url

    session = stripe.checkout.Session.create(**params)
    # stripe retourne un objet; on le traite comme dict-compatible
    return dict(session)

def get_session(session_id: str) -> Dict[str, Any]:
    """
    Récupère une session Stripe Checkout par son identifiant.
    Retour: dict session incluant "id", "payment_status", "metadata", etc.
    """
    require_stripe()
    session = stripe.checkout.Session.retrieve(session_id)
    return dict(session)

async def parse_event(request: Request):
    """
    Parse et valide un événement Stripe signé (webhook).
    - Lit le body brut + en-tête Stripe-Signature
    - Valide la signature via Webhook.construct_event (STRIPE_WEBHOOK_SECRET)
    Retour: l'objet event si la signature est valide.
    """
    require_stripe()
    payload = await request.body()
    sig_header = request.headers.get("stripe-signature") or request.headers.get("Stripe-Signature")
    event = stripe.Webhook.construct_event(payload, sig_header, WEBHOOK_SECRET or "")
    return event
