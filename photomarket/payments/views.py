import logging
from typing import Optional

from fastapi import APIRouter, Request, Depends, HTTPException
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.status import HTTP_303_SEE_OTHER

from photomarket.cart.store import CartStore
from photomarket.checkout.service import CHECKOUT_KEY
from photomarket.config import PURCHASES_PAGE_PATH
from photomarket.session import SessionHandle, FLASH_KEY
from photomarket.utils.security import get_session_handle
from photomarket.payments import stripe_client
from photomarket.payments import settlement
from photomarket.payments.models import RedirectReturn

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/payments", tags=["Payments API"])
return_router = APIRouter(tags=["Payments"])

# module photomarket.payments.views
@return_router.get("/checkout/return", name="checkout_return")
async def checkout_return(
    request: Request,
    success: Optional[str] = None,
    session_id: Optional[str] = None,
    album_id: Optional[str] = None,
    seller_id: Optional[str] = None,
    photographer_id: Optional[str] = None,
    amount: Optional[str] = None,
    photos: Optional[str] = None,
    handle: SessionHandle = Depends(get_session_handle),
):
    """
    Retour de la redirection Stripe.
    - Enregistre la transaction une seule fois (SettlementReconciler)
    - Vide le panier des photos achetées et mémorise la référence (achat invité)
    - Redirige (303) vers la page « mes achats » SANS les paramètres sensibles:
      un rechargement ne peut ni rejouer le règlement ni exposer la référence.
    """
    redirect = RedirectReturn(
        success=(success or "").lower() in ("1", "true", "yes") or (success is None and bool(session_id)),
        session_id=session_id,
        album_id=album_id,
        seller_id=seller_id or photographer_id,
        amount=amount,
        photos=photos,
    )
    reconciler = settlement.SettlementReconciler(handle, cart=CartStore(request.session))
    outcome = await reconciler.reconcile(redirect)
    if outcome.ok:
        request.session.pop(CHECKOUT_KEY, None)
    if outcome.status not in ("ignored", "duplicate_visit"):
        request.session[FLASH_KEY] = {
            "level": "success" if outcome.ok else "error",
            "message": outcome.message,
            "payment_reference": outcome.payment_reference,
        }
    return RedirectResponse(url=PURCHASES_PAGE_PATH, status_code=HTTP_303_SEE_OTHER)

@router.post("/webhook", include_in_schema=False)
async def webhook_stripe(request: Request):
    """
    Webhook Stripe (Checkout): consomme checkout.session.completed pour enregistrer la transaction.
    - Signature: valide via stripe_client.parse_event (Stripe-Signature + STRIPE_WEBHOOK_SECRET)
    - Enregistrement: settlement.record_from_event (idempotent, partagé avec le retour navigateur)
    - Réponses: {"status": "<résultat>", "transaction_id": ...} ou {"status": "ignored"}
    - Erreurs: 400 si signature/payload invalide, 500 si l'enregistrement échoue (Stripe réessaiera)
    """
    try:
        event = await stripe_client.parse_event(request)
    except Exception:
        logger.exception("Erreur webhook_stripe (signature)")
        raise HTTPException(status_code=400, detail="Invalid Stripe webhook payload")

    if (event or {}).get("type") != "checkout.session.completed":
        return JSONResponse({"status": "ignored"})
    try:
        outcome = settlement.record_from_event(event)
    except Exception:
        logger.exception("Erreur webhook_stripe (enregistrement)")
        raise HTTPException(status_code=500, detail="Enregistrement de la transaction impossible")
    logger.info("payments.webhook status=%s ref=%s", outcome.status, outcome.payment_reference)
    return JSONResponse({"status": outcome.status, "transaction_id": outcome.transaction_id})
