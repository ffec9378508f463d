"""
Réconciliation du paiement par carte: enregistre la transaction une seule fois.

Deux points d'entrée partagent le même enregistrement idempotent:
- le retour navigateur depuis Stripe (SettlementReconciler.reconcile)
- le webhook checkout.session.completed (record_from_event)

Idempotence:
1. verrou « une seule fois » par référence dans la session client
2. recherche d'une transaction existante pour la référence
3. contrainte d'unicité en base (23505 traité comme « déjà enregistrée »)

Une erreur d'enregistrement après un paiement encaissé n'est jamais avalée:
le résultat porte la référence Stripe pour le support.
"""
from typing import Any, Callable, Dict, List, Optional
import logging

from photomarket.albums import repository as albums_repo
from photomarket.cart.store import CartStore
from photomarket.pricing.engine import commission_for
from photomarket.session import SessionHandle
from . import repository
from . import stripe_client
from .metadata import decode_item_ids, extract_metadata, parse_amount
from .models import RedirectReturn, SettlementOutcome, Transaction, TransactionStatus
from .repository import DuplicateTransaction

logger = logging.getLogger(__name__)

SessionLookup = Callable[[str], Dict[str, Any]]

def _resolve_seller(album_id: str, seller_id: Optional[str]) -> str:
    if seller_id:
        return str(seller_id)
    album = albums_repo.get_album(album_id)
    if not album or not album.get("photographer_id"):
        raise ValueError(f"Album introuvable: {album_id}")
    return str(album["photographer_id"])

# module photomarket.payments.settlement
def record_paid_transaction(
    *,
    payment_reference: str,
    album_id: str,
    seller_id: Optional[str],
    amount: float,
    item_ids: Optional[List[str]],
    buyer_id: Optional[str],
) -> SettlementOutcome:
    """
    Enregistre une transaction 'paid' pour une référence de paiement, au plus une fois.
    - already_recorded si une transaction existe déjà (webhook, visite précédente, course).
    - Les erreurs de lecture/écriture remontent à l'appelant.
    """
    existing = repository.find_transaction_by_reference(payment_reference)
    if existing:
        logger.info("settlement skipped ref=%s tx_id=%s (already recorded)", payment_reference, existing.id)
        return SettlementOutcome(
            status="already_recorded",
            payment_reference=payment_reference,
            transaction_id=existing.id,
            message="Paiement déjà enregistré",
        )

    tx = Transaction(
        buyer_id=buyer_id or None,
        seller_id=_resolve_seller(album_id, seller_id),
        album_id=str(album_id),
        amount=amount,
        commission_amount=commission_for(amount),
        payment_reference=payment_reference,
        status=TransactionStatus.PAID,
        unlocked_item_ids=item_ids or None,
    )
    try:
        created = repository.insert_transaction(tx)
    except DuplicateTransaction:
        logger.info("settlement skipped ref=%s (unique constraint)", payment_reference)
        return SettlementOutcome(
            status="already_recorded",
            payment_reference=payment_reference,
            message="Paiement déjà enregistré",
        )
    logger.info(
        "settlement created ref=%s tx_id=%s album_id=%s buyer_id=%s items=%s",
        payment_reference, created.id, created.album_id, created.buyer_id,
        len(created.unlocked_item_ids or []) or "all",
    )
    return SettlementOutcome(
        status="created",
        payment_reference=payment_reference,
        transaction_id=created.id,
        message="Paiement confirmé, vos photos sont disponibles",
    )

def _photo_count(meta: Dict[str, Any]) -> int:
    try:
        return int(meta.get("photo_count") or 0)
    except (TypeError, ValueError):
        return 0

def _rejected(payment_reference: str, reason: str) -> SettlementOutcome:
    logger.warning("settlement rejected ref=%s: %s", payment_reference, reason)
    return SettlementOutcome(
        status="rejected",
        payment_reference=payment_reference,
        message=(
            "Le retour de paiement ne correspond pas à la commande réglée. "
            f"Contactez le support avec la référence {payment_reference}."
        ),
    )

def recording_error(payment_reference: Optional[str]) -> SettlementOutcome:
    return SettlementOutcome(
        status="error",
        payment_reference=payment_reference,
        message=(
            "Votre paiement a bien été reçu mais n'a pas pu être enregistré. "
            f"Contactez le support avec la référence {payment_reference}."
        ),
    )

class SettlementReconciler:
    """
    Réconciliation au retour de la redirection Stripe.
    - handle: poignée de session (utilisateur, verrou, achats invités)
    - cart: panier transitoire à vider après un paiement confirmé
    - session_lookup: lecture de la session Checkout (vérification du paiement)
    """

    def __init__(
        self,
        handle: SessionHandle,
        cart: Optional[CartStore] = None,
        session_lookup: Optional[SessionLookup] = None,
    ):
        self.handle = handle
        self.cart = cart
        self._session_lookup = session_lookup or stripe_client.get_session

    async def reconcile(self, redirect: RedirectReturn) -> SettlementOutcome:
        reference = (redirect.session_id or "").strip()
        if not redirect.success or not reference:
            return SettlementOutcome(status="ignored", payment_reference=reference or None)

        if not self.handle.latch.try_acquire(reference):
            # Visite déjà traitée dans cette session (rechargement, double rendu)
            return SettlementOutcome(status="duplicate_visit", payment_reference=reference)

        await self.handle.wait_settled()
        try:
            outcome = self._record(reference, redirect)
        except Exception:
            logger.exception("settlement failed ref=%s album_id=%s", reference, redirect.album_id)
            self.handle.latch.release(reference)
            return recording_error(reference)

        if outcome.status in ("unpaid", "rejected"):
            self.handle.latch.release(reference)
            return outcome

        self.handle.purchases.remember_reference(reference)
        if self.cart is not None:
            self._clear_purchased(redirect)
        return outcome

    def _record(self, reference: str, redirect: RedirectReturn) -> SettlementOutcome:
        session = self._session_lookup(reference)
        if (session.get("payment_status") or "") != "paid":
            logger.warning("settlement unpaid ref=%s status=%s", reference, session.get("payment_status"))
            return SettlementOutcome(
                status="unpaid",
                payment_reference=reference,
                message="Paiement non finalisé",
            )

        # La session Stripe fait foi: album, montant encaissé, photos achetées
        meta = session.get("metadata") or {}
        album_id = meta.get("album_id")
        if not album_id:
            raise ValueError("album_id absent des métadonnées Stripe")
        if redirect.album_id and str(redirect.album_id) != str(album_id):
            return _rejected(reference, f"album {redirect.album_id} != {album_id}")

        if session.get("amount_total") is not None:
            amount = round(int(session["amount_total"]) / 100, 2)
        else:
            amount = parse_amount(meta.get("amount") if meta.get("amount") is not None else redirect.amount)

        item_ids = decode_item_ids(meta.get("photo_ids"))
        expected = _photo_count(meta)
        if item_ids is None and expected > 0:
            # Liste trop longue pour les métadonnées: la liste du retour doit correspondre exactement
            item_ids = decode_item_ids(redirect.photos)
            if not item_ids or len(set(item_ids)) != len(item_ids) or len(item_ids) != expected:
                return _rejected(reference, f"{len(item_ids or [])} photo(s) pour {expected} payée(s)")
            found = {str(r.get("id")) for r in albums_repo.list_album_photos(album_id, item_ids)}
            if not set(item_ids) <= found:
                return _rejected(reference, f"photos hors de l'album {album_id}")

        return record_paid_transaction(
            payment_reference=reference,
            album_id=album_id,
            seller_id=meta.get("seller_id") or redirect.seller_id,
            amount=amount,
            item_ids=item_ids,
            buyer_id=self.handle.user_id or meta.get("buyer_id") or None,
        )

    def _clear_purchased(self, redirect: RedirectReturn) -> None:
        item_ids = decode_item_ids(redirect.photos)
        if item_ids:
            self.cart.remove_many(item_ids)
        else:
            self.cart.clear()

def record_from_event(event: Dict[str, Any]) -> SettlementOutcome:
    """
    Webhook checkout.session.completed: même enregistrement idempotent que le retour navigateur.
    - deferred si la liste des photos n'a pas pu voyager en metadata (le retour navigateur l'enregistrera).
    """
    meta = extract_metadata(event)
    reference = meta.get("session_id")
    if not reference or meta.get("payment_status") != "paid" or not meta.get("album_id"):
        return SettlementOutcome(status="ignored", payment_reference=reference)
    if meta.get("ids_missing"):
        logger.info("settlement deferred ref=%s (photo ids not in metadata)", reference)
        return SettlementOutcome(status="deferred", payment_reference=reference)
    return record_paid_transaction(
        payment_reference=reference,
        album_id=meta["album_id"],
        seller_id=meta.get("seller_id"),
        amount=parse_amount(meta.get("amount")),
        item_ids=meta.get("item_ids"),
        buyer_id=meta.get("buyer_id"),
    )
