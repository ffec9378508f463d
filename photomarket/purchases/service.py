"""
Résolution des achats et des droits de téléchargement.

- Les transactions d'un acheteur sont réunies par identité (buyer_id), par
  référence de paiement (achat invité) et par ID de transaction (virement),
  sans doublon.
- Transaction 'manual_pending': verrouillée, aucun lien de téléchargement.
- unlocked_item_ids renseigné: exactement ces photos; absent: tout l'album.
- Chaque photo reçoit une URL signée temporaire vers l'original; un échec
  n'affecte que la photo concernée.
"""
from typing import Any, Dict, Iterable, List, Optional
from uuid import uuid4
import logging
import re

from pydantic import BaseModel, Field

from photomarket.albums import repository as albums_repo
from photomarket.config import ORIGINALS_BUCKET, PAYMENT_PROOFS_BUCKET, SIGNED_URL_TTL_SECONDS
from photomarket.infra import storage
from photomarket.payments import repository as payments_repo
from photomarket.payments.models import Transaction, TransactionStatus
from photomarket.pricing.engine import net_for
from photomarket.session import SessionHandle
from photomarket.users import repository as users_repo

logger = logging.getLogger(__name__)

PENDING_PREVIEW_LIMIT = 4
PROOF_CONTENT_TYPES = {"image/jpeg", "image/png", "image/webp", "application/pdf"}
PROOF_MAX_BYTES = 10 * 1024 * 1024

class DownloadGrant(BaseModel):
    photo_id: str
    title: Optional[str] = None
    url: Optional[str] = None
    expires_in: Optional[int] = None
    error: Optional[str] = None

class TransactionAccess(BaseModel):
    transaction: Transaction
    locked: bool = False
    grants: List[DownloadGrant] = Field(default_factory=list)
    previews: List[str] = Field(default_factory=list)
    bank_instructions: Optional[Dict[str, Optional[str]]] = None

    def to_public(self) -> Dict[str, Any]:
        return {
            "transaction": self.transaction.to_public(),
            "locked": self.locked,
            "grants": [g.model_dump() for g in self.grants],
            "previews": self.previews,
            "bank_instructions": self.bank_instructions,
        }

# module photomarket.purchases.service
class AccessResolver:
    def __init__(self, ttl_seconds: int = SIGNED_URL_TTL_SECONDS, bucket: str = ORIGINALS_BUCKET):
        self.ttl_seconds = ttl_seconds
        self.bucket = bucket

    def resolve_transactions(
        self,
        buyer_id: Optional[str] = None,
        payment_references: Iterable[str] = (),
        transaction_ids: Iterable[str] = (),
    ) -> List[Transaction]:
        """Transactions de l'acheteur et de la session invitée, dédupliquées par id, plus récentes d'abord."""
        found: List[Transaction] = []
        if buyer_id:
            found.extend(payments_repo.list_transactions_by_buyer(buyer_id))
        refs = [r for r in payment_references if r]
        if refs:
            found.extend(payments_repo.list_transactions_by_references(refs))
        ids = [i for i in transaction_ids if i]
        if ids:
            found.extend(payments_repo.list_transactions_by_ids(ids))

        merged: Dict[str, Transaction] = {}
        for tx in found:
            key = tx.id or tx.payment_reference
            if key and key not in merged:
                merged[key] = tx
        return sorted(merged.values(), key=lambda t: t.created_at or "", reverse=True)

    def photos_for(self, tx: Transaction) -> List[Dict[str, Any]]:
        """Photos couvertes par la transaction (sous-ensemble acheté ou album complet)."""
        if tx.is_partial:
            wanted = list(tx.unlocked_item_ids)
            rows = albums_repo.list_album_photos(tx.album_id, wanted)
            # Jamais de photo hors de la liste achetée, même si la requête en renvoie
            return [r for r in rows if str(r.get("id")) in set(wanted)]
        return albums_repo.list_album_photos(tx.album_id)

    def grant_for(self, photo: Dict[str, Any]) -> DownloadGrant:
        grant = DownloadGrant(photo_id=str(photo.get("id")), title=photo.get("title"))
        try:
            grant.url = storage.create_signed_url(self.bucket, photo.get("original_url") or "", self.ttl_seconds)
            grant.expires_in = self.ttl_seconds
        except Exception as e:
            logger.warning("purchases.grant_for failed photo_id=%s: %s", grant.photo_id, e)
            grant.error = "Lien de téléchargement indisponible"
        return grant

    def resolve_access(self, tx: Transaction) -> TransactionAccess:
        if tx.status == TransactionStatus.MANUAL_PENDING:
            photos = self.photos_for(tx)[:PENDING_PREVIEW_LIMIT]
            seller = users_repo.get_seller(tx.seller_id)
            return TransactionAccess(
                transaction=tx,
                locked=True,
                previews=[p["watermarked_url"] for p in photos if p.get("watermarked_url")],
                bank_instructions=seller.bank_instructions() if seller else None,
            )
        return TransactionAccess(
            transaction=tx,
            grants=[self.grant_for(p) for p in self.photos_for(tx)],
        )

def session_owns(tx: Transaction, handle: SessionHandle) -> bool:
    """La transaction appartient-elle à l'utilisateur connecté ou à la session invitée ?"""
    if handle.user_id and tx.buyer_id == handle.user_id:
        return True
    if tx.payment_reference and tx.payment_reference in handle.purchases.references:
        return True
    return bool(tx.id) and tx.id in handle.purchases.transaction_ids

def list_purchases(handle: SessionHandle, resolver: Optional[AccessResolver] = None) -> List[Dict[str, Any]]:
    """Achats visibles par la session, avec leurs droits (sans URL signée: demandées à la volée)."""
    resolver = resolver or AccessResolver()
    txs = resolver.resolve_transactions(
        buyer_id=handle.user_id,
        payment_references=handle.purchases.references,
        transaction_ids=handle.purchases.transaction_ids,
    )
    return [
        {
            **tx.to_public(),
            "locked": not tx.is_fulfilled,
            "scope": "partial" if tx.is_partial else "album",
            "item_count": len(tx.unlocked_item_ids or []) or None,
        }
        for tx in txs
    ]

def _safe_filename(name: str) -> str:
    base = re.sub(r"[^A-Za-z0-9._-]+", "_", (name or "").strip()) or "preuve"
    return base[-80:]

def upload_payment_proof(tx: Transaction, filename: str, content: bytes, content_type: Optional[str]) -> Transaction:
    """
    Dépose la preuve de virement (bucket public) et l'attache à la transaction.
    - Réservé aux transactions 'manual_pending'.
    - ValueError si le fichier est refusé.
    """
    if tx.status != TransactionStatus.MANUAL_PENDING:
        raise ValueError("Preuve de paiement inutile pour cette transaction")
    if content_type not in PROOF_CONTENT_TYPES:
        raise ValueError("Format non supporté (jpeg, png, webp ou pdf)")
    if not content or len(content) > PROOF_MAX_BYTES:
        raise ValueError("Fichier vide ou trop volumineux")

    path = f"{tx.id}/{uuid4().hex}-{_safe_filename(filename)}"
    storage.upload(PAYMENT_PROOFS_BUCKET, path, content, content_type)
    url = storage.get_public_url(PAYMENT_PROOFS_BUCKET, path)
    updated = payments_repo.update_transaction(tx.id, {"payment_proof_url": url})
    logger.info("purchases.upload_payment_proof tx_id=%s path=%s", tx.id, path)
    return updated or tx.model_copy(update={"payment_proof_url": url})

def list_seller_sales(seller_id: str) -> Dict[str, Any]:
    """Ventes d'un photographe: montant, commission, net; totaux sur les ventes payées."""
    txs = payments_repo.list_transactions_by_seller(seller_id)
    sales = [
        {**tx.to_public(), "commission_amount": tx.commission_amount, "net_amount": net_for(tx.amount)}
        for tx in txs
    ]
    paid = [tx for tx in txs if tx.is_fulfilled]
    return {
        "sales": sales,
        "paid_total": round(sum(tx.amount for tx in paid), 2),
        "net_total": round(sum(net_for(tx.amount) for tx in paid), 2),
        "pending_count": len(txs) - len(paid),
    }
