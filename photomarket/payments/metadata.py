"""
Sérialisation/désérialisation des métadonnées Stripe et des paramètres de retour.
- Liste d'IDs de photos: JSON ["id1", "id2"] (paramètre d'URL "photos" et metadata "photo_ids").
"""
import json
from typing import Any, Dict, List, Optional

# Limite Stripe: 500 caractères par valeur de metadata
METADATA_VALUE_MAX = 500

# module photomarket.payments.metadata
def encode_item_ids(item_ids: List[str]) -> str:
    return json.dumps([str(i) for i in item_ids or []])

def decode_item_ids(raw: Optional[str]) -> Optional[List[str]]:
    """
    Décode une liste d'IDs sérialisée.
    - None si absente, vide ou invalide (achat d'album complet).
    - Tolère une liste séparée par des virgules.
    """
    if raw is None:
        return None
    raw = str(raw).strip()
    if not raw:
        return None
    try:
        parsed = json.loads(raw)
    except ValueError:
        parsed = [p.strip() for p in raw.split(",")]
    if not isinstance(parsed, list):
        return None
    ids = [str(i).strip() for i in parsed if str(i).strip()]
    return ids or None

def parse_amount(raw: Any) -> float:
    """Montant (str|float) -> float arrondi au centime. ValueError si invalide ou négatif."""
    amount = round(float(str(raw).strip()), 2)
    if amount < 0:
        raise ValueError(f"Montant négatif: {raw}")
    return amount

def make_metadata(
    *,
    album_id: str,
    seller_id: str,
    amount: float,
    item_ids: List[str],
    buyer_id: Optional[str] = None,
) -> Dict[str, str]:
    """
    Métadonnées attachées à la session Checkout (relues par le webhook).
    - photo_ids est omis s'il dépasse la limite Stripe: le retour navigateur
      reste alors la seule source de la liste.
    """
    meta = {
        "album_id": str(album_id),
        "seller_id": str(seller_id),
        "amount": f"{float(amount):.2f}",
        "buyer_id": str(buyer_id or ""),
        "photo_count": str(len(item_ids or [])),
    }
    encoded = encode_item_ids(item_ids)
    if item_ids and len(encoded) <= METADATA_VALUE_MAX:
        meta["photo_ids"] = encoded
    return meta

def extract_metadata(event: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extrait la session et ses métadonnées depuis un event Stripe (webhook).
    Retour: {"session_id", "payment_status", "album_id", "seller_id", "amount", "buyer_id",
    "item_ids", "ids_missing"}
    - ids_missing=True si des photos précises ont été achetées mais que leur liste
      n'a pas pu être transmise en metadata.
    """
    data_obj = (event or {}).get("data", {}).get("object", {}) if isinstance(event, dict) else {}
    meta = data_obj.get("metadata") or {}
    raw_ids = meta.get("photo_ids")
    item_ids = decode_item_ids(raw_ids)
    try:
        photo_count = int(meta.get("photo_count") or 0)
    except ValueError:
        photo_count = 0
    return {
        "session_id": data_obj.get("id"),
        "payment_status": data_obj.get("payment_status"),
        "album_id": meta.get("album_id"),
        "seller_id": meta.get("seller_id"),
        # Montant réellement encaissé (remises comprises); metadata en secours
        "amount": (
            round(int(data_obj["amount_total"]) / 100, 2)
            if data_obj.get("amount_total") is not None
            else meta.get("amount")
        ),
        "buyer_id": meta.get("buyer_id") or None,
        "item_ids": item_ids,
        "ids_missing": photo_count > 0 and item_ids is None,
    }
