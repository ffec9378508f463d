"""
Hydratation du panier depuis la base: photo + album + grille + photographe.
"""
from typing import Any, Dict, List, Optional
import logging

from photomarket.albums import repository as albums_repo
from photomarket.pricing.engine import schedule_from_row
from .models import CartItem

logger = logging.getLogger(__name__)

def _price(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0

# module photomarket.cart.repository
def cart_item_from_row(row: Dict[str, Any]) -> Optional[CartItem]:
    """
    Construit un CartItem depuis une ligne 'photos' avec l'album expansé.
    - None si la photo n'a pas d'album ou de photographe exploitable.
    """
    album = row.get("albums") or {}
    if not row.get("id") or not album.get("id") or not album.get("photographer_id"):
        return None
    seller = album.get("profiles") or {}
    return CartItem(
        id=str(row["id"]),
        title=row.get("title"),
        watermarked_url=row.get("watermarked_url"),
        album_id=str(album["id"]),
        album_title=album.get("title"),
        seller_id=str(album["photographer_id"]),
        seller_name=seller.get("full_name"),
        schedule=schedule_from_row(album.get("pricing_packages")),
        flat_price=_price(album.get("price")),
    )

def fetch_cart_items(photo_ids: List[str]) -> List[CartItem]:
    """
    Articles du panier dans l'ordre des IDs fournis.
    - Les photos introuvables (supprimées entre-temps) sont ignorées.
    """
    rows = albums_repo.fetch_photos_with_album(photo_ids)
    by_id: Dict[str, CartItem] = {}
    for row in rows:
        item = cart_item_from_row(row)
        if item:
            by_id[item.id] = item
    missing = [pid for pid in photo_ids if str(pid) not in by_id]
    if missing:
        logger.info("cart.repository.fetch_cart_items missing=%s", missing)
    return [by_id[str(pid)] for pid in photo_ids if str(pid) in by_id]
