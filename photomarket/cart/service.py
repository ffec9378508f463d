"""
Cas d'usage 'cart': relie le panier du cookie de session aux données d'album.
"""
from typing import Any, Dict, List, Optional
from fastapi import HTTPException

from . import repository
from .aggregator import group_by_album, summarize
from .models import CartGroup, CartItem
from .store import CartStore

def load_items(cart: CartStore) -> List[CartItem]:
    return repository.fetch_cart_items(cart.ids())

def load_group(cart: CartStore, album_id: str) -> Optional[CartGroup]:
    """Groupe du panier pour un album donné (None si aucun article de cet album)."""
    return group_by_album(load_items(cart)).get(str(album_id))

def cart_summary(cart: CartStore) -> Dict[str, Any]:
    return summarize(load_items(cart))

def add_item(cart: CartStore, photo_id: str) -> Dict[str, Any]:
    """
    Ajoute une photo au panier après vérification en base.
    - 404 si la photo (ou son album) est introuvable.
    - Sans effet si la photo est déjà présente.
    """
    items = repository.fetch_cart_items([photo_id])
    if not items:
        raise HTTPException(status_code=404, detail="Photo introuvable")
    added = cart.add(items[0].id)
    return {"added": added, "summary": cart_summary(cart)}

def remove_item(cart: CartStore, photo_id: str) -> Dict[str, Any]:
    removed = cart.remove(photo_id)
    return {"removed": removed, "summary": cart_summary(cart)}
