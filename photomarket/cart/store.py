"""
Panier transitoire conservé côté client (cookie de session signé).
Seuls les IDs de photos sont stockés; prix et albums sont relus en base.
"""
from typing import Any, List, MutableMapping

CART_KEY = "cart"
CART_MAX_ITEMS = 200

class CartStore:
    def __init__(self, store: MutableMapping[str, Any]):
        self._store = store

    def ids(self) -> List[str]:
        return [str(i) for i in (self._store.get(CART_KEY) or [])]

    def contains(self, photo_id: str) -> bool:
        return str(photo_id) in self.ids()

    def add(self, photo_id: str) -> bool:
        """Ajoute une photo; False si déjà présente (pas de doublon)."""
        photo_id = str(photo_id or "").strip()
        if not photo_id or self.contains(photo_id):
            return False
        ids = self.ids()
        if len(ids) >= CART_MAX_ITEMS:
            return False
        ids.append(photo_id)
        self._store[CART_KEY] = ids
        return True

    def remove(self, photo_id: str) -> bool:
        ids = self.ids()
        if str(photo_id) not in ids:
            return False
        ids.remove(str(photo_id))
        self._store[CART_KEY] = ids
        return True

    def remove_many(self, photo_ids) -> int:
        wanted = {str(i) for i in photo_ids or []}
        ids = self.ids()
        kept = [i for i in ids if i not in wanted]
        self._store[CART_KEY] = kept
        return len(ids) - len(kept)

    def clear(self) -> None:
        self._store.pop(CART_KEY, None)
