"""
Poignée de session d'authentification, passée explicitement aux composants
(checkout, réconciliation) au lieu d'un état global.

- Lecture seule pour les consommateurs: `user`, `user_id`, `loading`.
- Canal d'abonnement: subscribe(listener) -> unsubscribe; les listeners reçoivent
  (event, user) avec event in {"settled", "signed_in", "signed_out"}.
- `wait_settled()`: attend que l'état d'authentification soit connu.
- `latch`: verrou « une seule fois » de la réconciliation, stocké avec la session
  client (cookie signé) pour survivre aux rechargements de page.
- `purchases`: références et transactions rattachées à la session (achat invité).
"""
import asyncio
import logging
from typing import Any, Callable, Dict, List, MutableMapping, Optional

logger = logging.getLogger(__name__)

Listener = Callable[[str, Optional[Dict[str, Any]]], None]

LATCH_KEY = "settled_refs"
LATCH_MAX_REFS = 20
FLASH_KEY = "flash"

class SettlementLatch:
    def __init__(self, store: MutableMapping[str, Any]):
        self._store = store

    def is_set(self, reference: str) -> bool:
        return reference in (self._store.get(LATCH_KEY) or [])

    def try_acquire(self, reference: str) -> bool:
        """True la première fois pour une référence donnée, False ensuite."""
        if not reference or self.is_set(reference):
            return False
        refs = list(self._store.get(LATCH_KEY) or [])
        refs.append(reference)
        self._store[LATCH_KEY] = refs[-LATCH_MAX_REFS:]
        return True

    def release(self, reference: str) -> None:
        """Libère une référence (échec d'enregistrement): une nouvelle visite pourra réessayer."""
        refs = [r for r in (self._store.get(LATCH_KEY) or []) if r != reference]
        self._store[LATCH_KEY] = refs

class GuestPurchases:
    """
    Achats rattachés à la session client (acheteur invité ou non):
    références de paiement Stripe et IDs de transactions par virement.
    """
    REFS_KEY = "purchase_refs"
    TX_KEY = "purchase_tx_ids"
    MAX_ENTRIES = 50

    def __init__(self, store: MutableMapping[str, Any]):
        self._store = store

    def _remember(self, key: str, value: str) -> None:
        if not value:
            return
        values = [v for v in (self._store.get(key) or []) if v != value]
        values.append(str(value))
        self._store[key] = values[-self.MAX_ENTRIES:]

    def remember_reference(self, reference: str) -> None:
        self._remember(self.REFS_KEY, reference)

    def remember_transaction(self, tx_id: str) -> None:
        self._remember(self.TX_KEY, tx_id)

    @property
    def references(self) -> List[str]:
        return list(self._store.get(self.REFS_KEY) or [])

    @property
    def transaction_ids(self) -> List[str]:
        return list(self._store.get(self.TX_KEY) or [])

class SessionHandle:
    def __init__(self, store: Optional[MutableMapping[str, Any]] = None):
        self._user: Optional[Dict[str, Any]] = None
        self._settled = asyncio.Event()
        self._listeners: List[Listener] = []
        self.store: MutableMapping[str, Any] = store if store is not None else {}
        self.latch = SettlementLatch(self.store)
        self.purchases = GuestPurchases(self.store)

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return dict(self._user) if self._user else None

    @property
    def user_id(self) -> Optional[str]:
        return (self._user or {}).get("id") or None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def loading(self) -> bool:
        return not self._settled.is_set()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)
        return _unsubscribe

    def _publish(self, event: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, self.user)
            except Exception:
                logger.exception("session.handle listener failed event=%s", event)

    def settle(self, user: Optional[Dict[str, Any]]) -> None:
        """Fixe l'état initial (utilisateur connecté ou invité) et débloque wait_settled()."""
        self._user = dict(user) if user else None
        self._settled.set()
        self._publish("settled")

    def sign_in(self, user: Dict[str, Any]) -> None:
        self._user = dict(user)
        self._settled.set()
        self._publish("signed_in")

    def sign_out(self) -> None:
        self._user = None
        self._publish("signed_out")

    async def wait_settled(self, timeout: Optional[float] = None) -> None:
        if timeout is None:
            await self._settled.wait()
        else:
            await asyncio.wait_for(self._settled.wait(), timeout)
