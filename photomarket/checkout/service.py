"""
Cas d'usage 'checkout': persistance de la session de checkout dans le cookie
signé et chargement des collaborateurs (groupe du panier, photographe).
"""
from typing import Any, MutableMapping, Optional
import logging

from pydantic import ValidationError

from photomarket.cart import service as cart_service
from photomarket.cart.models import CartGroup
from photomarket.cart.store import CartStore
from photomarket.session import SessionHandle
from photomarket.users import repository as users_repo
from photomarket.users.models import SellerPaymentProfile
from .models import CheckoutSession
from .state import CheckoutMachine

logger = logging.getLogger(__name__)

CHECKOUT_KEY = "checkout"

def load_session(store: MutableMapping[str, Any]) -> Optional[CheckoutSession]:
    raw = store.get(CHECKOUT_KEY)
    if not raw:
        return None
    try:
        return CheckoutSession.model_validate(raw)
    except ValidationError:
        logger.warning("checkout.service.load_session: session illisible, ignorée")
        store.pop(CHECKOUT_KEY, None)
        return None

def save_session(store: MutableMapping[str, Any], machine: CheckoutMachine) -> None:
    if machine.session is None:
        store.pop(CHECKOUT_KEY, None)
        return
    store[CHECKOUT_KEY] = machine.session.model_dump(mode="json")

def discard(store: MutableMapping[str, Any]) -> None:
    store.pop(CHECKOUT_KEY, None)

def machine_for(handle: SessionHandle) -> CheckoutMachine:
    return CheckoutMachine(handle, session=load_session(handle.store))

def current_group(store: MutableMapping[str, Any], album_id: Optional[str]) -> Optional[CartGroup]:
    if not album_id:
        return None
    return cart_service.load_group(CartStore(store), album_id)

def seller_for(group: Optional[CartGroup]) -> Optional[SellerPaymentProfile]:
    if group is None:
        return None
    return users_repo.get_seller(group.seller_id)
