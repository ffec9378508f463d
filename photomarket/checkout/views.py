from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel, Field

from photomarket.cart.store import CartStore
from photomarket.session import SessionHandle
from photomarket.utils.rate_limit import optional_rate_limit
from photomarket.utils.security import get_session_handle, set_session_cookie
from . import service as checkout_service
from .models import AuthMode, CheckoutResult, ErrorKind, IdentityForm, PaymentMethod

router = APIRouter(prefix="/api/v1/checkout", tags=["Checkout API"])

ERROR_STATUS = {
    ErrorKind.VALIDATION: 422,
    ErrorKind.AUTH: 401,
    ErrorKind.SETTLEMENT: 400,
    ErrorKind.RECORDING: 502,
}

class StartRequest(BaseModel):
    album_id: str = Field(min_length=1)

class IdentityRequest(BaseModel):
    auth_mode: AuthMode = AuthMode.LOGIN
    full_name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

class MethodRequest(BaseModel):
    method: PaymentMethod
    discount_code: Optional[str] = None

class ConfirmTransferRequest(BaseModel):
    acknowledged: bool = False

def _respond(result: CheckoutResult) -> Dict[str, Any]:
    if not result.success:
        raise HTTPException(
            status_code=ERROR_STATUS.get(result.kind, 400),
            detail={"kind": result.kind.value if result.kind else None, "message": result.error},
        )
    return result.data

# module photomarket.checkout.views
@router.post("/start", dependencies=[Depends(optional_rate_limit(times=20, seconds=60))])
async def start_checkout(req: StartRequest, handle: SessionHandle = Depends(get_session_handle)):
    """Ouvre le checkout pour les photos d'un album présentes dans le panier."""
    machine = checkout_service.machine_for(handle)
    result = await machine.start(checkout_service.current_group(handle.store, req.album_id))
    if result.success:
        checkout_service.save_session(handle.store, machine)
    return _respond(result)

@router.get("")
def read_checkout(handle: SessionHandle = Depends(get_session_handle)):
    """Étape courante, total du groupe (lecture seule) et moyens de paiement proposés."""
    machine = checkout_service.machine_for(handle)
    if machine.session is None:
        raise HTTPException(status_code=404, detail="Aucun paiement en cours")
    group = checkout_service.current_group(handle.store, machine.session.album_id)
    return machine.describe(group, checkout_service.seller_for(group))

@router.post("/identity", dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
async def submit_identity(
    req: IdentityRequest,
    response: Response,
    handle: SessionHandle = Depends(get_session_handle),
):
    """
    Étape identité: connexion ou inscription (rôle acheteur).
    - Succès avec session: pose le cookie sb_access (le jeton n'est pas renvoyé dans le JSON).
    """
    machine = checkout_service.machine_for(handle)
    result = await machine.submit_identity(IdentityForm(**req.model_dump()))
    if result.success:
        token = result.data.pop("access_token", None)
        if token:
            set_session_cookie(response, token)
        checkout_service.save_session(handle.store, machine)
    return _respond(result)

@router.post("/method", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def select_method(req: MethodRequest, handle: SessionHandle = Depends(get_session_handle)):
    """
    Choix du moyen de paiement.
    - card: crée la session Stripe et renvoie client_secret (embarqué) ou checkout_url (hébergé)
    - bank_transfer: renvoie les coordonnées bancaires du photographe
    """
    machine = checkout_service.machine_for(handle)
    album_id = machine.session.album_id if machine.session else None
    group = checkout_service.current_group(handle.store, album_id)
    result = await machine.select_method(req.method, group, checkout_service.seller_for(group), req.discount_code)
    if result.success:
        checkout_service.save_session(handle.store, machine)
    return _respond(result)

@router.post("/confirm-transfer", dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
async def confirm_transfer(req: ConfirmTransferRequest, request: Request, handle: SessionHandle = Depends(get_session_handle)):
    """Virement effectué: enregistre la transaction en attente de validation par le photographe."""
    machine = checkout_service.machine_for(handle)
    album_id = machine.session.album_id if machine.session else None
    group = checkout_service.current_group(handle.store, album_id)
    result = await machine.confirm_transfer(req.acknowledged, group, checkout_service.seller_for(group))
    if result.success:
        CartStore(request.session).remove_many(machine.session.item_ids)
        checkout_service.discard(handle.store)
    return _respond(result)

@router.post("/back")
def go_back(handle: SessionHandle = Depends(get_session_handle)):
    machine = checkout_service.machine_for(handle)
    result = machine.back()
    if result.success:
        checkout_service.save_session(handle.store, machine)
    return _respond(result)

@router.delete("")
def cancel_checkout(handle: SessionHandle = Depends(get_session_handle)):
    """Fermeture du checkout: la session transitoire est détruite (aucun état serveur sur le chemin carte)."""
    checkout_service.discard(handle.store)
    return {"status": "ok"}
