import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from photomarket.payments import repository as payments_repo
from photomarket.payments.models import Transaction
from photomarket.session import SessionHandle, FLASH_KEY
from photomarket.utils.security import get_session_handle, require_seller
from . import service as purchases_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/purchases", tags=["Purchases API"])
sales_router = APIRouter(prefix="/api/v1/sales", tags=["Sales API"])

def _owned_transaction(tx_id: str, handle: SessionHandle) -> Transaction:
    tx = payments_repo.get_transaction(tx_id)
    # 404 aussi pour une transaction d'un autre acheteur: pas de fuite d'existence
    if tx is None or not purchases_service.session_owns(tx, handle):
        raise HTTPException(status_code=404, detail="Achat introuvable")
    return tx

# module photomarket.purchases.views
@router.get("")
def my_purchases(request: Request, handle: SessionHandle = Depends(get_session_handle)) -> Dict[str, Any]:
    """
    Achats de l'utilisateur connecté et de la session invitée.
    - notice: message laissé par le retour de paiement (affiché une seule fois)
    """
    notice = request.session.pop(FLASH_KEY, None)
    return {"purchases": purchases_service.list_purchases(handle), "notice": notice}

@router.get("/{tx_id}/downloads")
def purchase_downloads(tx_id: str, handle: SessionHandle = Depends(get_session_handle)) -> Dict[str, Any]:
    """Liens de téléchargement temporaires (1 h) des photos débloquées; verrouillé si virement en attente."""
    tx = _owned_transaction(tx_id, handle)
    return purchases_service.AccessResolver().resolve_access(tx).to_public()

@router.post("/{tx_id}/proof")
async def upload_proof(
    tx_id: str,
    file: UploadFile = File(...),
    handle: SessionHandle = Depends(get_session_handle),
) -> Dict[str, Any]:
    """Preuve de virement (image ou PDF) pour une transaction en attente."""
    tx = _owned_transaction(tx_id, handle)
    content = await file.read()
    try:
        updated = purchases_service.upload_payment_proof(tx, file.filename or "", content, file.content_type)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("Erreur upload_proof tx_id=%s", tx_id)
        raise HTTPException(status_code=502, detail="Envoi de la preuve impossible")
    return {"transaction": updated.to_public()}

@sales_router.get("")
def my_sales(user: Dict[str, Any] = Depends(require_seller)) -> Dict[str, Any]:
    """Ventes du photographe connecté (montant, commission plateforme, net)."""
    return purchases_service.list_seller_sales(user["id"])
