from typing import Any, Dict
from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from . import service as cart_service
from .store import CartStore

router = APIRouter(prefix="/api/v1/cart", tags=["Cart API"])

class AddItemRequest(BaseModel):
    photo_id: str = Field(min_length=1)

def get_cart(request: Request) -> CartStore:
    return CartStore(request.session)

# module photomarket.cart.views
@router.get("")
def read_cart(request: Request) -> Dict[str, Any]:
    """Panier courant groupé par album, avec le total de chaque groupe et le total général."""
    return cart_service.cart_summary(get_cart(request))

@router.post("/items")
def add_to_cart(req: AddItemRequest, request: Request) -> Dict[str, Any]:
    return cart_service.add_item(get_cart(request), req.photo_id)

@router.delete("/items/{photo_id}")
def remove_from_cart(photo_id: str, request: Request) -> Dict[str, Any]:
    return cart_service.remove_item(get_cart(request), photo_id)

@router.delete("")
def clear_cart(request: Request) -> Dict[str, Any]:
    get_cart(request).clear()
    return {"status": "ok"}
