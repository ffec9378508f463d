"""
Modèles du panier: un article = une photo, avec le contexte de son album
(photographe, grille tarifaire, prix fixe) dénormalisé pour le calcul des prix.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from photomarket.pricing.models import PricingSchedule

class CartItem(BaseModel):
    id: str
    title: Optional[str] = None
    watermarked_url: Optional[str] = None
    album_id: str
    album_title: Optional[str] = None
    seller_id: str
    seller_name: Optional[str] = None
    schedule: Optional[PricingSchedule] = None
    flat_price: float = 0.0

class CartGroup(BaseModel):
    album_id: str
    album_title: Optional[str] = None
    seller_id: str
    seller_name: Optional[str] = None
    schedule: Optional[PricingSchedule] = None
    flat_price: float = 0.0
    items: List[CartItem] = Field(default_factory=list)

    @property
    def item_ids(self) -> List[str]:
        return [item.id for item in self.items]

    @property
    def count(self) -> int:
        return len(self.items)
