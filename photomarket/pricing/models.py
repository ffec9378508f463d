"""
Modèles de tarification: paliers de volume et grille (package) associée à un album.
"""
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

class PricingTier(BaseModel):
    min_quantity: int = Field(ge=1)
    unit_price: float = Field(ge=0)

class PricingSchedule(BaseModel):
    id: Optional[str] = None
    name: Optional[str] = None
    tiers: List[PricingTier] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.tiers

    def to_public(self) -> Dict[str, Any]:
        """Forme renvoyée au front: paliers triés par quantité croissante (affichage)."""
        return {
            "id": self.id,
            "name": self.name,
            "tiers": [
                {"quantity": t.min_quantity, "price": t.unit_price}
                for t in sorted(self.tiers, key=lambda t: t.min_quantity)
            ],
        }
