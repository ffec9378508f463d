"""
Moteur de prix pur (pas de DB, pas de Stripe).

Tarification « classique » par paliers: le palier applicable est celui dont la
quantité minimale est la plus grande tout en restant <= au nombre de photos; son
prix unitaire s'applique à TOUTES les photos du groupe.

Exemple avec les paliers [1 -> 10, 5 -> 8, 10 -> 6]:
    - 7 photos atteignent le palier « 5 -> 8 » (pas « 10 -> 6 »)
    - total: 7 x 8 = 56

Si la quantité est inférieure à tous les minimums, le palier au plus petit
minimum sert de prix plancher. Sans grille, on applique le prix fixe de l'album.
"""
import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from photomarket.config import COMMISSION_RATE
from .models import PricingSchedule, PricingTier

logger = logging.getLogger(__name__)

# module photomarket.pricing.engine
def select_tier(count: int, schedule: Optional[PricingSchedule]) -> Optional[PricingTier]:
    """
    Règle canonique de choix du palier (utilisée partout: aperçu album, panier, checkout).
    - Retourne None si la grille est absente ou vide.
    """
    if schedule is None or schedule.is_empty:
        return None
    tiers = sorted(schedule.tiers, key=lambda t: t.min_quantity, reverse=True)
    for tier in tiers:
        if tier.min_quantity <= count:
            return tier
    # Quantité sous tous les paliers: prix plancher du plus petit minimum
    return tiers[-1]

def compute_total(count: int, schedule: Optional[PricingSchedule], flat_price: float) -> float:
    """
    Prix total d'un lot de `count` photos.
    - count <= 0: 0 (ne devrait pas arriver en amont)
    - sans grille: count x prix fixe
    - sinon: count x prix unitaire du palier applicable
    Arrondi au centime.
    """
    if count <= 0:
        return 0.0
    tier = select_tier(count, schedule)
    unit_price = tier.unit_price if tier else float(flat_price or 0)
    return round(count * unit_price, 2)

def commission_for(amount: float, rate: float = COMMISSION_RATE) -> float:
    """Commission plateforme prélevée sur un montant."""
    return round(float(amount or 0) * rate, 2)

def net_for(amount: float, rate: float = COMMISSION_RATE) -> float:
    """Montant net reversé au photographe."""
    return round(float(amount or 0) - commission_for(amount, rate), 2)

def _parse_tiers(raw: Any) -> List[PricingTier]:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            logger.warning("pricing.engine: tiers JSON invalide")
            return []
    tiers: List[PricingTier] = []
    for entry in raw if isinstance(raw, Iterable) else []:
        if not isinstance(entry, dict):
            continue
        try:
            qty = int(float(entry.get("quantity", entry.get("min_quantity")) or 0))
            price = float(entry.get("price", entry.get("unit_price")) or 0)
        except (TypeError, ValueError):
            continue
        if qty < 1 or price < 0:
            continue
        tiers.append(PricingTier(min_quantity=qty, unit_price=price))
    return tiers

def schedule_from_row(row: Optional[Dict[str, Any]]) -> Optional[PricingSchedule]:
    """
    Construit une grille à partir d'une ligne 'pricing_packages'.
    - tiers: liste JSON [{"quantity": 5, "price": 8}, ...] (nombres en str tolérés)
    - Les paliers invalides sont ignorés.
    """
    if not row:
        return None
    return PricingSchedule(
        id=str(row["id"]) if row.get("id") is not None else None,
        name=row.get("name"),
        tiers=_parse_tiers(row.get("tiers")),
    )
