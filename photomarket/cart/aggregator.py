"""
Agrégation pure du panier (pas de DB, pas de Stripe).
- Regroupe les articles par album (un groupe = un paiement = un photographe).
- Les totaux passent toujours par pricing.engine.compute_total.
"""
from typing import Any, Dict, Iterable, List

from photomarket.pricing.engine import compute_total, select_tier
from .models import CartGroup, CartItem

# module photomarket.cart.aggregator
def group_by_album(items: Iterable[CartItem]) -> Dict[str, CartGroup]:
    """
    Partitionne les articles en groupes par album_id.
    - L'ordre d'insertion est conservé dans chaque groupe (et entre groupes).
    - Un même article présent deux fois n'est compté qu'une fois.
    """
    groups: Dict[str, CartGroup] = {}
    seen = set()
    for item in items or []:
        if item.id in seen:
            continue
        seen.add(item.id)
        group = groups.get(item.album_id)
        if group is None:
            group = CartGroup(
                album_id=item.album_id,
                album_title=item.album_title,
                seller_id=item.seller_id,
                seller_name=item.seller_name,
                schedule=item.schedule,
                flat_price=item.flat_price,
            )
            groups[item.album_id] = group
        group.items.append(item)
    return groups

def total_for_group(group: CartGroup) -> float:
    return compute_total(len(group.items), group.schedule, group.flat_price)

def grand_total(items: Iterable[CartItem]) -> float:
    return round(sum(total_for_group(g) for g in group_by_album(items).values()), 2)

def group_summary(group: CartGroup) -> Dict[str, Any]:
    tier = select_tier(group.count, group.schedule)
    return {
        "album_id": group.album_id,
        "album_title": group.album_title,
        "seller_id": group.seller_id,
        "seller_name": group.seller_name,
        "item_count": group.count,
        "unit_price": tier.unit_price if tier else group.flat_price,
        "tier_min_quantity": tier.min_quantity if tier else None,
        "total": total_for_group(group),
        "items": [
            {"id": i.id, "title": i.title, "watermarked_url": i.watermarked_url}
            for i in group.items
        ],
    }

def summarize(items: Iterable[CartItem]) -> Dict[str, Any]:
    """Résumé JSON du panier: groupes, nombre d'articles, total général."""
    groups: List[CartGroup] = list(group_by_album(items).values())
    summaries = [group_summary(g) for g in groups]
    return {
        "groups": summaries,
        "item_count": sum(g.count for g in groups),
        "grand_total": round(sum(s["total"] for s in summaries), 2),
    }
