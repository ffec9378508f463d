"""
Consultation d'album par titre lisible (URL encodée, casse ignorée) et
aperçu de prix selon la règle canonique des paliers.
"""
from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Query

from photomarket.albums import repository as albums_repo
from photomarket.pricing.engine import compute_total, schedule_from_row, select_tier

router = APIRouter(prefix="/api/v1/albums", tags=["Albums API"])

def _album_or_404(title: str) -> Dict[str, Any]:
    album = albums_repo.get_album_by_title(title)
    if not album:
        raise HTTPException(status_code=404, detail="Album introuvable")
    return album

def _flat_price(album: Dict[str, Any]) -> float:
    try:
        return float(album.get("price") or 0)
    except (TypeError, ValueError):
        return 0.0

# module photomarket.catalog.views
@router.get("/{title}")
def read_album(title: str) -> Dict[str, Any]:
    album = _album_or_404(title)
    schedule = schedule_from_row(album.get("pricing_packages"))
    return {
        "id": album.get("id"),
        "title": album.get("title"),
        "photographer_id": album.get("photographer_id"),
        "photographer_name": (album.get("profiles") or {}).get("full_name"),
        "cover_image_url": album.get("cover_image_url"),
        "price": _flat_price(album),
        "pricing": schedule.to_public() if schedule and not schedule.is_empty else None,
    }

@router.get("/{title}/price")
def price_preview(title: str, count: int = Query(1, ge=0, le=1000)) -> Dict[str, Any]:
    """Prix pour `count` photos de l'album: palier applicable et total."""
    album = _album_or_404(title)
    schedule = schedule_from_row(album.get("pricing_packages"))
    tier = select_tier(count, schedule)
    return {
        "count": count,
        "tier": {"quantity": tier.min_quantity, "price": tier.unit_price} if tier else None,
        "unit_price": tier.unit_price if tier else _flat_price(album),
        "total": compute_total(count, schedule, _flat_price(album)),
    }
