"""
Accès aux données 'albums' et 'photos'.
- Les albums sont exposés par titre lisible dans les routes (encodé URL, casse ignorée).
- Les jointures passent par l'expansion de clés étrangères PostgREST.
- Lectures tolérantes: [] ou None en cas d'erreur (journalisée).
"""
from typing import Any, Dict, List, Optional
import logging

import photomarket.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

ALBUM_SELECT = "*, pricing_packages:pricing_package_id(*), profiles:photographer_id(full_name)"
PHOTO_WITH_ALBUM_SELECT = (
    "id, title, watermarked_url, original_url, album_id, "
    "albums:album_id(id, title, price, photographer_id, "
    "pricing_packages:pricing_package_id(*), profiles:photographer_id(full_name))"
)

def _escape_like(value: str) -> str:
    # ilike sans joker = égalité insensible à la casse
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")

# module photomarket.albums.repository
def get_album_by_title(title: str) -> Optional[Dict[str, Any]]:
    """Album (avec grille et photographe) par titre, comparaison insensible à la casse."""
    title = (title or "").strip()
    if not title:
        return None
    try:
        res = (
            supabase_client.get_supabase()
            .table("albums")
            .select(ALBUM_SELECT)
            .ilike("title", _escape_like(title))
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("albums.repository.get_album_by_title failed title=%s", title)
        return None

def get_album(album_id: str) -> Optional[Dict[str, Any]]:
    if not album_id:
        return None
    try:
        res = (
            supabase_client.get_supabase()
            .table("albums")
            .select(ALBUM_SELECT)
            .eq("id", album_id)
            .maybe_single()
            .execute()
        )
        return (res.data if res else None) or None
    except Exception:
        logger.exception("albums.repository.get_album failed album_id=%s", album_id)
        return None

def list_album_photos(album_id: str, photo_ids: Optional[List[str]] = None) -> List[Dict[str, Any]]:
    """
    Photos d'un album, éventuellement restreintes à un sous-ensemble d'IDs.
    - Lecture via la clé de service: original_url n'est jamais exposé publiquement.
    """
    if not album_id:
        return []
    try:
        query = (
            supabase_client.get_service_supabase()
            .table("photos")
            .select("id, title, watermarked_url, original_url, album_id, created_at")
            .eq("album_id", album_id)
        )
        if photo_ids is not None:
            query = query.in_("id", [str(i) for i in photo_ids])
        res = query.order("created_at", desc=False).execute()
        return res.data or []
    except Exception:
        logger.exception("albums.repository.list_album_photos failed album_id=%s", album_id)
        return []

def fetch_photos_with_album(photo_ids: List[str]) -> List[Dict[str, Any]]:
    """Photos + album (prix, grille, photographe) pour hydrater un panier."""
    if not photo_ids:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("photos")
            .select(PHOTO_WITH_ALBUM_SELECT)
            .in_("id", [str(i) for i in photo_ids])
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("albums.repository.fetch_photos_with_album failed ids=%s", photo_ids)
        return []
