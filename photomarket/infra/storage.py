"""
Adaptateur Supabase Storage: upload, URL publique et URL signée (temporaire).
- Les buckets privés (originaux, preuves) passent par la clé de service.
- Les erreurs remontent à l'appelant: c'est lui qui décide de l'isolation (ex: par photo).
"""
from typing import Any, Dict, Optional
import logging

import photomarket.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

# module photomarket.infra.storage
def upload(bucket: str, path: str, blob: bytes, content_type: Optional[str] = None) -> str:
    """Dépose un fichier dans le bucket et retourne le chemin stocké."""
    options: Dict[str, str] = {}
    if content_type:
        options["content-type"] = content_type
    (
        supabase_client.get_service_supabase()
        .storage
        .from_(bucket)
        .upload(path, blob, file_options=options or None)
    )
    return path

def get_public_url(bucket: str, path: str) -> str:
    """URL publique d'un objet (bucket public, ex: preuves de paiement, aperçus)."""
    res = supabase_client.get_service_supabase().storage.from_(bucket).get_public_url(path)
    # Selon la version du SDK: str ou {"publicUrl": ...}
    if isinstance(res, dict):
        return res.get("publicUrl") or res.get("publicURL") or ""
    return str(res or "")

def create_signed_url(bucket: str, path: str, ttl_seconds: int) -> str:
    """
    URL signée à durée limitée vers un objet privé.
    - Lève RuntimeError si le SDK ne renvoie pas d'URL.
    """
    if not path:
        raise ValueError("Chemin de fichier manquant")
    res: Any = (
        supabase_client.get_service_supabase()
        .storage
        .from_(bucket)
        .create_signed_url(path, ttl_seconds)
    )
    url = None
    if isinstance(res, dict):
        url = res.get("signedURL") or res.get("signedUrl") or res.get("signed_url")
    else:
        url = getattr(res, "signed_url", None)
    if not url:
        raise RuntimeError(f"URL signée indisponible pour {bucket}/{path}")
    return url
