"""
Diagnostics de configuration et de connectivité (sans exposer de secret).
"""
from typing import Any, Dict
import logging

import photomarket.infra.supabase_client as supabase_client
from photomarket.config import (
    SUPABASE_URL,
    SUPABASE_ANON,
    SUPABASE_SERVICE_KEY,
    STRIPE_PUBLIC_KEY,
    STRIPE_SECRET_KEY,
    STRIPE_WEBHOOK_SECRET,
    CHECKOUT_UI_MODE,
)

logger = logging.getLogger(__name__)

def health_supabase_info() -> Dict[str, Any]:
    info: Dict[str, Any] = {
        "url_set": bool(SUPABASE_URL),
        "anon_key_set": bool(SUPABASE_ANON),
        "service_key_set": bool(SUPABASE_SERVICE_KEY),
        "ok": False,
    }
    try:
        supabase_client.get_supabase().table("albums").select("id").limit(1).execute()
        info["ok"] = True
    except Exception as e:
        logger.exception("health.supabase failed")
        info["error"] = type(e).__name__
    return info

def health_stripe_info() -> Dict[str, Any]:
    return {
        "public_key_set": bool(STRIPE_PUBLIC_KEY),
        "secret_key_set": bool(STRIPE_SECRET_KEY),
        "webhook_secret_set": bool(STRIPE_WEBHOOK_SECRET),
        "live_mode": STRIPE_SECRET_KEY.startswith("sk_live_"),
        "ui_mode": CHECKOUT_UI_MODE,
    }
