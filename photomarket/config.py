# photomarket.config
from pathlib import Path
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=True)

"""
Configuration centrale du backend PhotoMarket.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe, Gemini), sécurité cookies, CORS/hosts
- Paramètres plateforme: commission, devise, durée des URLs signées
- Chemins de retour du checkout (redirection Stripe) et de la page « mes achats »
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

def _float_env(name: str, default: float) -> float:
    try:
        return float(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

def _int_env(name: str, default: int) -> int:
    try:
        return int(_clean_env(os.getenv(name) or "") or default)
    except ValueError:
        return default

# Supabase: URLs et clés (anon/service)
# - SUPABASE_URL peut parfois être sans schéma: on préfixe en https:// si nécessaire
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or os.getenv("VITE_SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or os.getenv("SUPABASE_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Cookies / sessions
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
SESSION_SECRET_KEY = _clean_env(os.getenv("SESSION_SECRET_KEY") or "replace_me_with_a_long_random_secret")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# URL de confirmation après inscription
SIGNUP_REDIRECT_URL = os.getenv("SIGNUP_REDIRECT_URL", "http://localhost:8000/auth")

# Stripe: clé publique (exposée au front pour le checkout embarqué), clé secrète et secret webhook
STRIPE_PUBLIC_KEY = _clean_env(os.getenv("STRIPE_PUBLIC_KEY") or os.getenv("VITE_STRIPE_PUBLISHABLE_KEY") or "")
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")
STRIPE_WEBHOOK_SECRET = _clean_env(os.getenv("STRIPE_WEBHOOK_SECRET") or "")
# "embedded" (client_secret) ou "hosted" (url de redirection)
CHECKOUT_UI_MODE = _clean_env(os.getenv("CHECKOUT_UI_MODE") or "embedded")

# Détection de dossards (collaborateur IA externe, non implémenté ici)
GEMINI_API_KEY = _clean_env(os.getenv("GEMINI_API_KEY") or os.getenv("VITE_GEMINI_API_KEY") or "")

# Plateforme
PLATFORM_NAME = os.getenv("PLATFORM_NAME", "PhotoMarket")
COMMISSION_RATE = _float_env("COMMISSION_RATE", 0.10)
CURRENCY = _clean_env(os.getenv("CURRENCY") or "usd").lower()

# Stockage: buckets et durée de validité des URLs signées (secondes)
ORIGINALS_BUCKET = os.getenv("ORIGINALS_BUCKET", "original-photos")
PAYMENT_PROOFS_BUCKET = os.getenv("PAYMENT_PROOFS_BUCKET", "payment-proofs")
SIGNED_URL_TTL_SECONDS = _int_env("SIGNED_URL_TTL_SECONDS", 3600)

# Retour de paiement et page « mes achats »
CHECKOUT_RETURN_PATH = os.getenv("CHECKOUT_RETURN_PATH", "/checkout/return")
CART_PAGE_PATH = os.getenv("CART_PAGE_PATH", "/cart")
PURCHASES_PAGE_PATH = os.getenv("PURCHASES_PAGE_PATH", "/api/v1/purchases")

BASE_URL = _clean_env(os.getenv("BASE_URL") or "http://localhost:8000")
