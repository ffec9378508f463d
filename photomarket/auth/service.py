from typing import Optional, Dict, Any
from photomarket.auth.models import AuthResponse, make_auth_response, handle_exception, determine_role
from photomarket.users.repository import get_profile_by_email
from photomarket.config import SIGNUP_REDIRECT_URL
from .repository import (
    auth_sign_in_password as sign_in_password,
    auth_sign_up_account as sign_up_account,
    get_user_from_access_token as _repo_get_user_from_token,
)

# --- Cas d'usage Auth exposés ---

def login(email: str, password: str) -> AuthResponse:
    """Connexion:
    - Délègue à supabase.auth.sign_in_with_password via repository
    - Normalise la réponse en AuthResponse
    - Message de fallback: identifiants invalides ou email non confirmé
    """
    try:
        email = (email or "").strip()
        res = sign_in_password(email, password)
        return make_auth_response(res, fallback_error="Identifiants invalides ou email non confirmé")
    except Exception as e:
        return handle_exception("sign_in", e)

def signup(
    email: str,
    password: str,
    full_name: Optional[str] = None,
    role: str = "buyer",
    metadata: Optional[Dict[str, Any]] = None,
) -> AuthResponse:
    """Inscription:
    - Vérifie côté serveur si l'email existe déjà (best-effort)
    - Injecte full_name, rôle (buyer/photographer) et metadata additionnelles dans user_metadata
    - Retourne soit une session (access_token) soit un succès sans session invitant à confirmer l'email
    - Transforme les erreurs « utilisateur existe déjà »
    """
    try:
        email = (email or "").strip()

        try:
            if get_profile_by_email(email):
                return AuthResponse(False, error="Utilisateur existe déjà")
        except Exception:
            pass

        options_data: Dict[str, Any] = dict(metadata or {})
        if full_name:
            options_data["full_name"] = full_name.strip()
        options_data["role"] = determine_role({"role": role})

        res = sign_up_account(
            email=email,
            password=password,
            options_data=options_data,
            email_redirect_to=SIGNUP_REDIRECT_URL,
        )

        sess = getattr(res, "session", None)
        if sess and getattr(sess, "access_token", None):
            return make_auth_response(res)
        # Succès sans session (vérification email)
        return AuthResponse(True, error="Inscription réussie, vérifiez votre email")
    except Exception as e:
        msg = str(e).lower()
        if any(k in msg for k in ["already", "register", "exists", "database error saving new user", "23505"]):
            return AuthResponse(False, error="Utilisateur existe déjà")
        return handle_exception("sign_up", e)

# --- Intégration sécurité ---

def get_user_from_token(access_token: str) -> Dict[str, Any]:
    """Normalise user issu de supabase.auth.get_user(access_token):
    - Retourne {id, email, full_name, metadata, role, token}
    """
    raw = _repo_get_user_from_token(access_token)
    metadata = raw.get("user_metadata") or {}
    return {
        "id": raw.get("id"),
        "email": raw.get("email"),
        "full_name": metadata.get("full_name"),
        "metadata": metadata,
        "role": determine_role(metadata),
        "token": access_token,
    }
