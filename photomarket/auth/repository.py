from typing import Optional, Dict, Any
import photomarket.infra.supabase_client as supabase_client

# --- Auth (supabase.auth.*) ---

def auth_sign_in_password(email: str, password: str):
    """Wrapper Supabase Auth: connexion par email/mot de passe (GoTrue)."""
    client = supabase_client.get_supabase()
    return client.auth.sign_in_with_password({"email": email, "password": password})

def auth_sign_up_account(
    email: str,
    password: str,
    options_data: Optional[Dict[str, Any]] = None,
    email_redirect_to: Optional[str] = None
):
    """Wrapper Supabase Auth: inscription d'un compte.
    - options.data: metadata (full_name, role, ...) reprises par le trigger de création du profil
    - options.email_redirect_to: URL de confirmation (SIGNUP_REDIRECT_URL)
    """
    client = supabase_client.get_supabase()
    credentials: Dict[str, Any] = {"email": email, "password": password}

    if options_data or email_redirect_to:
        credentials["options"] = {}
        if options_data:
            credentials["options"]["data"] = options_data
        if email_redirect_to:
            credentials["options"]["email_redirect_to"] = email_redirect_to

    return client.auth.sign_up(credentials)

def get_user_from_access_token(access_token: str) -> Dict[str, Any]:
    """Récupère et normalise l'utilisateur depuis supabase.auth.get_user(access_token)."""
    res = supabase_client.get_supabase().auth.get_user(access_token)
    user = getattr(res, "user", None) or {}
    if not isinstance(user, dict):
        user = {
            "id": getattr(user, "id", None),
            "email": getattr(user, "email", None),
            "user_metadata": getattr(user, "user_metadata", None),
        }
    return user or {}
