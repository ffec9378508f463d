from fastapi import Request, HTTPException, Depends
from fastapi.responses import Response
from typing import Optional, Dict, Any
from photomarket.config import COOKIE_SECURE
from photomarket.session import SessionHandle

COOKIE_NAME = "sb_access"

def set_session_cookie(response: Response, access_token: str):
    response.set_cookie(
        key=COOKIE_NAME,
        value=access_token,
        httponly=True,
        secure=COOKIE_SECURE,
        samesite="Lax",
        max_age=60 * 60,
        path="/",
    )

def clear_session_cookie(response: Response):
    response.delete_cookie(COOKIE_NAME, path="/")

def _token_from_request(request: Request) -> Optional[str]:
    # Hybride: priorité au Bearer, fallback cookie
    token = None
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
    if not token:
        token = request.cookies.get(COOKIE_NAME)
    return token or None

def get_current_user(request: Request) -> Dict[str, Any]:
    token = _token_from_request(request)
    if not token:
        raise HTTPException(status_code=401, detail="Non authentifié")

    try:
        from photomarket.auth.service import get_user_from_token as _svc_get_user_from_token
        user = _svc_get_user_from_token(token)
        if not user.get("id"):
            raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
        return user
    except HTTPException:
        raise
    except Exception:
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")

def get_optional_user(request: Request) -> Optional[Dict[str, Any]]:
    """Utilisateur courant ou None (acheteur invité). Jamais d'erreur 401."""
    if not _token_from_request(request):
        return None
    try:
        return get_current_user(request)
    except HTTPException:
        return None

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user

def require_seller(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if user.get("role") != "photographer":
        raise HTTPException(status_code=403, detail="Accès réservé aux photographes")
    return user

def get_session_handle(request: Request, user: Optional[Dict[str, Any]] = Depends(get_optional_user)) -> SessionHandle:
    """
    Poignée de session partagée pendant la requête.
    - Adossée à la session client signée (SessionMiddleware) pour le verrou de réconciliation.
    - L'état d'auth est « réglé » dès que l'utilisateur optionnel est résolu.
    """
    handle = getattr(request.state, "session_handle", None)
    if handle is None:
        handle = SessionHandle(store=request.session)
        handle.settle(user)
        request.state.session_handle = handle
    return handle
