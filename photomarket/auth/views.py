from fastapi import APIRouter, HTTPException, Depends, Response
from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Dict, Any, Literal

from photomarket.utils.validators import validate_password_strength
from photomarket.utils.security import require_user, set_session_cookie, clear_session_cookie
from photomarket.utils.rate_limit import optional_rate_limit
from .service import (
    login as svc_login,
    signup as svc_signup,
)

# --- API Router (/api/v1/auth) ---

api_router = APIRouter(prefix="/api/v1/auth", tags=["Auth API"])

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)
    full_name: str = Field(min_length=1)
    role: Literal["buyer", "photographer"] = "buyer"

    @field_validator("password")
    def password_strength(cls, v: str) -> str:
        return validate_password_strength(v)

@api_router.post("/login", dependencies=[Depends(optional_rate_limit(times=5, seconds=60))])
def api_login(req: LoginRequest, response: Response):
    """Connexion (API JSON).
    - Rate limit: 5 requêtes / 60 s.
    - Pose le cookie de session (sb_access) et retourne {access_token, token_type, user}.
    """
    result = svc_login(req.email, req.password)
    if not result.success:
        raise HTTPException(status_code=401, detail=result.error or "Identifiants invalides")
    if result.access_token:
        set_session_cookie(response, result.access_token)
    return {"access_token": result.access_token, "token_type": "bearer", "user": result.user}

@api_router.post("/signup", dependencies=[Depends(optional_rate_limit(times=3, seconds=60))])
def api_signup(req: SignupRequest, response: Response):
    """Inscription (API JSON).
    - Avec session: pose le cookie et retourne le JSON de session.
    - Sans session: message demandant la confirmation d'email.
    """
    result = svc_signup(req.email, req.password, req.full_name, role=req.role)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.error or "Erreur inscription")
    if result.access_token:
        set_session_cookie(response, result.access_token)
        return {"access_token": result.access_token, "token_type": "bearer", "user": result.user}
    return {"message": result.error or "Inscription réussie, vérifiez votre email"}

@api_router.get("/me")
def api_me(user: Dict[str, Any] = Depends(require_user)):
    """Utilisateur courant (id, email, rôle, metadata)."""
    return {"id": user["id"], "email": user["email"], "role": user["role"], "metadata": user["metadata"]}

@api_router.post("/logout")
def api_logout(response: Response):
    """Supprime le cookie de session (sb_access)."""
    clear_session_cookie(response)
    return {"message": "Déconnexion réussie"}
