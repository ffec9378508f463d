"""
Factory d'application pour les entrypoints (ex: photomarket.asgi).
Ordonne les étapes d'initialisation de manière lisible et testable.
"""
from fastapi import FastAPI

from photomarket.config import PLATFORM_NAME
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_no_cache_middleware
from .security import register_security_middleware
from .exceptions import register_exception_handlers
from .routers import register_routers

def create_app() -> FastAPI:
    """
    Construit l'app FastAPI avec le lifespan et enregistre:
      - middlewares de base (session signée, CORS, hôtes), sécurité, no-cache
      - gestionnaire d'exceptions
      - tous les routers (API v1, retour de paiement, health)
    """
    app = FastAPI(title=f"{PLATFORM_NAME} API", lifespan=lifespan)
    register_basic_middlewares(app)
    register_security_middleware(app)
    register_no_cache_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
