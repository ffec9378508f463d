"""
Registre central des routers.
- API v1: auth, albums, panier, checkout, paiements (webhook), achats, ventes
- Retour de paiement: /checkout/return
- Health: /health
"""
from fastapi import FastAPI
from photomarket.auth.views import api_router as auth_api_router
from photomarket.catalog import views as catalog_views
from photomarket.cart import views as cart_views
from photomarket.checkout import views as checkout_views
from photomarket.payments import views as payments_views
from photomarket.purchases import views as purchases_views
from photomarket.health.router import router as health_router

def register_routers(app: FastAPI) -> None:
    # API v1
    app.include_router(auth_api_router)
    app.include_router(catalog_views.router)
    app.include_router(cart_views.router)
    app.include_router(checkout_views.router)
    app.include_router(payments_views.router)
    app.include_router(purchases_views.router)
    app.include_router(purchases_views.sales_router)
    # Retour de redirection Stripe
    app.include_router(payments_views.return_router)
    # Health & monitoring
    app.include_router(health_router)
