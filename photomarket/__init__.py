"""
PhotoMarket: marketplace de photos d'événements (aperçus filigranés, originaux privés).
Backend FastAPI: panier, tarification par paliers, checkout Stripe / virement, accès aux achats.
"""
