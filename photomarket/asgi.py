"""
ASGI entrypoint: expose `app` for process managers / deployments.

- En production, un process manager importe `photomarket.asgi:app`.
- Toute la configuration (routes, middlewares, sécurité) est centralisée dans
  photomarket.app_setup.factory; ce fichier ne fait qu'exposer l'instance.
"""

from photomarket.app import app

if __name__ == "__main__":
    import os
    import uvicorn
    uvicorn.run(
        "photomarket.asgi:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=True,
    )
