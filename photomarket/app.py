"""
Instance FastAPI unique de l'application (construite par la factory).
"""
from photomarket.app_setup.factory import create_app

app = create_app()
