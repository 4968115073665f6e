"""
asgi.py -- ASGI entry point for NodeVault.

Kept separate from api/main.py so process managers have one stable import
path (asgi:app) regardless of how the api/ package is laid out.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from api.main import app

__all__ = ["app"]
