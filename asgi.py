"""
asgi.py -- ASGI entry point for LoginKeep.

Kept separate from api/main.py so deployment tooling has one stable import
path regardless of how the api/ package is organised internally.

Run with:  uvicorn asgi:app --reload
"""

from api.main import app

__all__ = ["app"]
