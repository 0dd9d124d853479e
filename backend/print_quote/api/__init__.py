# api/__init__.py

from .main import create_app

__all__ = ["create_app"]
