# api/routers/__init__.py

from . import files, materials, quotes

__all__ = ["files", "materials", "quotes"]
