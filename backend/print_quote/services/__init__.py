# services/__init__.py

from .quote_service import QuoteService, generate_quote_reference

__all__ = [
    "QuoteService",
    "generate_quote_reference",
]
