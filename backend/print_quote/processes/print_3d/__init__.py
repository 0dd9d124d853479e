# processes/print_3d/__init__.py

# This file makes the 'print_3d' directory a Python sub-package.

from .processor import Print3DProcessor
from .pricing import DEFAULT_PRICING_RATES, price_quote, validate_configuration
from .estimates import estimate_print_time, estimate_delivery_days

__all__ = [
    "Print3DProcessor",
    "DEFAULT_PRICING_RATES",
    "price_quote",
    "validate_configuration",
    "estimate_print_time",
    "estimate_delivery_days",
]
