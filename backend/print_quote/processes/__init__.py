# processes/__init__.py

# Expose key submodules
from . import print_3d

from .base_processor import BaseProcessor
from .print_3d import Print3DProcessor

# Define what gets imported with 'from print_quote.processes import *'
__all__ = [
    "print_3d",
    "BaseProcessor",
    "Print3DProcessor",
]
