# print_quote/__init__.py

# This file makes the 'print_quote' directory a Python package.

from . import core
from . import processes

__version__ = "0.1.0"

# Define what gets imported with 'from print_quote import *'
__all__ = [
    "core",
    "processes",
]
