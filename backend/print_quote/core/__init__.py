# core/__init__.py

# This file makes the 'core' directory a Python package.

from . import common_types
from . import exceptions
from . import utils
from . import stl
from . import geometry

from .geometry import analyze_mesh, analyze_upload, placeholder_analysis

# Define what gets imported with 'from print_quote.core import *'
__all__ = [
    "common_types",
    "exceptions",
    "utils",
    "stl",
    "geometry",
    "analyze_mesh",
    "analyze_upload",
    "placeholder_analysis",
]
