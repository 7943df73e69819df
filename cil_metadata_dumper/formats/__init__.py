"""
Executable format parsers.

Supports:
- PE (Windows) - 32-bit and 64-bit managed images
"""

from .pe import PE
from .pe_structures import *

__all__ = ['PE']
