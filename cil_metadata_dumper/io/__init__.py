"""
IO module for binary stream handling.
"""

from .binary_stream import BinaryStream
from .columns import Column, column_field, get_column

__all__ = ['BinaryStream', 'Column', 'column_field', 'get_column']
