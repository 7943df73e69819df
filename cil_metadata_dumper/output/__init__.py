"""
Output generation module.
"""

from .document import Document, Table, Array, Scalar
from .toml_writer import to_toml, save

__all__ = ['Document', 'Table', 'Array', 'Scalar', 'to_toml', 'save']
