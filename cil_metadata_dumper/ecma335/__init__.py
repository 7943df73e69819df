"""
ECMA-335 core module.
"""

from .metadata import Metadata
from .enums import TableId, HeapSizes, HANDLE_KIND_NAMES
from .handles import Handle, CodedIndex
from .structures import *

__all__ = [
    'Metadata',
    'TableId',
    'HeapSizes',
    'Handle',
    'CodedIndex',
    'HANDLE_KIND_NAMES',
    # Re-export the rows that get extracted
    'ModuleRow',
    'TypeRefRow',
    'TypeDefRow',
    'AssemblyRefRow',
]
