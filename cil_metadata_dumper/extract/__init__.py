"""
Metadata table extractors.
"""

from .extractors import (
    extract_module,
    extract_type_refs,
    extract_type_defs,
    extract_assembly_refs,
)

__all__ = ['extract_module', 'extract_type_refs', 'extract_type_defs', 'extract_assembly_refs']
