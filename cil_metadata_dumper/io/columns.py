"""
Column field helpers and utilities.

This module provides helpers for defining dataclass fields that map to
columns of a binary record. A column is either fixed width, an index into
one of the metadata heaps, an index into another table, or a coded index
that can point into one of several tables.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

# Heap names as used by the metadata stream headers
STRING_HEAP = 'string'
GUID_HEAP = 'guid'
BLOB_HEAP = 'blob'


@dataclass(frozen=True)
class Column:
    """
    Describes how a field is stored.

    Exactly one of ``width``, ``heap``, ``table`` or ``coded`` is set.
    """

    width: int = 0
    heap: Optional[str] = None
    table: Optional[int] = None
    coded: Any = None

    def __repr__(self) -> str:
        if self.width:
            return f"Column(width={self.width})"
        if self.heap is not None:
            return f"Column(heap={self.heap!r})"
        if self.table is not None:
            return f"Column(table=0x{self.table:02x})"
        return f"Column(coded={self.coded!r})"


def column_field(column: Column, default: int = 0):
    """
    Create a dataclass field with column metadata.

    Example:
        @dataclass
        class TypeRefRow:
            resolution_scope: int = coded_field(RESOLUTION_SCOPE)
            type_name: int = string_field()
            type_namespace: int = string_field()
    """
    return field(default=default, metadata={'column': column})


def u8_field(default: int = 0):
    """Create a 1 byte column."""
    return column_field(Column(width=1), default)


def u16_field(default: int = 0):
    """Create a 2 byte column."""
    return column_field(Column(width=2), default)


def u32_field(default: int = 0):
    """Create a 4 byte column."""
    return column_field(Column(width=4), default)


def string_field(default: int = 0):
    """Create an index into the #Strings heap."""
    return column_field(Column(heap=STRING_HEAP), default)


def guid_field(default: int = 0):
    """Create an index into the #GUID heap."""
    return column_field(Column(heap=GUID_HEAP), default)


def blob_field(default: int = 0):
    """Create an index into the #Blob heap."""
    return column_field(Column(heap=BLOB_HEAP), default)


def index_field(table: int, default: int = 0):
    """Create a simple index into another table."""
    return column_field(Column(table=int(table)), default)


def coded_field(coded: Any, default: int = 0):
    """Create a coded index into one of several tables."""
    return column_field(Column(coded=coded), default)


def get_column(field_info) -> Optional[Column]:
    """Get the column from a field's metadata."""
    if hasattr(field_info, 'metadata') and field_info.metadata:
        return field_info.metadata.get('column')
    return None
