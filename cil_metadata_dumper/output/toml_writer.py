"""
TOML serialization of documents.

Sections holding records are written as arrays of tables, one ``[[name]]``
block per record, whatever the length of the record. Nested tables inside
a record are written inline. tomli_w formats keys and scalar values.
"""

from pathlib import Path
from typing import List, Union

import tomli_w

from .document import Array, Document, Node, Table

# Placeholder key used to format a lone value with tomli_w
_VALUE_KEY = 'v'


def _format_key(key: str) -> str:
    """Format a key, quoting it when it is not a bare key."""
    line = tomli_w.dumps({key: 0})
    return line[:-len(' = 0\n')]


def _format_scalar(value: Union[int, str]) -> str:
    line = tomli_w.dumps({_VALUE_KEY: value})
    return line[len(f'{_VALUE_KEY} = '):-1]


def _format_value(node: Node) -> str:
    """Format a node as an inline TOML value."""
    if isinstance(node, Table):
        if not node.entries:
            return '{}'
        pairs = ', '.join(f'{_format_key(k)} = {_format_value(v)}' for k, v in node.entries)
        return f'{{ {pairs} }}'
    if isinstance(node, Array):
        return '[' + ', '.join(_format_value(item) for item in node.items) + ']'
    return _format_scalar(node.value)


def _format_records(name: str, array: Array) -> str:
    blocks = []
    for record in array.items:
        lines = [f'[[{name}]]']
        lines.extend(f'{_format_key(k)} = {_format_value(v)}' for k, v in record.entries)
        blocks.append('\n'.join(lines) + '\n')
    return '\n'.join(blocks)


def to_toml(document: Document) -> bytes:
    """
    Serialize a document to UTF-8 TOML.

    Empty sections have no table headers to hang on, so they are written
    first as ``name = []``; the remaining sections follow in document order.
    """
    inline: List[str] = []
    blocks: List[str] = []

    for name, array in document.sections.items():
        key = _format_key(name)
        if array.of_tables and array.items:
            blocks.append(_format_records(key, array))
        else:
            inline.append(f'{key} = {_format_value(array)}\n')

    chunks = []
    if inline:
        chunks.append(''.join(inline))
    chunks.extend(blocks)
    return '\n'.join(chunks).encode('utf-8')


def save(document: Document, path: Union[str, Path]) -> Path:
    """
    Write a document to ``path`` in one call.

    The document is fully serialized before the file is opened, so a
    serialization failure leaves no file behind.
    """
    path = Path(path)
    path.write_bytes(to_toml(document))
    return path
