"""
Generic document nodes.

A document is a tree of three node kinds: scalars, arrays and tables.
Extractors build nodes; a serializer turns the tree into text. Nothing
here knows about the target text format.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Tuple, Union

ScalarValue = Union[int, str]


@dataclass(frozen=True)
class Scalar:
    """An integer or string leaf."""
    value: ScalarValue

    def to_plain(self) -> ScalarValue:
        return self.value


@dataclass(frozen=True)
class Table:
    """An immutable mapping of keys to nodes, kept in insertion order."""
    entries: Tuple[Tuple[str, 'Node'], ...] = ()

    @classmethod
    def of(cls, values: Mapping[str, Any]) -> 'Table':
        """
        Build a table from plain values.

        ints and strs become Scalars, dicts become nested Tables and
        existing nodes are kept as they are.
        """
        return cls(tuple((key, to_node(value)) for key, value in values.items()))

    def __getitem__(self, key: str) -> 'Node':
        for name, node in self.entries:
            if name == key:
                return node
        raise KeyError(key)

    def keys(self) -> List[str]:
        return [name for name, _ in self.entries]

    def to_plain(self) -> Dict[str, Any]:
        return {name: node.to_plain() for name, node in self.entries}


@dataclass(frozen=True)
class Array:
    """
    An ordered list of nodes.

    ``of_tables`` marks an array whose items are all tables, which
    serializers may render as an array of tables.
    """
    items: Tuple['Node', ...] = ()
    of_tables: bool = False

    def __len__(self) -> int:
        return len(self.items)

    def to_plain(self) -> List[Any]:
        return [node.to_plain() for node in self.items]


Node = Union[Scalar, Array, Table]


def to_node(value: Any) -> Node:
    """Wrap a plain value in the matching node."""
    if isinstance(value, (Scalar, Array, Table)):
        return value
    if isinstance(value, bool):
        raise TypeError("Boolean values are not supported")
    if isinstance(value, (int, str)):
        return Scalar(value)
    if isinstance(value, Mapping):
        return Table.of(value)
    if isinstance(value, (list, tuple)):
        items = tuple(to_node(item) for item in value)
        return Array(items, of_tables=all(isinstance(item, Table) for item in items))
    raise TypeError(f"Unsupported value {value!r}")


@dataclass
class Document:
    """
    A document under construction: section names mapped to table arrays.

    Sections keep the order they were first written in.
    """
    sections: Dict[str, Array] = field(default_factory=dict)

    def write_section(self, name: str, records: Union[Table, Iterable[Table]]) -> Array:
        """
        Store records as an array of tables under ``name``.

        A single table is stored as a one element array. Writing the same
        name again replaces the earlier array.
        """
        if isinstance(records, Table):
            records = [records]

        items = tuple(records)
        for item in items:
            if not isinstance(item, Table):
                raise TypeError(f"Section {name!r} expects tables, got {type(item).__name__}")

        array = Array(items, of_tables=True)
        self.sections[name] = array
        return array

    def __getitem__(self, name: str) -> Array:
        return self.sections[name]

    def __contains__(self, name: str) -> bool:
        return name in self.sections

    def to_plain(self) -> Dict[str, Any]:
        return {name: array.to_plain() for name, array in self.sections.items()}
