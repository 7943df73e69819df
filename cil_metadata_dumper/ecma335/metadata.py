"""
Metadata parser for ECMA-335 CLI metadata.

This module parses the metadata root of a managed image: the stream
headers, the #~ tables stream and the #Strings, #GUID and #Blob heaps. Rows of
any table can be read by id; the offsets of every present table are
computed from the row counts and heap sizes in the tables header.
"""

from typing import Dict, Iterator, List, Optional, Type, TypeVar

from ..errors import BadImageFormatError
from ..io.binary_stream import BinaryStream
from ..io.columns import Column, STRING_HEAP, GUID_HEAP, BLOB_HEAP
from .enums import TableId, HeapSizes
from .structures import (
    MetadataRootHeader,
    StreamHeader,
    TablesHeader,
    ROW_TYPES,
)

T = TypeVar('T')

GUID_SIZE = 16

# Stream names, first occurrence wins
TABLES_STREAMS = ('#~', '#-')
STRINGS_STREAM = '#Strings'
GUID_STREAM = '#GUID'
BLOB_STREAM = '#Blob'

HEAP_FLAGS = {
    STRING_HEAP: HeapSizes.WIDE_STRING_HEAP,
    GUID_HEAP: HeapSizes.WIDE_GUID_HEAP,
    BLOB_HEAP: HeapSizes.WIDE_BLOB_HEAP,
}


class Metadata(BinaryStream):
    """
    Parser for the CLI metadata blob of a managed image.

    Attributes:
        header: The fixed part of the metadata root
        version: The runtime version string
        streams: Stream headers by name
        tables_header: The #~ stream header
    """

    MAGIC = 0x424A5342

    def __init__(self, data: bytes):
        """
        Initialize the metadata parser.

        Args:
            data: Raw bytes of the metadata blob, starting at the root

        Raises:
            BadImageFormatError: If the blob is not valid metadata
        """
        super().__init__(data)

        self.streams: Dict[str, StreamHeader] = {}
        self.tables_header = TablesHeader()
        self._table_offsets: Dict[TableId, int] = {}

        try:
            self._read_root()
            self._read_tables_header()
        except EOFError as e:
            raise BadImageFormatError(f"Truncated metadata: {e}") from e

    def _read_root(self) -> None:
        """Read the metadata root and the stream headers."""
        self.position = 0
        self.header = self.read_class(MetadataRootHeader)
        if self.header.signature != self.MAGIC:
            raise BadImageFormatError(f"Bad metadata magic 0x{self.header.signature:x}")

        version_bytes = self.read_bytes(self.header.length)
        self.version = version_bytes.split(b'\x00', 1)[0].decode('utf-8', errors='replace')

        self.read_uint16()  # flags
        stream_count = self.read_uint16()

        for _ in range(stream_count):
            stream = self.read_class(StreamHeader)
            stream.name = self.read_padded_string()
            self.streams.setdefault(stream.name, stream)

        for stream in self.streams.values():
            if stream.offset + stream.size > self.length:
                raise BadImageFormatError(f"Stream {stream.name} extends past the metadata")

    def _find_stream(self, *names: str) -> Optional[StreamHeader]:
        for name in names:
            if name in self.streams:
                return self.streams[name]
        return None

    def _read_tables_header(self) -> None:
        """Read the #~ stream header and locate every present table."""
        stream = self._find_stream(*TABLES_STREAMS)
        if stream is None:
            raise BadImageFormatError("Metadata has no tables stream")

        self.position = stream.offset
        header = self.read_class(TablesHeader)
        header.rows = [0] * 64
        for table_id in range(64):
            if header.has_table(table_id):
                header.rows[table_id] = self.read_uint32()

        if header.heap_sizes & HeapSizes.EXTRA_DATA:
            self.read_uint32()

        self.tables_header = header

        offset = self.position
        for table_id in range(64):
            if not header.has_table(table_id) or header.rows[table_id] == 0:
                continue
            if table_id not in ROW_TYPES:
                raise BadImageFormatError(f"Unknown metadata table 0x{table_id:02x}")

            table = TableId(table_id)
            self._table_offsets[table] = offset
            offset += self.size_of(ROW_TYPES[table]) * header.rows[table_id]

        if offset > stream.offset + stream.size:
            raise BadImageFormatError("Tables extend past the #~ stream")

    # ========== Column Widths ==========

    def _column_width(self, column: Column) -> int:
        """Width of a column for this image's row counts and heap sizes."""
        if column.width:
            return column.width

        header = self.tables_header
        if column.heap is not None:
            return 4 if header.heap_sizes & HEAP_FLAGS[column.heap] else 2

        if column.table is not None:
            return 2 if header.rows[column.table] < (1 << 16) else 4

        limit = 1 << (16 - column.coded.bits)
        for table in column.coded.targets:
            if header.rows[table] >= limit:
                return 4
        return 2

    # ========== Tables ==========

    def row_count(self, table: TableId) -> int:
        """Number of rows in a table, 0 if absent."""
        return self.tables_header.rows[table]

    def read_row(self, row_type: Type[T], row_id: int) -> T:
        """
        Read one row of a table.

        Args:
            row_type: Row dataclass, e.g. TypeDefRow
            row_id: 1-based row id

        Raises:
            BadImageFormatError: If the row id is out of range
        """
        table = row_type.TABLE
        count = self.row_count(table)
        if not 1 <= row_id <= count:
            raise BadImageFormatError(f"Bad row id {row_id} for {table.name} ({count} rows)")

        addr = self._table_offsets[table] + (row_id - 1) * self.size_of(row_type)
        try:
            return self.read_class(row_type, addr)
        except EOFError as e:
            raise BadImageFormatError(f"Truncated {table.name} row {row_id}") from e

    def iter_rows(self, row_type: Type[T]) -> Iterator[T]:
        """Iterate the rows of a table in on-disk order."""
        for row_id in range(1, self.row_count(row_type.TABLE) + 1):
            yield self.read_row(row_type, row_id)

    def read_rows(self, row_type: Type[T]) -> List[T]:
        """Read all rows of a table."""
        return list(self.iter_rows(row_type))

    # ========== Heaps ==========

    def get_string(self, index: int) -> str:
        """
        Get the string at a byte offset in the #Strings heap.

        Raises:
            BadImageFormatError: If the offset is outside the heap
        """
        stream = self._find_stream(STRINGS_STREAM)
        if stream is None:
            if index == 0:
                return ""
            raise BadImageFormatError(f"Bad string id {index}")
        if index >= stream.size:
            raise BadImageFormatError(f"Bad string id {index}")
        return self.read_string_to_null(stream.offset + index)

    def get_guid(self, index: int) -> bytes:
        """
        Get the GUID at a 1-based index in the #GUID heap.

        Index 0 is the null GUID.

        Raises:
            BadImageFormatError: If the index is outside the heap
        """
        if index == 0:
            return bytes(GUID_SIZE)

        stream = self._find_stream(GUID_STREAM)
        if stream is None or index * GUID_SIZE > stream.size:
            raise BadImageFormatError(f"Bad guid id {index}")
        self.position = stream.offset + (index - 1) * GUID_SIZE
        return self.read_bytes(GUID_SIZE)

    def _read_blob_length(self) -> int:
        """Read the compressed length prefix of a blob."""
        first = self.read_uint(1)
        if first & 0x80 == 0:
            return first
        if first & 0xC0 == 0x80:
            return ((first & 0x3F) << 8) | self.read_uint(1)
        if first & 0xE0 == 0xC0:
            rest = self.read_bytes(3)
            return ((first & 0x1F) << 24) | int.from_bytes(rest, 'big')
        raise BadImageFormatError(f"Bad blob length prefix 0x{first:02x}")

    def get_blob(self, index: int) -> bytes:
        """
        Get the blob at a byte offset in the #Blob heap.

        Offset 0 is the empty blob.

        Raises:
            BadImageFormatError: If the blob is outside the heap
        """
        if index == 0:
            return b''

        stream = self._find_stream(BLOB_STREAM)
        if stream is None or index >= stream.size:
            raise BadImageFormatError(f"Bad blob id {index}")

        self.position = stream.offset + index
        try:
            length = self._read_blob_length()
            if self.position + length > stream.offset + stream.size:
                raise BadImageFormatError(f"Bad blob id {index}")
            return self.read_bytes(length)
        except EOFError as e:
            raise BadImageFormatError(f"Truncated blob {index}") from e
