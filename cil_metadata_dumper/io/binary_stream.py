"""
Binary stream reader with column-aware struct parsing.

This module provides a BinaryStream class that reads little-endian binary
data and fills dataclasses whose fields carry column metadata. Fixed-width
columns are read directly; subclasses decide the width of heap and table
index columns, which depends on the image being read.
"""

import struct
from io import BytesIO
from typing import TypeVar, Type, List, Optional, Dict, Tuple, Union, BinaryIO
from dataclasses import fields, is_dataclass

from .columns import Column, get_column

T = TypeVar('T')

# Little-endian unsigned formats by byte width
UINT_FORMAT: Dict[int, str] = {
    1: '<B',
    2: '<H',
    4: '<I',
    8: '<Q',
}


class BinaryStream:
    """
    Binary stream reader over bytes or an open binary file.

    Attributes:
        position: Current offset in the stream
        length: Total length of the stream
    """

    def __init__(self, data: Union[bytes, BinaryIO]):
        """
        Initialize a BinaryStream.

        Args:
            data: Either raw bytes or a seekable binary stream
        """
        if isinstance(data, (bytes, bytearray)):
            self._stream: BinaryIO = BytesIO(bytes(data))
        else:
            self._stream = data

    # ========== Position and Length ==========

    @property
    def position(self) -> int:
        """Get current stream position."""
        return self._stream.tell()

    @position.setter
    def position(self, value: int) -> None:
        """Set stream position."""
        self._stream.seek(value)

    @property
    def length(self) -> int:
        """Get stream length."""
        current = self._stream.tell()
        self._stream.seek(0, 2)  # Seek to end
        length = self._stream.tell()
        self._stream.seek(current)  # Restore position
        return length

    # ========== Primitive Readers ==========

    def read_bytes(self, count: int) -> bytes:
        """Read exactly ``count`` raw bytes."""
        data = self._stream.read(count)
        if len(data) != count:
            raise EOFError(
                f"Unexpected end of data at 0x{self.position:x}: "
                f"wanted {count} bytes, got {len(data)}"
            )
        return data

    def read_uint16(self) -> int:
        """Read an unsigned 16-bit integer."""
        return struct.unpack('<H', self.read_bytes(2))[0]

    def read_uint32(self) -> int:
        """Read an unsigned 32-bit integer."""
        return struct.unpack('<I', self.read_bytes(4))[0]

    def read_uint(self, width: int) -> int:
        """Read an unsigned integer of 1, 2, 4 or 8 bytes."""
        return struct.unpack(UINT_FORMAT[width], self.read_bytes(width))[0]

    # ========== String Readers ==========

    def read_string_to_null(self, addr: Optional[int] = None) -> str:
        """
        Read a null-terminated UTF-8 string.

        Args:
            addr: Optional address to seek to before reading

        Returns:
            The decoded string
        """
        if addr is not None:
            self.position = addr

        # Read in chunks for better performance
        chunks = []
        while True:
            chunk = self._stream.read(256)
            if not chunk:
                break
            null_pos = chunk.find(b'\x00')
            if null_pos != -1:
                chunks.append(chunk[:null_pos])
                # Seek back to position after null
                self._stream.seek(self._stream.tell() - len(chunk) + null_pos + 1)
                break
            chunks.append(chunk)

        return b''.join(chunks).decode('utf-8', errors='replace')

    def read_padded_string(self, alignment: int = 4) -> str:
        """Read a null-terminated ASCII string padded to ``alignment`` bytes."""
        start = self.position
        value = self.read_string_to_null()
        consumed = self.position - start
        self.position = start + ((consumed + alignment - 1) & ~(alignment - 1))
        return value

    # ========== Class/Struct Reading ==========

    def _column_width(self, column: Column) -> int:
        """
        Width in bytes of a column.

        The base stream only knows fixed-width columns; heap and table
        index columns need the tables header and are sized by subclasses.
        """
        if column.width:
            return column.width
        raise TypeError(f"Cannot size {column!r} without a tables header")

    def _get_layout(self, cls: Type) -> List[Tuple[str, int]]:
        """Get (field name, width) pairs for a dataclass."""
        layout = []
        for field_info in fields(cls):
            column = get_column(field_info)
            if column is None:
                continue
            layout.append((field_info.name, self._column_width(column)))
        return layout

    def read_class(self, cls: Type[T], addr: Optional[int] = None) -> T:
        """
        Read a dataclass instance from the stream.

        Fields are read in declaration order using the width of their
        column metadata. Fields without column metadata keep their default.

        Args:
            cls: The dataclass type to read
            addr: Optional address to seek to before reading

        Returns:
            An instance of the dataclass with fields populated from the stream
        """
        if addr is not None:
            self.position = addr

        if not is_dataclass(cls):
            raise TypeError(f"{cls!r} is not a dataclass")

        instance = cls()
        for name, width in self._get_layout(cls):
            setattr(instance, name, self.read_uint(width))
        return instance

    def read_class_array(
        self,
        cls: Type[T],
        addr: Optional[int] = None,
        count: Optional[int] = None
    ) -> List[T]:
        """
        Read an array of dataclass instances.

        Args:
            cls: The dataclass type
            addr: Optional address to seek to
            count: Number of elements to read

        Returns:
            A list of dataclass instances
        """
        if addr is not None:
            self.position = addr

        if count is None or count <= 0:
            return []

        return [self.read_class(cls) for _ in range(count)]

    # ========== Utility Methods ==========

    def size_of(self, cls: Type) -> int:
        """
        Calculate the size of a dataclass for the current stream.

        Args:
            cls: The dataclass type

        Returns:
            Size in bytes
        """
        return sum(width for _, width in self._get_layout(cls))

    def dispose(self) -> None:
        """Close the stream."""
        self._stream.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.dispose()
