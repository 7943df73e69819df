"""
Fixtures that build minimal managed PE images in memory.
"""

import struct
from typing import List, Optional, Tuple

import pytest

MODULE = 0x00
TYPE_REF = 0x01
TYPE_DEF = 0x02
ASSEMBLY_REF = 0x23

MVID = bytes(range(1, 17))

METADATA_RVA = 0x2048
SECTION_RVA = 0x2000
SECTION_OFFSET = 0x200


def pad4(data: bytes) -> bytes:
    return bytes(data) + b'\x00' * (-len(data) % 4)


class MetadataBuilder:
    """Builds a metadata root with Module, TypeRef, TypeDef and AssemblyRef tables."""

    def __init__(self, module_name: str = 'Fixture.dll', mvid: Optional[bytes] = MVID,
                 wide_strings: bool = False, wide_guids: bool = False, wide_blobs: bool = False,
                 tables_stream: bytes = b'#~', extra_data: bool = False):
        self.wide_strings = wide_strings
        self.wide_guids = wide_guids
        self.wide_blobs = wide_blobs
        self.tables_stream = tables_stream
        self.extra_data = extra_data
        self._strings = bytearray(b'\x00')
        self._string_offsets = {'': 0}
        self._guids = bytearray()
        self._blobs = bytearray(b'\x00')

        self.module_name = self.string(module_name)
        self.mvid = self.guid(mvid)
        self.type_refs: List[Tuple[int, int, int]] = []
        self.type_defs: List[Tuple[int, int, int, int]] = []
        self.assembly_refs: List[bytes] = []
        self.extra_tables: List[Tuple[int, List[bytes]]] = []

    def string(self, value: str) -> int:
        """Add a string to the #Strings heap and return its offset."""
        if value not in self._string_offsets:
            self._string_offsets[value] = len(self._strings)
            self._strings += value.encode('utf-8') + b'\x00'
        return self._string_offsets[value]

    def guid(self, value: Optional[bytes]) -> int:
        """Add a GUID to the #GUID heap and return its 1-based index."""
        if value is None:
            return 0
        self._guids += value
        return len(self._guids) // 16

    def blob(self, value: bytes) -> int:
        """Add a blob to the #Blob heap and return its offset."""
        if not value:
            return 0
        offset = len(self._blobs)
        if len(value) < 0x80:
            self._blobs += bytes([len(value)])
        elif len(value) < 0x4000:
            self._blobs += struct.pack('>H', 0x8000 | len(value))
        else:
            self._blobs += struct.pack('>I', 0xC0000000 | len(value))
        self._blobs += value
        return offset

    def _str(self, offset: int) -> bytes:
        return struct.pack('<I' if self.wide_strings else '<H', offset)

    def _guid(self, index: int) -> bytes:
        return struct.pack('<I' if self.wide_guids else '<H', index)

    def _blob(self, offset: int) -> bytes:
        return struct.pack('<I' if self.wide_blobs else '<H', offset)

    def add_type_ref(self, name: str, namespace: str, scope: int) -> int:
        self.type_refs.append((scope, self.string(name), self.string(namespace)))
        return len(self.type_refs)

    def add_type_def(self, flags: int, name: str, namespace: str, extends: int) -> int:
        self.type_defs.append((flags, self.string(name), self.string(namespace), extends))
        return len(self.type_defs)

    def add_assembly_ref(self, name: str, version=(4, 0, 0, 0), flags: int = 0,
                         culture: str = '', public_key: bytes = b'', hash_value: bytes = b'') -> int:
        row = (
            struct.pack('<HHHHI', *version, flags)
            + self._blob(self.blob(public_key))
            + self._str(self.string(name))
            + self._str(self.string(culture))
            + self._blob(self.blob(hash_value))
        )
        self.assembly_refs.append(row)
        return len(self.assembly_refs)

    def _tables_stream(self) -> bytes:
        module_row = (
            struct.pack('<H', 0)
            + self._str(self.module_name)
            + self._guid(self.mvid) + self._guid(0) + self._guid(0)
        )
        type_ref_rows = [
            struct.pack('<H', scope) + self._str(name) + self._str(namespace)
            for scope, name, namespace in self.type_refs
        ]
        type_def_rows = [
            struct.pack('<I', flags) + self._str(name) + self._str(namespace)
            + struct.pack('<HHH', extends, 1, 1)
            for flags, name, namespace, extends in self.type_defs
        ]

        tables = [(MODULE, [module_row])]
        if type_ref_rows:
            tables.append((TYPE_REF, type_ref_rows))
        if type_def_rows:
            tables.append((TYPE_DEF, type_def_rows))
        if self.assembly_refs:
            tables.append((ASSEMBLY_REF, self.assembly_refs))
        tables.extend(self.extra_tables)
        tables.sort(key=lambda table: table[0])

        valid = 0
        for table_id, _ in tables:
            valid |= 1 << table_id

        heap_sizes = (
            (0x01 if self.wide_strings else 0)
            | (0x02 if self.wide_guids else 0)
            | (0x04 if self.wide_blobs else 0)
            | (0x40 if self.extra_data else 0)
        )
        data = struct.pack('<IBBBBQQ', 0, 2, 0, heap_sizes, 1, valid, 0)
        for _, rows in tables:
            data += struct.pack('<I', len(rows))
        if self.extra_data:
            data += struct.pack('<I', 0)
        for _, rows in tables:
            data += b''.join(rows)
        return pad4(data)

    def build(self) -> bytes:
        """Return the metadata blob, starting at the root signature."""
        streams = [
            (self.tables_stream, self._tables_stream()),
            (b'#Strings', pad4(self._strings)),
            (b'#GUID', bytes(self._guids)),
            (b'#Blob', pad4(self._blobs)),
        ]

        version = pad4(b'v4.0.30319\x00')
        root = struct.pack('<IHHII', 0x424A5342, 1, 1, 0, len(version)) + version
        root += struct.pack('<HH', 0, len(streams))

        headers_size = len(root) + sum(8 + len(pad4(name + b'\x00')) for name, _ in streams)
        offset = headers_size
        headers = b''
        body = b''
        for name, data in streams:
            headers += struct.pack('<II', offset, len(data)) + pad4(name + b'\x00')
            body += data
            offset += len(data)

        return root + headers + body


def build_pe(metadata: bytes, pe32_plus: bool = False, with_cli_header: bool = True) -> bytes:
    """Wrap a metadata blob in a single-section PE image."""
    cli_header = struct.pack('<IHHIIII', 72, 2, 5, METADATA_RVA, len(metadata), 1, 0) + bytes(48)
    raw = cli_header + metadata
    raw_size = len(raw) + (-len(raw) % 0x200)

    # Optional header: standard fields, then zeros up to NumberOfRvaAndSizes
    magic = 0x20B if pe32_plus else 0x10B
    rva_count_offset = 108 if pe32_plus else 92
    optional = struct.pack('<HBBIIIII', magic, 8, 0, raw_size, 0, 0, 0, SECTION_RVA)
    optional += bytes(rva_count_offset - len(optional))
    optional += struct.pack('<I', 16)
    for index in range(16):
        if index == 14 and with_cli_header:
            optional += struct.pack('<II', SECTION_RVA, 72)
        else:
            optional += struct.pack('<II', 0, 0)

    file_header = struct.pack('<HHIIIHH', 0x14C, 1, 0, 0, 0, len(optional), 0x2102)
    section = b'.text\x00\x00\x00' + struct.pack(
        '<IIIIIIHHI', len(raw), SECTION_RVA, raw_size, SECTION_OFFSET, 0, 0, 0, 0, 0x60000020
    )

    dos = bytearray(0x80)
    dos[0:2] = b'MZ'
    struct.pack_into('<I', dos, 0x3C, 0x80)

    headers = bytes(dos) + b'PE\x00\x00' + file_header + optional + section
    headers += bytes(SECTION_OFFSET - len(headers))

    return headers + raw + bytes(raw_size - len(raw))


@pytest.fixture
def builder() -> MetadataBuilder:
    """A builder with a few type references and definitions."""
    md = MetadataBuilder()
    # ResolutionScope: AssemblyRef row 1, tag 2
    md.add_type_ref('Object', 'System', (1 << 2) | 2)
    md.add_type_ref('Console', 'System', (1 << 2) | 2)
    md.add_type_ref('Nested', '', (1 << 2) | 3)
    md.add_type_def(0, '<Module>', '', 0)
    # TypeDefOrRef: TypeRef row 1, tag 1
    md.add_type_def(0x00100001, 'Program', 'Fixture', (1 << 2) | 1)
    md.add_assembly_ref('System.Runtime', version=(7, 0, 0, 0))
    return md


@pytest.fixture
def make_image(tmp_path):
    """Write a PE image built from a MetadataBuilder and return its path."""
    def make(md: MetadataBuilder, name: str = 'Fixture.dll', **kwargs):
        path = tmp_path / name
        path.write_bytes(build_pe(md.build(), **kwargs))
        return path
    return make
