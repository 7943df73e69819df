import struct

import pytest

from cil_metadata_dumper.ecma335.enums import TableId
from cil_metadata_dumper.ecma335.metadata import Metadata
from cil_metadata_dumper.ecma335.structures import (
    ModuleRow,
    TypeRefRow,
    TypeDefRow,
    AssemblyRefRow,
    CustomAttributeRow,
    FieldRow,
    MethodDefRow,
    MemberRefRow,
)
from cil_metadata_dumper.ecma335.handles import CUSTOM_ATTRIBUTE_TYPE, MEMBER_REF_PARENT
from cil_metadata_dumper.errors import BadImageFormatError
from cil_metadata_dumper.io.columns import Column

from conftest import MetadataBuilder, MVID


def test_root_and_streams(builder):
    md = Metadata(builder.build())

    assert md.version == 'v4.0.30319'
    assert set(md.streams) == {'#~', '#Strings', '#GUID', '#Blob'}


def test_row_counts(builder):
    md = Metadata(builder.build())

    assert md.row_count(TableId.Module) == 1
    assert md.row_count(TableId.TypeRef) == 3
    assert md.row_count(TableId.TypeDef) == 2
    assert md.row_count(TableId.AssemblyRef) == 1
    assert md.row_count(TableId.MethodDef) == 0


def test_module_row(builder):
    md = Metadata(builder.build())
    module = md.read_row(ModuleRow, 1)

    assert module.generation == 0
    assert module.name == builder.module_name
    assert md.get_string(module.name) == 'Fixture.dll'
    assert module.mvid == 1
    assert md.get_guid(module.mvid) == MVID
    assert module.enc_id == 0
    assert module.enc_base_id == 0


def test_rows_in_table_order(builder):
    md = Metadata(builder.build())

    names = [md.get_string(row.type_name) for row in md.iter_rows(TypeRefRow)]
    assert names == ['Object', 'Console', 'Nested']

    type_defs = md.read_rows(TypeDefRow)
    assert [md.get_string(row.type_name) for row in type_defs] == ['<Module>', 'Program']
    assert type_defs[1].flags == 0x00100001
    assert type_defs[1].extends == (1 << 2) | 1
    assert type_defs[1].field_list == 1


def test_assembly_ref_row(builder):
    md = Metadata(builder.build())
    assembly_ref = md.read_row(AssemblyRefRow, 1)

    assert (assembly_ref.major_version, assembly_ref.minor_version) == (7, 0)
    assert md.get_string(assembly_ref.name) == 'System.Runtime'
    assert md.get_string(assembly_ref.culture) == ''


def test_wide_string_heap():
    builder = MetadataBuilder(wide_strings=True)
    builder.add_type_ref('Object', 'System', (1 << 2) | 2)
    md = Metadata(builder.build())

    assert md.size_of(ModuleRow) == 2 + 4 + 2 + 2 + 2
    assert md.size_of(TypeRefRow) == 2 + 4 + 4
    type_ref = md.read_row(TypeRefRow, 1)
    assert md.get_string(type_ref.type_namespace) == 'System'


def test_simple_index_width(builder):
    md = Metadata(builder.build())
    column = Column(table=TableId.Field)

    assert md._column_width(column) == 2
    md.tables_header.rows[TableId.Field] = 1 << 16
    assert md._column_width(column) == 4


def test_coded_index_width(builder):
    md = Metadata(builder.build())
    assert md.size_of(TypeDefRow) == 4 + 2 + 2 + 2 + 2 + 2

    # TypeDefOrRef has two tag bits, so 2^14 rows no longer fit
    md.tables_header.rows[TableId.TypeSpec] = (1 << 14) - 1
    assert md.size_of(TypeDefRow) == 14
    md.tables_header.rows[TableId.TypeSpec] = 1 << 14
    assert md.size_of(TypeDefRow) == 16


def test_coded_index_width_depends_on_tag_bits(builder):
    md = Metadata(builder.build())

    # HasCustomAttribute has five tag bits, CustomAttributeType three
    md.tables_header.rows[TableId.MemberRef] = (1 << 11) - 1
    assert md.size_of(CustomAttributeRow) == 2 + 2 + 2
    md.tables_header.rows[TableId.MemberRef] = 1 << 12
    assert md.size_of(CustomAttributeRow) == 4 + 2 + 2
    md.tables_header.rows[TableId.MemberRef] = 1 << 13
    assert md.size_of(CustomAttributeRow) == 4 + 4 + 2


def test_null_guid(builder):
    md = Metadata(builder.build())
    assert md.get_guid(0) == bytes(16)

    with pytest.raises(BadImageFormatError):
        md.get_guid(2)


def test_bad_string_id(builder):
    md = Metadata(builder.build())

    with pytest.raises(BadImageFormatError):
        md.get_string(10_000)


def test_bad_row_id(builder):
    md = Metadata(builder.build())

    with pytest.raises(BadImageFormatError):
        md.read_row(TypeRefRow, 0)
    with pytest.raises(BadImageFormatError):
        md.read_row(TypeRefRow, 4)


def test_bad_magic():
    with pytest.raises(BadImageFormatError, match='magic'):
        Metadata(bytes(64))


def test_truncated_metadata(builder):
    with pytest.raises(BadImageFormatError):
        Metadata(builder.build()[:40])


def test_unknown_table(builder):
    builder.extra_tables.append((0x2D, [b'\x00\x00']))

    with pytest.raises(BadImageFormatError, match='Unknown metadata table 0x2d'):
        Metadata(builder.build())


def test_tables_between_type_def_and_assembly_ref(builder):
    signature = builder.blob(b'\x06\x08')
    builder.extra_tables += [
        # Field
        (0x04, [struct.pack('<HHH', 0x0001, builder.string('count'), signature)] * 2),
        # MethodDef
        (0x06, [struct.pack('<IHHHHH', 0x2050, 0, 0x0086, builder.string('Main'), signature, 1)]),
        # MemberRef: parent TypeRef row 1, tag 1
        (0x0A, [struct.pack('<HHH', (1 << 3) | 1, builder.string('.ctor'), signature)]),
        # CustomAttribute: parent TypeDef row 2, tag 3; type MemberRef row 1, tag 3
        (0x0C, [struct.pack('<HHH', (2 << 5) | 3, (1 << 3) | 3, 0)]),
    ]
    md = Metadata(builder.build())

    assert md.row_count(TableId.Field) == 2
    assert [md.get_string(field.name) for field in md.iter_rows(FieldRow)] == ['count', 'count']

    method = md.read_row(MethodDefRow, 1)
    assert (method.rva, method.flags, md.get_string(method.name)) == (0x2050, 0x0086, 'Main')
    assert md.get_blob(method.signature) == b'\x06\x08'

    member_ref = md.read_row(MemberRefRow, 1)
    assert MEMBER_REF_PARENT.decode(member_ref.class_).kind == 'TypeReference'
    assert md.get_string(member_ref.name) == '.ctor'

    attribute = md.read_row(CustomAttributeRow, 1)
    assert CUSTOM_ATTRIBUTE_TYPE.decode(attribute.type).kind == 'MemberReference'

    assembly_ref = md.read_row(AssemblyRefRow, 1)
    assert md.get_string(assembly_ref.name) == 'System.Runtime'
    assert assembly_ref.major_version == 7


def test_uncompressed_stream_with_extra_data():
    builder = MetadataBuilder(tables_stream=b'#-', extra_data=True)
    builder.add_type_ref('Object', 'System', (1 << 2) | 2)
    md = Metadata(builder.build())

    assert '#-' in md.streams
    assert md.read_row(ModuleRow, 1).name == builder.module_name
    assert md.get_string(md.read_row(TypeRefRow, 1).type_name) == 'Object'


def test_wide_guid_and_blob_heaps():
    builder = MetadataBuilder(wide_guids=True, wide_blobs=True)
    builder.add_assembly_ref('System.Runtime', public_key=b'\xb0\x3f\x5f\x7f', hash_value=b'\x01')
    md = Metadata(builder.build())

    assert md.size_of(ModuleRow) == 2 + 2 + 4 + 4 + 4
    assert md.size_of(AssemblyRefRow) == 12 + 4 + 2 + 2 + 4

    assert md.get_guid(md.read_row(ModuleRow, 1).mvid) == MVID
    assembly_ref = md.read_row(AssemblyRefRow, 1)
    assert md.get_string(assembly_ref.name) == 'System.Runtime'
    assert md.get_blob(assembly_ref.public_key_or_token) == b'\xb0\x3f\x5f\x7f'
    assert md.get_blob(assembly_ref.hash_value) == b'\x01'


def test_blob_lengths(builder):
    short = builder.blob(b'\x01\x02')
    long = builder.blob(bytes(range(200)))
    md = Metadata(builder.build())

    assert md.get_blob(0) == b''
    assert md.get_blob(short) == b'\x01\x02'
    assert md.get_blob(long) == bytes(range(200))

    with pytest.raises(BadImageFormatError):
        md.get_blob(10_000)
