"""
ECMA-335 metadata structure definitions.

These dataclasses represent the metadata root, its stream headers and one
row of every metadata table. Heap and table index columns have no fixed
width; the width is decided per image by Metadata from the tables header.
"""

from dataclasses import dataclass, field
from typing import ClassVar, Dict, List, Type

from ..io.columns import (
    u8_field,
    u16_field,
    u32_field,
    column_field,
    Column,
    string_field,
    guid_field,
    blob_field,
    index_field,
    coded_field,
)
from .enums import TableId
from .handles import (
    TYPE_DEF_OR_REF,
    HAS_CONSTANT,
    HAS_CUSTOM_ATTRIBUTE,
    HAS_FIELD_MARSHAL,
    HAS_DECL_SECURITY,
    MEMBER_REF_PARENT,
    HAS_SEMANTICS,
    METHOD_DEF_OR_REF,
    MEMBER_FORWARDED,
    IMPLEMENTATION,
    CUSTOM_ATTRIBUTE_TYPE,
    RESOLUTION_SCOPE,
    TYPE_OR_METHOD_DEF,
)


def u64_field(default: int = 0):
    """Create an 8 byte column."""
    return column_field(Column(width=8), default)


# ============================================================
# Metadata root
# ============================================================

@dataclass
class MetadataRootHeader:
    """Fixed part of the metadata root (II.24.2.1)."""
    signature: int = u32_field()
    major_version: int = u16_field()
    minor_version: int = u16_field()
    reserved: int = u32_field()
    length: int = u32_field()


@dataclass
class StreamHeader:
    """Location of one metadata stream, relative to the metadata root."""
    offset: int = u32_field()
    size: int = u32_field()
    name: str = ""


@dataclass
class TablesHeader:
    """Header of the #~ stream (II.24.2.6)."""
    reserved: int = u32_field()
    major_version: int = u8_field()
    minor_version: int = u8_field()
    heap_sizes: int = u8_field()
    reserved2: int = u8_field()
    valid: int = u64_field()
    sorted: int = u64_field()
    rows: List[int] = field(default_factory=lambda: [0] * 64)

    def has_table(self, table_id: int) -> bool:
        """Determines if the table is present in the image."""
        return bool(self.valid & (1 << table_id))


# ============================================================
# Table rows (II.22)
# ============================================================

@dataclass
class ModuleRow:
    TABLE: ClassVar[TableId] = TableId.Module
    generation: int = u16_field()
    name: int = string_field()
    mvid: int = guid_field()
    enc_id: int = guid_field()
    enc_base_id: int = guid_field()


@dataclass
class TypeRefRow:
    TABLE: ClassVar[TableId] = TableId.TypeRef
    resolution_scope: int = coded_field(RESOLUTION_SCOPE)
    type_name: int = string_field()
    type_namespace: int = string_field()


@dataclass
class TypeDefRow:
    TABLE: ClassVar[TableId] = TableId.TypeDef
    flags: int = u32_field()
    type_name: int = string_field()
    type_namespace: int = string_field()
    extends: int = coded_field(TYPE_DEF_OR_REF)
    field_list: int = index_field(TableId.Field)
    method_list: int = index_field(TableId.MethodDef)


@dataclass
class FieldPtrRow:
    TABLE: ClassVar[TableId] = TableId.FieldPtr
    field: int = index_field(TableId.Field)


@dataclass
class FieldRow:
    TABLE: ClassVar[TableId] = TableId.Field
    flags: int = u16_field()
    name: int = string_field()
    signature: int = blob_field()


@dataclass
class MethodPtrRow:
    TABLE: ClassVar[TableId] = TableId.MethodPtr
    method: int = index_field(TableId.MethodDef)


@dataclass
class MethodDefRow:
    TABLE: ClassVar[TableId] = TableId.MethodDef
    rva: int = u32_field()
    impl_flags: int = u16_field()
    flags: int = u16_field()
    name: int = string_field()
    signature: int = blob_field()
    param_list: int = index_field(TableId.Param)


@dataclass
class ParamPtrRow:
    TABLE: ClassVar[TableId] = TableId.ParamPtr
    param: int = index_field(TableId.Param)


@dataclass
class ParamRow:
    TABLE: ClassVar[TableId] = TableId.Param
    flags: int = u16_field()
    sequence: int = u16_field()
    name: int = string_field()


@dataclass
class InterfaceImplRow:
    TABLE: ClassVar[TableId] = TableId.InterfaceImpl
    class_: int = index_field(TableId.TypeDef)
    interface: int = coded_field(TYPE_DEF_OR_REF)


@dataclass
class MemberRefRow:
    TABLE: ClassVar[TableId] = TableId.MemberRef
    class_: int = coded_field(MEMBER_REF_PARENT)
    name: int = string_field()
    signature: int = blob_field()


@dataclass
class ConstantRow:
    TABLE: ClassVar[TableId] = TableId.Constant
    type: int = u8_field()
    padding: int = u8_field()
    parent: int = coded_field(HAS_CONSTANT)
    value: int = blob_field()


@dataclass
class CustomAttributeRow:
    TABLE: ClassVar[TableId] = TableId.CustomAttribute
    parent: int = coded_field(HAS_CUSTOM_ATTRIBUTE)
    type: int = coded_field(CUSTOM_ATTRIBUTE_TYPE)
    value: int = blob_field()


@dataclass
class FieldMarshalRow:
    TABLE: ClassVar[TableId] = TableId.FieldMarshal
    parent: int = coded_field(HAS_FIELD_MARSHAL)
    native_type: int = blob_field()


@dataclass
class DeclSecurityRow:
    TABLE: ClassVar[TableId] = TableId.DeclSecurity
    action: int = u16_field()
    parent: int = coded_field(HAS_DECL_SECURITY)
    permission_set: int = blob_field()


@dataclass
class ClassLayoutRow:
    TABLE: ClassVar[TableId] = TableId.ClassLayout
    packing_size: int = u16_field()
    class_size: int = u32_field()
    parent: int = index_field(TableId.TypeDef)


@dataclass
class FieldLayoutRow:
    TABLE: ClassVar[TableId] = TableId.FieldLayout
    offset: int = u32_field()
    field: int = index_field(TableId.Field)


@dataclass
class StandAloneSigRow:
    TABLE: ClassVar[TableId] = TableId.StandAloneSig
    signature: int = blob_field()


@dataclass
class EventMapRow:
    TABLE: ClassVar[TableId] = TableId.EventMap
    parent: int = index_field(TableId.TypeDef)
    event_list: int = index_field(TableId.Event)


@dataclass
class EventPtrRow:
    TABLE: ClassVar[TableId] = TableId.EventPtr
    event: int = index_field(TableId.Event)


@dataclass
class EventRow:
    TABLE: ClassVar[TableId] = TableId.Event
    event_flags: int = u16_field()
    name: int = string_field()
    event_type: int = coded_field(TYPE_DEF_OR_REF)


@dataclass
class PropertyMapRow:
    TABLE: ClassVar[TableId] = TableId.PropertyMap
    parent: int = index_field(TableId.TypeDef)
    property_list: int = index_field(TableId.Property)


@dataclass
class PropertyPtrRow:
    TABLE: ClassVar[TableId] = TableId.PropertyPtr
    property: int = index_field(TableId.Property)


@dataclass
class PropertyRow:
    TABLE: ClassVar[TableId] = TableId.Property
    flags: int = u16_field()
    name: int = string_field()
    type: int = blob_field()


@dataclass
class MethodSemanticsRow:
    TABLE: ClassVar[TableId] = TableId.MethodSemantics
    semantics: int = u16_field()
    method: int = index_field(TableId.MethodDef)
    association: int = coded_field(HAS_SEMANTICS)


@dataclass
class MethodImplRow:
    TABLE: ClassVar[TableId] = TableId.MethodImpl
    class_: int = index_field(TableId.TypeDef)
    method_body: int = coded_field(METHOD_DEF_OR_REF)
    method_declaration: int = coded_field(METHOD_DEF_OR_REF)


@dataclass
class ModuleRefRow:
    TABLE: ClassVar[TableId] = TableId.ModuleRef
    name: int = string_field()


@dataclass
class TypeSpecRow:
    TABLE: ClassVar[TableId] = TableId.TypeSpec
    signature: int = blob_field()


@dataclass
class ImplMapRow:
    TABLE: ClassVar[TableId] = TableId.ImplMap
    mapping_flags: int = u16_field()
    member_forwarded: int = coded_field(MEMBER_FORWARDED)
    import_name: int = string_field()
    import_scope: int = index_field(TableId.ModuleRef)


@dataclass
class FieldRvaRow:
    TABLE: ClassVar[TableId] = TableId.FieldRva
    rva: int = u32_field()
    field: int = index_field(TableId.Field)


@dataclass
class EncLogRow:
    TABLE: ClassVar[TableId] = TableId.EncLog
    token: int = u32_field()
    func_code: int = u32_field()


@dataclass
class EncMapRow:
    TABLE: ClassVar[TableId] = TableId.EncMap
    token: int = u32_field()


@dataclass
class AssemblyRow:
    TABLE: ClassVar[TableId] = TableId.Assembly
    hash_alg_id: int = u32_field()
    major_version: int = u16_field()
    minor_version: int = u16_field()
    build_number: int = u16_field()
    revision_number: int = u16_field()
    flags: int = u32_field()
    public_key: int = blob_field()
    name: int = string_field()
    culture: int = string_field()


@dataclass
class AssemblyProcessorRow:
    TABLE: ClassVar[TableId] = TableId.AssemblyProcessor
    processor: int = u32_field()


@dataclass
class AssemblyOsRow:
    TABLE: ClassVar[TableId] = TableId.AssemblyOs
    os_platform_id: int = u32_field()
    os_major_version: int = u32_field()
    os_minor_version: int = u32_field()


@dataclass
class AssemblyRefRow:
    TABLE: ClassVar[TableId] = TableId.AssemblyRef
    major_version: int = u16_field()
    minor_version: int = u16_field()
    build_number: int = u16_field()
    revision_number: int = u16_field()
    flags: int = u32_field()
    public_key_or_token: int = blob_field()
    name: int = string_field()
    culture: int = string_field()
    hash_value: int = blob_field()


@dataclass
class AssemblyRefProcessorRow:
    TABLE: ClassVar[TableId] = TableId.AssemblyRefProcessor
    processor: int = u32_field()
    assembly_ref: int = index_field(TableId.AssemblyRef)


@dataclass
class AssemblyRefOsRow:
    TABLE: ClassVar[TableId] = TableId.AssemblyRefOs
    os_platform_id: int = u32_field()
    os_major_version: int = u32_field()
    os_minor_version: int = u32_field()
    assembly_ref: int = index_field(TableId.AssemblyRef)


@dataclass
class FileRow:
    TABLE: ClassVar[TableId] = TableId.File
    flags: int = u32_field()
    name: int = string_field()
    hash_value: int = blob_field()


@dataclass
class ExportedTypeRow:
    TABLE: ClassVar[TableId] = TableId.ExportedType
    flags: int = u32_field()
    type_def_id: int = u32_field()
    type_name: int = string_field()
    type_namespace: int = string_field()
    implementation: int = coded_field(IMPLEMENTATION)


@dataclass
class ManifestResourceRow:
    TABLE: ClassVar[TableId] = TableId.ManifestResource
    offset: int = u32_field()
    flags: int = u32_field()
    name: int = string_field()
    implementation: int = coded_field(IMPLEMENTATION)


@dataclass
class NestedClassRow:
    TABLE: ClassVar[TableId] = TableId.NestedClass
    nested_class: int = index_field(TableId.TypeDef)
    enclosing_class: int = index_field(TableId.TypeDef)


@dataclass
class GenericParamRow:
    TABLE: ClassVar[TableId] = TableId.GenericParam
    number: int = u16_field()
    flags: int = u16_field()
    owner: int = coded_field(TYPE_OR_METHOD_DEF)
    name: int = string_field()


@dataclass
class MethodSpecRow:
    TABLE: ClassVar[TableId] = TableId.MethodSpec
    method: int = coded_field(METHOD_DEF_OR_REF)
    instantiation: int = blob_field()


@dataclass
class GenericParamConstraintRow:
    TABLE: ClassVar[TableId] = TableId.GenericParamConstraint
    owner: int = index_field(TableId.GenericParam)
    constraint: int = coded_field(TYPE_DEF_OR_REF)


ROW_TYPES: Dict[TableId, Type] = {
    row.TABLE: row
    for row in (
        ModuleRow, TypeRefRow, TypeDefRow, FieldPtrRow, FieldRow, MethodPtrRow,
        MethodDefRow, ParamPtrRow, ParamRow, InterfaceImplRow, MemberRefRow,
        ConstantRow, CustomAttributeRow, FieldMarshalRow, DeclSecurityRow,
        ClassLayoutRow, FieldLayoutRow, StandAloneSigRow, EventMapRow,
        EventPtrRow, EventRow, PropertyMapRow, PropertyPtrRow, PropertyRow,
        MethodSemanticsRow, MethodImplRow, ModuleRefRow, TypeSpecRow,
        ImplMapRow, FieldRvaRow, EncLogRow, EncMapRow, AssemblyRow,
        AssemblyProcessorRow, AssemblyOsRow, AssemblyRefRow,
        AssemblyRefProcessorRow, AssemblyRefOsRow, FileRow, ExportedTypeRow,
        ManifestResourceRow, NestedClassRow, GenericParamRow, MethodSpecRow,
        GenericParamConstraintRow,
    )
}
