"""
ECMA-335 metadata enumerations.
"""

from enum import IntEnum, IntFlag
from typing import Dict


class TableId(IntEnum):
    """Metadata table numbers (ECMA-335 II.22)."""
    Module = 0x00
    TypeRef = 0x01
    TypeDef = 0x02
    FieldPtr = 0x03
    Field = 0x04
    MethodPtr = 0x05
    MethodDef = 0x06
    ParamPtr = 0x07
    Param = 0x08
    InterfaceImpl = 0x09
    MemberRef = 0x0A
    Constant = 0x0B
    CustomAttribute = 0x0C
    FieldMarshal = 0x0D
    DeclSecurity = 0x0E
    ClassLayout = 0x0F
    FieldLayout = 0x10
    StandAloneSig = 0x11
    EventMap = 0x12
    EventPtr = 0x13
    Event = 0x14
    PropertyMap = 0x15
    PropertyPtr = 0x16
    Property = 0x17
    MethodSemantics = 0x18
    MethodImpl = 0x19
    ModuleRef = 0x1A
    TypeSpec = 0x1B
    ImplMap = 0x1C
    FieldRva = 0x1D
    EncLog = 0x1E
    EncMap = 0x1F
    Assembly = 0x20
    AssemblyProcessor = 0x21
    AssemblyOs = 0x22
    AssemblyRef = 0x23
    AssemblyRefProcessor = 0x24
    AssemblyRefOs = 0x25
    File = 0x26
    ExportedType = 0x27
    ManifestResource = 0x28
    NestedClass = 0x29
    GenericParam = 0x2A
    MethodSpec = 0x2B
    GenericParamConstraint = 0x2C


class HeapSizes(IntFlag):
    """Bit vector of heap index widths in the tables stream header."""
    WIDE_STRING_HEAP = 0x01
    WIDE_GUID_HEAP = 0x02
    WIDE_BLOB_HEAP = 0x04
    # Four bytes of extra data follow the row counts
    EXTRA_DATA = 0x40


# Handle kind names as exposed by System.Reflection.Metadata.HandleKind.
# Tables without an entry cannot be the target of an entity handle.
HANDLE_KIND_NAMES: Dict[TableId, str] = {
    TableId.Module: 'ModuleDefinition',
    TableId.TypeRef: 'TypeReference',
    TableId.TypeDef: 'TypeDefinition',
    TableId.Field: 'FieldDefinition',
    TableId.MethodDef: 'MethodDefinition',
    TableId.Param: 'Parameter',
    TableId.InterfaceImpl: 'InterfaceImplementation',
    TableId.MemberRef: 'MemberReference',
    TableId.Constant: 'Constant',
    TableId.CustomAttribute: 'CustomAttribute',
    TableId.DeclSecurity: 'DeclarativeSecurityAttribute',
    TableId.StandAloneSig: 'StandaloneSignature',
    TableId.Event: 'EventDefinition',
    TableId.Property: 'PropertyDefinition',
    TableId.MethodImpl: 'MethodImplementation',
    TableId.ModuleRef: 'ModuleReference',
    TableId.TypeSpec: 'TypeSpecification',
    TableId.Assembly: 'AssemblyDefinition',
    TableId.AssemblyRef: 'AssemblyReference',
    TableId.File: 'AssemblyFile',
    TableId.ExportedType: 'ExportedType',
    TableId.ManifestResource: 'ManifestResource',
    TableId.GenericParam: 'GenericParameter',
    TableId.MethodSpec: 'MethodSpecification',
    TableId.GenericParamConstraint: 'GenericParameterConstraint',
}
