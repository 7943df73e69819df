"""
Entity handles and coded indexes.

A coded index packs a table tag into its low bits and a row id into the
remaining bits (ECMA-335 II.24.2.6). Decoding one yields a Handle, which
is only ever displayed as a (kind, row id) pair.
"""

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple, Union

from ..errors import BadImageFormatError
from .enums import TableId, HANDLE_KIND_NAMES


@dataclass(frozen=True)
class Handle:
    """Reference to a row of a metadata table. Row ids are 1-based; 0 is nil."""
    table: TableId
    row_id: int

    @property
    def is_nil(self) -> bool:
        return self.row_id == 0

    @property
    def kind(self) -> str:
        """
        The handle kind name of the target table.

        Raises:
            AssertionError: If the table cannot be referenced by a handle.
                This means a projected column points at a table the
                handle kinds do not cover, which is a bug in the caller.
        """
        name = HANDLE_KIND_NAMES.get(self.table)
        if name is None:
            raise AssertionError(f"Table {self.table.name} has no handle kind")
        return name

    def to_dict(self) -> Dict[str, Union[str, int]]:
        return {
            'kind': self.kind,
            'row_id': self.row_id,
        }


@dataclass(frozen=True)
class CodedIndex:
    """
    A family of tables addressable by one coded index column.

    Attributes:
        name: Name of the coded index
        bits: Number of tag bits
        tables: Target table per tag value; None marks an unused tag
    """
    name: str
    bits: int
    tables: Tuple[Optional[TableId], ...]

    @property
    def targets(self) -> Sequence[TableId]:
        """Tables this coded index can point into."""
        return [table for table in self.tables if table is not None]

    def decode(self, value: int) -> Handle:
        """Split a raw column value into a Handle."""
        tag = value & ((1 << self.bits) - 1)
        row_id = value >> self.bits

        if tag >= len(self.tables) or self.tables[tag] is None:
            raise BadImageFormatError(f"Malformed {self.name}, tag {tag}")

        return Handle(self.tables[tag], row_id)

    def __repr__(self) -> str:
        return f"CodedIndex({self.name})"


TYPE_DEF_OR_REF = CodedIndex('TypeDefOrRef', 2, (
    TableId.TypeDef, TableId.TypeRef, TableId.TypeSpec,
))

HAS_CONSTANT = CodedIndex('HasConstant', 2, (
    TableId.Field, TableId.Param, TableId.Property,
))

HAS_CUSTOM_ATTRIBUTE = CodedIndex('HasCustomAttribute', 5, (
    TableId.MethodDef, TableId.Field, TableId.TypeRef, TableId.TypeDef,
    TableId.Param, TableId.InterfaceImpl, TableId.MemberRef, TableId.Module,
    TableId.DeclSecurity, TableId.Property, TableId.Event, TableId.StandAloneSig,
    TableId.ModuleRef, TableId.TypeSpec, TableId.Assembly, TableId.AssemblyRef,
    TableId.File, TableId.ExportedType, TableId.ManifestResource,
    TableId.GenericParam, TableId.GenericParamConstraint, TableId.MethodSpec,
))

HAS_FIELD_MARSHAL = CodedIndex('HasFieldMarshal', 1, (
    TableId.Field, TableId.Param,
))

HAS_DECL_SECURITY = CodedIndex('HasDeclSecurity', 2, (
    TableId.TypeDef, TableId.MethodDef, TableId.Assembly,
))

MEMBER_REF_PARENT = CodedIndex('MemberRefParent', 3, (
    TableId.TypeDef, TableId.TypeRef, TableId.ModuleRef, TableId.MethodDef,
    TableId.TypeSpec,
))

HAS_SEMANTICS = CodedIndex('HasSemantics', 1, (
    TableId.Event, TableId.Property,
))

METHOD_DEF_OR_REF = CodedIndex('MethodDefOrRef', 1, (
    TableId.MethodDef, TableId.MemberRef,
))

MEMBER_FORWARDED = CodedIndex('MemberForwarded', 1, (
    TableId.Field, TableId.MethodDef,
))

IMPLEMENTATION = CodedIndex('Implementation', 2, (
    TableId.File, TableId.AssemblyRef, TableId.ExportedType,
))

CUSTOM_ATTRIBUTE_TYPE = CodedIndex('CustomAttributeType', 3, (
    None, None, TableId.MethodDef, TableId.MemberRef, None,
))

RESOLUTION_SCOPE = CodedIndex('ResolutionScope', 2, (
    TableId.Module, TableId.ModuleRef, TableId.AssemblyRef, TableId.TypeRef,
))

TYPE_OR_METHOD_DEF = CodedIndex('TypeOrMethodDef', 1, (
    TableId.TypeDef, TableId.MethodDef,
))
