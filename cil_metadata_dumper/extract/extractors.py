"""
Field extractors.

Each extractor walks one metadata table and projects a fixed set of
columns into document tables, one per row, in row order. Heap columns are
emitted as raw heap indexes unless ``resolve_strings`` is set, in which
case #Strings columns are emitted as the decoded text and #Blob columns
as lowercase hex. #GUID columns always stay heap indexes.
"""

from typing import List, Union

from ..ecma335.metadata import Metadata
from ..ecma335.handles import TYPE_DEF_OR_REF, RESOLUTION_SCOPE
from ..ecma335.structures import ModuleRow, TypeRefRow, TypeDefRow, AssemblyRefRow
from ..output.document import Table


def _as_int32(value: int) -> int:
    """Reinterpret an unsigned 32-bit value as signed."""
    return value - (1 << 32) if value & 0x80000000 else value


def _string(metadata: Metadata, index: int, resolve: bool) -> Union[int, str]:
    return metadata.get_string(index) if resolve else index


def _blob(metadata: Metadata, index: int, resolve: bool) -> Union[int, str]:
    return metadata.get_blob(index).hex() if resolve else index


def extract_module(metadata: Metadata, resolve_strings: bool = False) -> Table:
    """Project the single Module row."""
    module = metadata.read_row(ModuleRow, 1)

    return Table.of({
        'name': _string(metadata, module.name, resolve_strings),
        'mvid': module.mvid,
        'enc_id': module.enc_id,
        'enc_base_id': module.enc_base_id,
    })


def extract_type_refs(metadata: Metadata, resolve_strings: bool = False) -> List[Table]:
    """Project every TypeRef row."""
    return [
        Table.of({
            'name': _string(metadata, type_ref.type_name, resolve_strings),
            'namespace': _string(metadata, type_ref.type_namespace, resolve_strings),
            'resolution_scope': RESOLUTION_SCOPE.decode(type_ref.resolution_scope).to_dict(),
        })
        for type_ref in metadata.iter_rows(TypeRefRow)
    ]


def extract_type_defs(metadata: Metadata, resolve_strings: bool = False) -> List[Table]:
    """Project every TypeDef row."""
    # field_list and method_list are not projected
    return [
        Table.of({
            'flags': _as_int32(type_def.flags),
            'name': _string(metadata, type_def.type_name, resolve_strings),
            'namespace': _string(metadata, type_def.type_namespace, resolve_strings),
            'extends': TYPE_DEF_OR_REF.decode(type_def.extends).to_dict(),
        })
        for type_def in metadata.iter_rows(TypeDefRow)
    ]


def extract_assembly_refs(metadata: Metadata, resolve_strings: bool = False) -> List[Table]:
    """Project every AssemblyRef row."""
    return [
        Table.of({
            'major_version': assembly_ref.major_version,
            'minor_version': assembly_ref.minor_version,
            'build_number': assembly_ref.build_number,
            'revision_number': assembly_ref.revision_number,
            'flags': _as_int32(assembly_ref.flags),
            'public_key_or_token': _blob(metadata, assembly_ref.public_key_or_token, resolve_strings),
            'name': _string(metadata, assembly_ref.name, resolve_strings),
            'culture': _string(metadata, assembly_ref.culture, resolve_strings),
            'hash_value': _blob(metadata, assembly_ref.hash_value, resolve_strings),
        })
        for assembly_ref in metadata.iter_rows(AssemblyRefRow)
    ]
