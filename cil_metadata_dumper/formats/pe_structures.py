"""
PE (Portable Executable) format structures for CLI images.
"""

from dataclasses import dataclass, field
from typing import List

from ..io.columns import u16_field, u32_field, u8_field


# PE Constants
IMAGE_DOS_SIGNATURE = 0x5A4D  # MZ
IMAGE_NT_SIGNATURE = 0x00004550  # PE\0\0

# Optional header magic
IMAGE_NT_OPTIONAL_HDR32_MAGIC = 0x10B
IMAGE_NT_OPTIONAL_HDR64_MAGIC = 0x20B

# Offset of e_lfanew inside the DOS header
DOS_LFANEW_OFFSET = 0x3C

# Data directory index of the CLI header
IMAGE_DIRECTORY_ENTRY_COM_DESCRIPTOR = 14

IMAGE_NUMBEROF_DIRECTORY_ENTRIES = 16


@dataclass
class ImageFileHeader:
    """COFF file header."""
    Machine: int = u16_field()
    NumberOfSections: int = u16_field()
    TimeDateStamp: int = u32_field()
    PointerToSymbolTable: int = u32_field()
    NumberOfSymbols: int = u32_field()
    SizeOfOptionalHeader: int = u16_field()
    Characteristics: int = u16_field()


@dataclass
class ImageDataDirectory:
    """RVA and size of a table or string used by the system."""
    VirtualAddress: int = u32_field()
    Size: int = u32_field()


@dataclass
class ImageOptionalHeader:
    """
    The fields shared by PE32 and PE32+ optional headers.

    Only what is needed to find the data directories is kept; the
    remaining bytes are skipped by the parser based on the magic.
    """
    Magic: int = u16_field()
    MajorLinkerVersion: int = u8_field()
    MinorLinkerVersion: int = u8_field()
    SizeOfCode: int = u32_field()
    SizeOfInitializedData: int = u32_field()
    SizeOfUninitializedData: int = u32_field()
    AddressOfEntryPoint: int = u32_field()
    BaseOfCode: int = u32_field()
    NumberOfRvaAndSizes: int = 0
    DataDirectory: List[ImageDataDirectory] = field(default_factory=list)


@dataclass
class SectionHeader:
    """Section header (40 bytes)."""
    Name: str = ""
    VirtualSize: int = u32_field()
    VirtualAddress: int = u32_field()
    SizeOfRawData: int = u32_field()
    PointerToRawData: int = u32_field()
    PointerToRelocations: int = u32_field()
    PointerToLinenumbers: int = u32_field()
    NumberOfRelocations: int = u16_field()
    NumberOfLinenumbers: int = u16_field()
    Characteristics: int = u32_field()


@dataclass
class Cor20Header:
    """CLI header, pointed to by the COM descriptor data directory."""
    cb: int = u32_field()
    MajorRuntimeVersion: int = u16_field()
    MinorRuntimeVersion: int = u16_field()
    MetaDataRva: int = u32_field()
    MetaDataSize: int = u32_field()
    Flags: int = u32_field()
    EntryPointToken: int = u32_field()
