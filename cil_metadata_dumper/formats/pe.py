"""
PE (Portable Executable) format parser for CLI images.

Locates the CLI header of a managed DLL or EXE and the metadata blob it
points to.
"""

from typing import BinaryIO, List, Union

from ..errors import BadImageFormatError
from ..io.binary_stream import BinaryStream
from .pe_structures import (
    ImageFileHeader,
    ImageOptionalHeader,
    ImageDataDirectory,
    SectionHeader,
    Cor20Header,
    IMAGE_DOS_SIGNATURE,
    IMAGE_NT_SIGNATURE,
    IMAGE_NT_OPTIONAL_HDR32_MAGIC,
    IMAGE_NT_OPTIONAL_HDR64_MAGIC,
    IMAGE_DIRECTORY_ENTRY_COM_DESCRIPTOR,
    IMAGE_NUMBEROF_DIRECTORY_ENTRIES,
    DOS_LFANEW_OFFSET,
)

# Offset of NumberOfRvaAndSizes from the start of the optional header
RVA_COUNT_OFFSET = {
    IMAGE_NT_OPTIONAL_HDR32_MAGIC: 92,
    IMAGE_NT_OPTIONAL_HDR64_MAGIC: 108,
}


class PE(BinaryStream):
    """
    PE format parser.

    Supports both PE32 (32-bit) and PE32+ (64-bit) formats.

    Attributes:
        is_32bit: Whether the optional header is PE32
        sections: Section headers in file order
    """

    def __init__(self, data: Union[bytes, BinaryIO]):
        super().__init__(data)
        try:
            self._load()
        except EOFError as e:
            raise BadImageFormatError(f"Truncated PE image: {e}") from e

    def _load(self) -> None:
        """Load PE structures."""
        self.position = 0
        if self.length < DOS_LFANEW_OFFSET + 4 or self.read_uint16() != IMAGE_DOS_SIGNATURE:
            raise BadImageFormatError("Invalid DOS signature")

        # Read NT headers
        self.position = DOS_LFANEW_OFFSET
        self.position = self.read_uint32()
        if self.read_uint32() != IMAGE_NT_SIGNATURE:
            raise BadImageFormatError("Invalid NT signature")

        self._file_header = self.read_class(ImageFileHeader)

        optional_start = self.position
        self._optional_header = self._read_optional_header()
        self.is_32bit = self._optional_header.Magic == IMAGE_NT_OPTIONAL_HDR32_MAGIC

        # Section table follows the optional header
        self.position = optional_start + self._file_header.SizeOfOptionalHeader
        self.sections = self._read_sections()

    def _read_optional_header(self) -> ImageOptionalHeader:
        """Read the optional header and its data directories."""
        start = self.position
        header = self.read_class(ImageOptionalHeader)

        if header.Magic not in RVA_COUNT_OFFSET:
            raise BadImageFormatError(f"Unknown optional header magic 0x{header.Magic:x}")

        self.position = start + RVA_COUNT_OFFSET[header.Magic]
        header.NumberOfRvaAndSizes = self.read_uint32()
        header.DataDirectory = self.read_class_array(
            ImageDataDirectory,
            count=min(header.NumberOfRvaAndSizes, IMAGE_NUMBEROF_DIRECTORY_ENTRIES)
        )
        return header

    def _read_sections(self) -> List[SectionHeader]:
        """Read section headers."""
        sections = []
        for _ in range(self._file_header.NumberOfSections):
            name_bytes = self.read_bytes(8)
            section = self.read_class(SectionHeader)
            section.Name = name_bytes.rstrip(b'\x00').decode('ascii', errors='replace')
            sections.append(section)
        return sections

    def map_rva(self, rva: int) -> int:
        """Map a relative virtual address to a raw file offset."""
        for section in self.sections:
            section_start = section.VirtualAddress
            section_end = section_start + max(section.VirtualSize, section.SizeOfRawData)
            if section_start <= rva < section_end:
                return rva - section.VirtualAddress + section.PointerToRawData

        raise BadImageFormatError(f"RVA 0x{rva:x} not in any section")

    def read_directory(self, rva: int, size: int) -> bytes:
        """Read the bytes of a data directory."""
        self.position = self.map_rva(rva)
        try:
            return self.read_bytes(size)
        except EOFError as e:
            raise BadImageFormatError(f"Data directory at RVA 0x{rva:x} is truncated") from e

    @property
    def cli_directory(self) -> ImageDataDirectory:
        """The COM descriptor data directory."""
        directories = self._optional_header.DataDirectory
        if len(directories) <= IMAGE_DIRECTORY_ENTRY_COM_DESCRIPTOR:
            raise BadImageFormatError("Image has no CLI header")

        directory = directories[IMAGE_DIRECTORY_ENTRY_COM_DESCRIPTOR]
        if directory.VirtualAddress == 0 or directory.Size == 0:
            raise BadImageFormatError("Image has no CLI header")
        return directory

    def read_cli_header(self) -> Cor20Header:
        """Read the CLI (COR20) header."""
        directory = self.cli_directory
        self.position = self.map_rva(directory.VirtualAddress)
        try:
            return self.read_class(Cor20Header)
        except EOFError as e:
            raise BadImageFormatError("CLI header is truncated") from e

    def read_metadata(self) -> bytes:
        """Read the raw metadata blob the CLI header points to."""
        cli_header = self.read_cli_header()
        if cli_header.MetaDataRva == 0 or cli_header.MetaDataSize == 0:
            raise BadImageFormatError("CLI header has no metadata directory")
        return self.read_directory(cli_header.MetaDataRva, cli_header.MetaDataSize)
