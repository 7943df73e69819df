"""
Metadata fixture writer.

Dumps the module, type reference and type definition tables of a managed
image into a TOML file named after the image.
"""

from pathlib import Path
from typing import Iterable, Optional, Union

from .assembly import open_assembly
from .config import Config
from .extract.extractors import (
    extract_module,
    extract_type_refs,
    extract_type_defs,
    extract_assembly_refs,
)
from .output.document import Document, Table
from .output.toml_writer import save


class MetadataWriter:
    """
    Writes the metadata of one image to ``<output_directory>/<stem>.toml``.

    Attributes:
        assembly_path: The image to read
        output_directory: Directory receiving the output file
        document: The document under construction
    """

    def __init__(self, assembly_path: Union[str, Path], output_directory: Union[str, Path],
                 config: Optional[Config] = None):
        self.assembly_path = Path(assembly_path)
        self.output_directory = Path(output_directory)
        self.config = config or Config()
        self.document = Document()

    @property
    def output_path(self) -> Path:
        """Path of the file written by write_files()."""
        return self.output_directory / (self.assembly_path.stem + self.config.output_extension)

    def write_section(self, name: str, records: Union[Table, Iterable[Table]]) -> None:
        """Store records under ``name``, replacing any earlier section of that name."""
        self.document.write_section(name, records)

    def write_files(self) -> Path:
        """
        Extract every section and write the output file.

        Returns:
            The path of the written file

        Raises:
            OSError: If the image cannot be read or the output cannot be written
            BadImageFormatError: If the image is not a managed PE image
        """
        resolve = self.config.resolve_strings

        with open_assembly(self.assembly_path) as metadata:
            self.write_section('module', extract_module(metadata, resolve))
            self.write_section('type_ref', extract_type_refs(metadata, resolve))
            self.write_section('type_def', extract_type_defs(metadata, resolve))

            if self.config.dump_assembly_ref:
                self.write_section('assembly_ref', extract_assembly_refs(metadata, resolve))

        return save(self.document, self.output_path)


def write_metadata(assembly_path: Union[str, Path], output_directory: Union[str, Path],
                   config: Optional[Config] = None) -> Path:
    """Dump one image and return the path of the written file."""
    return MetadataWriter(assembly_path, output_directory, config).write_files()
