"""
CIL Metadata Dumper
A tool for dumping ECMA-335 metadata tables of .NET images into TOML test fixtures.
"""

__version__ = "0.1.0"

from .config import Config
from .assembly import open_assembly
from .ecma335.metadata import Metadata
from .errors import BadImageFormatError
from .writer import MetadataWriter, write_metadata

__all__ = [
    'Config',
    'Metadata',
    'MetadataWriter',
    'BadImageFormatError',
    'open_assembly',
    'write_metadata',
    '__version__',
]
