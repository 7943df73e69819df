"""
Opening managed images.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Union

from .ecma335.metadata import Metadata
from .formats.pe import PE


@contextmanager
def open_assembly(path: Union[str, Path]) -> Iterator[Metadata]:
    """
    Open a managed DLL or EXE and yield its metadata.

    The file is held open for the duration of the ``with`` block.

    Args:
        path: Path to the image

    Raises:
        OSError: If the file cannot be opened
        BadImageFormatError: If the file is not a PE image with CLI metadata
    """
    with open(path, 'rb') as f:
        pe = PE(f)
        with Metadata(pe.read_metadata()) as metadata:
            yield metadata
