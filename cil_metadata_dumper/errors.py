"""
Exceptions raised while reading CLI images.
"""


class BadImageFormatError(ValueError):
    """Raised when a file is not a readable PE image with CLI metadata."""
    pass
