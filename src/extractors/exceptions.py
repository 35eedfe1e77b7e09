"""
Exceptions for extractor modules.
"""


class ExtractorError(Exception):
    """Base exception for extractor errors."""
    pass


class ClassificationError(ExtractorError):
    """Raised by the file type detector when a document cannot be classified."""
    pass


class ContainerOpenError(ExtractorError):
    """Raised when a container's internal structure is malformed or unsupported."""
    pass


class RecordReadError(ExtractorError):
    """Raised when one picture record's bytes cannot be read or decoded."""

    def __init__(self, message: str, offset: int | None = None):
        self.offset = offset
        if offset is not None:
            message = f"{message} (offset 0x{offset:x})"
        super().__init__(message)


class DirectoryCreateError(ExtractorError):
    """Raised when the per-document output directory cannot be created."""
    pass


class WriteError(ExtractorError):
    """Raised when extracted bytes cannot be written to disk."""
    pass


class RegistrationError(ExtractorError):
    """Raised by the derived file registrar when it rejects a descriptor."""
    pass
