# core/exceptions.py

from typing import List, Optional

class PrintQuoteError(Exception):
    """Base class for all custom exceptions in this application."""
    pass

class ConfigurationError(PrintQuoteError):
    """Exception raised for errors in configuration loading or validation."""
    pass

class FileFormatError(PrintQuoteError):
    """Exception raised for unsupported upload file types."""
    pass

class FileTooLargeError(PrintQuoteError):
    """Exception raised when an upload exceeds the configured size limit."""
    pass

class MalformedInputError(PrintQuoteError):
    """Exception raised when a mesh buffer cannot be decoded (truncated, size mismatch)."""
    pass

class VertexParseError(MalformedInputError):
    """A vertex component is not a finite number."""

    def __init__(self, message: str, location: Optional[int] = None):
        super().__init__(message)
        self.location = location

class QuoteValidationError(PrintQuoteError):
    """Exception raised when a print configuration cannot be priced for a material."""
    pass

class UnknownPostProcessingError(QuoteValidationError):
    """Raised for unrecognized post-processing tags when the policy is 'reject'."""

    def __init__(self, tags: List[str]):
        super().__init__(f"Unknown post-processing option(s): {', '.join(tags)}")
        self.tags = tags

class MaterialNotFoundError(PrintQuoteError):
    """Exception raised when a specified material ID cannot be found in the catalog."""
    pass

class RecordNotFoundError(PrintQuoteError):
    """Exception raised when an uploaded file or quote record does not exist."""
    pass
