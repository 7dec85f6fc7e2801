class PdfError(Exception):
    """Base exception for PDF handling errors."""


class PdfExtractionError(PdfError):
    """Raised when text cannot be extracted from PDF bytes."""


class PdfLoadError(PdfError):
    """Raised when a PDF cannot be opened or rebuilt."""
