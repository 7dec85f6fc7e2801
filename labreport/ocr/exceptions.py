class OcrError(Exception):
    """Raised when OCR produces no usable result."""


class OcrNetworkError(OcrError):
    """Raised when the OCR service cannot be reached or times out."""
