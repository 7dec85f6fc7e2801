from abc import ABC, abstractmethod

from labreport.pdf.models import ExtractedText


class BasePdfExtractor(ABC):
    """Contract for all PDF text extraction adapters."""

    @abstractmethod
    def extract(self, pdf_bytes: bytes) -> ExtractedText:
        """Extract per-page plain text from PDF bytes.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            ExtractedText with one entry per page, in page order.

        Raises:
            PdfExtractionError: if extraction fails for any reason.
        """
