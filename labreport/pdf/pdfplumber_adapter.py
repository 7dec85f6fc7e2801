import io

import pdfplumber

from labreport.pdf.base import BasePdfExtractor
from labreport.pdf.exceptions import PdfExtractionError
from labreport.pdf.models import ExtractedText


class PdfPlumberAdapter(BasePdfExtractor):
    """Extracts text from PDF using pdfplumber."""

    def extract(self, pdf_bytes: bytes) -> ExtractedText:
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                pages = [(page.extract_text() or "").strip() for page in pdf.pages]
        except Exception as exc:
            raise PdfExtractionError(f"pdfplumber extraction failed: {exc}") from exc
        if not pages:
            raise PdfExtractionError("pdfplumber found no pages")
        return ExtractedText(pages=pages)
