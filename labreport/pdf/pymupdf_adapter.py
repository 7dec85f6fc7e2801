import pymupdf

from labreport.pdf.base import BasePdfExtractor
from labreport.pdf.exceptions import PdfExtractionError
from labreport.pdf.models import ExtractedText


class PyMuPdfAdapter(BasePdfExtractor):
    """Extracts text from PDF using PyMuPDF."""

    def extract(self, pdf_bytes: bytes) -> ExtractedText:
        try:
            with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
                if doc.needs_pass:
                    raise PdfExtractionError("pymupdf: document requires a password")
                pages = [page.get_text().strip() for page in doc]
        except PdfExtractionError:
            raise
        except Exception as exc:
            raise PdfExtractionError(f"pymupdf extraction failed: {exc}") from exc
        if not pages:
            raise PdfExtractionError("pymupdf found no pages")
        return ExtractedText(pages=pages)
