from labreport.config.settings import Settings
from labreport.logging.logger import Log
from labreport.pdf.base import BasePdfExtractor
from labreport.pdf.pdfplumber_adapter import PdfPlumberAdapter
from labreport.pdf.pymupdf_adapter import PyMuPdfAdapter


class PdfExtractorFactory:
    """Picks the text engine used by every extracting recovery stage."""

    ADAPTERS: dict[str, type[BasePdfExtractor]] = {
        "pdfplumber": PdfPlumberAdapter,
        "pymupdf": PyMuPdfAdapter,
    }

    @classmethod
    def create(cls, settings: Settings) -> BasePdfExtractor:
        engine = settings.pdf_engine.strip().lower()
        try:
            adapter_cls = cls.ADAPTERS[engine]
        except KeyError:
            raise ValueError(
                f"Unknown PDF engine '{engine}' for text recovery. "
                f"Choose from: {', '.join(sorted(cls.ADAPTERS))}"
            ) from None
        Log.debug(f"Recovery text engine: {engine}")
        return adapter_cls()
