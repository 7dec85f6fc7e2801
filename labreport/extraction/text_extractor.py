"""Uniform "bytes -> pages of text" extraction with a four-method cascade."""

import re
from dataclasses import dataclass
from enum import Enum

from labreport.logging.logger import Log
from labreport.pdf import document_ops
from labreport.pdf.base import BasePdfExtractor
from labreport.pdf.exceptions import PdfError
from labreport.pdf.models import ExtractedText
from labreport.recovery.models import Page, UnrecoverablePage

_METADATA_SCAN_BYTES = 10000
_NAME_PATTERN = re.compile(r"[Pp]aciente\s*[:\-]?\s*([A-Za-z][A-Za-z ]+)")
_DATE_PATTERN = re.compile(r"\d{2}/\d{2}/\d{4}|\d{4}-\d{2}-\d{2}")


class ExtractionStep(str, Enum):
    TEXT_LAYER = "text_layer"
    NORMALIZED = "normalized"
    PER_PAGE = "per_page"
    METADATA = "metadata"


@dataclass(frozen=True)
class ExtractionOutcome:
    pages: list[Page]
    step: ExtractionStep

    @property
    def usable(self) -> bool:
        """Metadata-only output never counts as document text."""
        return self.step is not ExtractionStep.METADATA


class TextExtractionAdapter:
    """Wraps a PDF text engine with fallbacks for documents the fast path chokes on."""

    def __init__(self, engine: BasePdfExtractor, min_text_length: int = 50) -> None:
        self._engine = engine
        self._min_text_length = min_text_length

    def extract(
        self,
        pdf_bytes: bytes,
        unrecoverable: tuple[int, ...] = (),
    ) -> ExtractionOutcome:
        """Try each method in order, accepting the first one with enough text.

        unrecoverable lists zero-based indexes of marker pages left by a
        rebuild; those pages come back as UnrecoverablePage.
        """
        attempts = (
            (ExtractionStep.TEXT_LAYER, self._text_layer),
            (ExtractionStep.NORMALIZED, self._normalized),
            (ExtractionStep.PER_PAGE, self._per_page),
        )
        for step, method in attempts:
            try:
                extracted = method(pdf_bytes)
            except PdfError as exc:
                Log.debug(f"Extraction step {step.value} failed: {exc}")
                continue
            if len(extracted.text) > self._min_text_length:
                Log.debug(f"Extraction step {step.value} produced {len(extracted.text)} chars")
                return ExtractionOutcome(self._to_pages(extracted, unrecoverable), step)
            Log.debug(f"Extraction step {step.value} produced too little text")

        return ExtractionOutcome([self.metadata_page(pdf_bytes)], ExtractionStep.METADATA)

    def _text_layer(self, pdf_bytes: bytes) -> ExtractedText:
        return self._engine.extract(pdf_bytes)

    def _normalized(self, pdf_bytes: bytes) -> ExtractedText:
        rebuilt = document_ops.rebuild(pdf_bytes)
        return self._engine.extract(rebuilt.pdf_bytes)

    def _per_page(self, pdf_bytes: bytes) -> ExtractedText:
        texts: list[str] = []
        for index, single in enumerate(document_ops.split_pages(pdf_bytes), start=1):
            try:
                texts.append(self._engine.extract(single).text)
            except PdfError as exc:
                Log.debug(f"Page {index} not extractable: {exc}")
                texts.append("")
        return ExtractedText(pages=texts)

    def _to_pages(self, extracted: ExtractedText, unrecoverable: tuple[int, ...]) -> list[Page]:
        return [
            UnrecoverablePage(identifier=index + 1, original_index=index)
            if index in unrecoverable
            else Page(identifier=index + 1, text=text)
            for index, text in enumerate(extracted.pages)
        ]

    def metadata_page(self, pdf_bytes: bytes) -> Page:
        lines = ["BASIC DOCUMENT INFORMATION", ""]
        try:
            with document_ops.open_tolerant(pdf_bytes) as doc:
                lines.append(f"Pages: {doc.page_count}")
                protected = document_ops.reports_encryption(doc)
                lines.append(f"Protected: {'yes' if protected else 'no'}")
        except PdfError as exc:
            Log.debug(f"Metadata load failed: {exc}")
        lines.append(f"File size: {round(len(pdf_bytes) / 1024)} KB")

        head = pdf_bytes[:_METADATA_SCAN_BYTES].decode("utf-8", errors="ignore")
        name_match = _NAME_PATTERN.search(head)
        if name_match:
            lines.append(f"Possible patient name: {name_match.group(1).strip()}")
        dates = _DATE_PATTERN.findall(head)
        if dates:
            lines.append(f"Dates found: {', '.join(dates[:3])}")
        return Page(identifier="Basic information", text="\n".join(lines))
