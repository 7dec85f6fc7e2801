import asyncio

from labreport.logging.logger import Log
from labreport.ocr.base import BaseOcrClient
from labreport.ocr.cleanup import clean_ocr_text
from labreport.ocr.exceptions import OcrError
from labreport.pdf import document_ops
from labreport.pdf.exceptions import PdfLoadError
from labreport.recovery.models import Page
from labreport.storage.temp_files import TempResourceManager


class OcrExtractor:
    """Runs OCR over a PDF, chunking it to stay under the service payload limit.

    Parts are sent concurrently (bounded by max_concurrency) and results keep
    part order. A part that fails contributes nothing.
    """

    def __init__(
        self,
        client: BaseOcrClient,
        *,
        language: str = "por",
        max_part_kb: int = 1000,
        reduce_threshold_kb: int = 950,
        timeout_seconds: int = 60,
        max_concurrency: int = 3,
    ) -> None:
        self._client = client
        self._language = language
        self._max_part_bytes = max_part_kb * 1024
        self._reduce_threshold_bytes = reduce_threshold_kb * 1024
        self._timeout_seconds = timeout_seconds
        self._max_concurrency = max(1, max_concurrency)

    async def extract(
        self,
        pdf_bytes: bytes,
        temp: TempResourceManager,
        *,
        aggressive: bool = False,
    ) -> list[Page]:
        """OCR the document and return cleaned pages.

        Raises:
            OcrError: if no part produced any text.
        """
        parts = await asyncio.to_thread(self._prepare_parts, pdf_bytes, aggressive)
        Log.info(f"OCR on {len(parts)} part(s)")

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run_part(index: int, part: bytes) -> list[Page]:
            async with semaphore:
                return await self._recognize_part(index, part, temp)

        results = await asyncio.gather(
            *(run_part(index, part) for index, part in enumerate(parts, start=1))
        )
        pages = [page for part_pages in results for page in part_pages]
        if not any(page.text for page in pages):
            raise OcrError("OCR produced no text")
        return pages

    def _prepare_parts(self, pdf_bytes: bytes, aggressive: bool) -> list[bytes]:
        if not aggressive and len(pdf_bytes) <= self._max_part_bytes:
            return [pdf_bytes]

        try:
            parts = document_ops.split_pages(pdf_bytes)
        except PdfLoadError as exc:
            Log.warning(f"Could not split document for OCR, sending it whole: {exc}")
            return [pdf_bytes]

        prepared: list[bytes] = []
        for index, part in enumerate(parts, start=1):
            if len(part) > self._reduce_threshold_bytes:
                Log.info(f"OCR part {index} is {len(part) // 1024}KB, reducing quality")
                try:
                    part = document_ops.reduce_size(part)
                except PdfLoadError as exc:
                    Log.warning(f"Could not reduce OCR part {index}: {exc}")
            prepared.append(part)
        return prepared

    async def _recognize_part(
        self,
        index: int,
        part: bytes,
        temp: TempResourceManager,
    ) -> list[Page]:
        if len(part) > self._max_part_bytes:
            Log.warning(
                f"OCR part {index} still exceeds {self._max_part_bytes // 1024}KB, skipping"
            )
            return []

        path = temp.write(part, f"ocr_part_{index}")
        try:
            raw_pages = await asyncio.wait_for(
                asyncio.to_thread(self._client.recognize, path, self._language),
                timeout=self._timeout_seconds,
            )
        except (OcrError, asyncio.TimeoutError) as exc:
            Log.warning(f"OCR part {index} failed: {exc!r}")
            return []

        if len(raw_pages) == 1:
            return [Page(identifier=f"Part {index}", text=clean_ocr_text(raw_pages[0].text))]
        return [
            Page(identifier=f"Part {index} - {page.identifier}", text=clean_ocr_text(page.text))
            for page in raw_pages
        ]
