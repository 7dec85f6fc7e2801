import asyncio
import shutil

from labreport.extraction.text_extractor import TextExtractionAdapter
from labreport.logging.logger import Log
from labreport.ocr.exceptions import OcrError
from labreport.ocr.extractor import OcrExtractor
from labreport.pdf import document_ops
from labreport.pdf.exceptions import PdfError, PdfLoadError
from labreport.pdf.models import RebuiltDocument
from labreport.recovery.base import RecoveryContext, RecoveryStage
from labreport.recovery.exceptions import RecoveryStageError, RepairError
from labreport.recovery.models import ExtractionMethod, Page, RecoveryMethod
from labreport.recovery.repair import GhostscriptRepairer, fix_common_issues


class _ExtractingStage(RecoveryStage):
    """Shared helper for stages that end by running the text extraction cascade."""

    def __init__(self, extractor: TextExtractionAdapter) -> None:
        self._extractor = extractor

    async def _extract(self, pdf_bytes: bytes, unrecoverable: tuple[int, ...] = ()) -> list[Page]:
        outcome = await asyncio.to_thread(self._extractor.extract, pdf_bytes, unrecoverable)
        if not outcome.usable:
            raise RecoveryStageError("no extractable text")
        return outcome.pages

    async def _extract_rebuilt(
        self,
        rebuilt: RebuiltDocument,
        context: RecoveryContext,
        label: str,
    ) -> list[Page]:
        context.temp.write(rebuilt.pdf_bytes, label)
        if rebuilt.error_pages:
            Log.warning(
                f"{len(rebuilt.error_pages)} of {rebuilt.page_count} page(s) unrecoverable"
            )
        return await self._extract(rebuilt.pdf_bytes, rebuilt.error_pages)


class DirectStage(_ExtractingStage):
    method = RecoveryMethod.DIRECT
    extraction_method = ExtractionMethod.DIRECT

    def __init__(self, extractor: TextExtractionAdapter, ocr_available: bool) -> None:
        super().__init__(extractor)
        self._ocr_available = ocr_available

    def applies(self, context: RecoveryContext) -> bool:
        return not (context.encrypted and self._ocr_available)

    async def attempt(self, context: RecoveryContext) -> list[Page]:
        return await self._extract(context.pdf_bytes)


class OcrFirstStage(RecoveryStage):
    """OCR on the original bytes; rendering survives permission-only protection."""

    method = RecoveryMethod.OCR
    extraction_method = ExtractionMethod.OCR

    def __init__(self, ocr: OcrExtractor) -> None:
        self._ocr = ocr

    def applies(self, context: RecoveryContext) -> bool:
        return context.encrypted

    async def attempt(self, context: RecoveryContext) -> list[Page]:
        try:
            return await self._ocr.extract(context.pdf_bytes, context.temp)
        except (OcrError, PdfError) as exc:
            raise RecoveryStageError(str(exc)) from exc


class DecryptStage(_ExtractingStage):
    method = RecoveryMethod.DECRYPT
    extraction_method = ExtractionMethod.DECRYPTED

    def __init__(self, extractor: TextExtractionAdapter, passwords: list[str]) -> None:
        super().__init__(extractor)
        self._passwords = passwords

    def applies(self, context: RecoveryContext) -> bool:
        return context.encrypted

    async def attempt(self, context: RecoveryContext) -> list[Page]:
        Log.info(f"Removing protection ({context.profile.description})")
        rebuilt = await asyncio.to_thread(self._decrypt, context.pdf_bytes)
        return await self._extract_rebuilt(rebuilt, context, "decrypted")

    def _decrypt(self, pdf_bytes: bytes) -> RebuiltDocument:
        try:
            return document_ops.rebuild(pdf_bytes, self._passwords)
        except PdfLoadError as exc:
            Log.warning(f"Tolerant load failed, retrying on patched bytes: {exc}")
        try:
            return document_ops.rebuild(fix_common_issues(pdf_bytes), self._passwords)
        except PdfLoadError as exc:
            raise RecoveryStageError(f"decrypt failed: {exc}") from exc


class RepairStage(_ExtractingStage):
    method = RecoveryMethod.REPAIR
    extraction_method = ExtractionMethod.REPAIRED

    async def attempt(self, context: RecoveryContext) -> list[Page]:
        try:
            rebuilt = await asyncio.to_thread(
                document_ops.rebuild, fix_common_issues(context.pdf_bytes)
            )
        except PdfLoadError as exc:
            raise RecoveryStageError(f"repair failed: {exc}") from exc
        return await self._extract_rebuilt(rebuilt, context, "repaired")


class GhostscriptStage(_ExtractingStage):
    method = RecoveryMethod.GHOSTSCRIPT
    extraction_method = ExtractionMethod.GS_REPAIRED

    def __init__(
        self,
        extractor: TextExtractionAdapter,
        repairer: GhostscriptRepairer,
        binary: str,
        enabled: bool,
    ) -> None:
        super().__init__(extractor)
        self._repairer = repairer
        self._binary = binary
        self._enabled = enabled

    def applies(self, context: RecoveryContext) -> bool:
        return self._enabled and shutil.which(self._binary) is not None

    async def attempt(self, context: RecoveryContext) -> list[Page]:
        input_path = context.temp.write(context.pdf_bytes, "gs_input")
        output_path = context.temp.reserve("gs_repaired")
        try:
            await asyncio.to_thread(self._repairer.repair, input_path, output_path)
        except RepairError as exc:
            raise RecoveryStageError(str(exc)) from exc
        return await self._extract(output_path.read_bytes())


class SplitStage(_ExtractingStage):
    """Parse fixed-size page groups independently; unreadable parts are skipped."""

    method = RecoveryMethod.SPLIT
    extraction_method = ExtractionMethod.SPLIT

    def __init__(self, extractor: TextExtractionAdapter, pages_per_part: int) -> None:
        super().__init__(extractor)
        self._pages_per_part = pages_per_part

    async def attempt(self, context: RecoveryContext) -> list[Page]:
        try:
            parts = await asyncio.to_thread(
                document_ops.split, context.pdf_bytes, self._pages_per_part
            )
        except PdfLoadError as exc:
            raise RecoveryStageError(f"split failed: {exc}") from exc

        pages: list[Page] = []
        for part_index, part in enumerate(parts):
            context.temp.write(part, f"part_{part_index + 1}")
            try:
                part_pages = await self._extract(part)
            except RecoveryStageError:
                Log.warning(f"Part {part_index + 1}/{len(parts)} unreadable, skipping")
                continue
            first_page = part_index * self._pages_per_part + 1
            pages.extend(
                Page(identifier=first_page + offset, text=page.text)
                for offset, page in enumerate(part_pages)
            )

        if not pages:
            raise RecoveryStageError(f"none of {len(parts)} part(s) yielded text")
        return pages


class OcrFallbackStage(RecoveryStage):
    """Page-by-page OCR once every parsing strategy has failed."""

    method = RecoveryMethod.OCR
    extraction_method = ExtractionMethod.OCR_API

    def __init__(self, ocr: OcrExtractor) -> None:
        self._ocr = ocr

    async def attempt(self, context: RecoveryContext) -> list[Page]:
        try:
            return await self._ocr.extract(context.pdf_bytes, context.temp, aggressive=True)
        except (OcrError, PdfError) as exc:
            raise RecoveryStageError(str(exc)) from exc


class ReconstructStage(_ExtractingStage):
    method = RecoveryMethod.RECONSTRUCT
    extraction_method = ExtractionMethod.REPAIRED

    async def attempt(self, context: RecoveryContext) -> list[Page]:
        try:
            rebuilt = await asyncio.to_thread(document_ops.reconstruct, context.pdf_bytes)
        except PdfLoadError as exc:
            raise RecoveryStageError(f"reconstruct failed: {exc}") from exc
        return await self._extract_rebuilt(rebuilt, context, "reconstructed")
