import asyncio
from collections.abc import Sequence

from labreport.config.settings import Settings
from labreport.extraction.text_extractor import TextExtractionAdapter
from labreport.inspection.health import analyze_structure
from labreport.logging.logger import Log
from labreport.ocr.extractor import OcrExtractor
from labreport.recovery.base import RecoveryContext, RecoveryStage
from labreport.recovery.exceptions import RecoveryStageError
from labreport.recovery.models import (
    ExtractionMethod,
    Page,
    RecoveredText,
    RecoveryAttempt,
    RecoveryReport,
)
from labreport.recovery.repair import GhostscriptRepairer
from labreport.recovery.stages import (
    DecryptStage,
    DirectStage,
    GhostscriptStage,
    OcrFallbackStage,
    OcrFirstStage,
    ReconstructStage,
    RepairStage,
    SplitStage,
)

FAILURE_MESSAGE = (
    "The text of this document could not be extracted. The PDF may be protected, "
    "damaged or in an unsupported format. Please try an alternative copy of the document."
)


class RecoveryPipeline:
    """Runs recovery stages in strict order and stops at the first usable text.

    Every executed stage is recorded as a RecoveryAttempt. When all stages
    fail the report carries a single explanatory page and method "failure".
    """

    def __init__(
        self,
        stages: Sequence[RecoveryStage],
        extractor: TextExtractionAdapter,
        *,
        min_text_length: int = 50,
        stage_timeout_seconds: int = 120,
        scan_bytes: int = 20000,
    ) -> None:
        self._stages = list(stages)
        self._extractor = extractor
        self._min_text_length = min_text_length
        self._stage_timeout_seconds = stage_timeout_seconds
        self._scan_bytes = scan_bytes

    @property
    def stages(self) -> list[RecoveryStage]:
        return list(self._stages)

    async def run(self, context: RecoveryContext) -> RecoveryReport:
        attempts: list[RecoveryAttempt] = []
        for stage in self._stages:
            name = type(stage).__name__
            if not stage.applies(context):
                Log.debug(f"{name} skipped")
                continue

            Log.info(f"Trying {name}")
            try:
                pages = await asyncio.wait_for(
                    stage.attempt(context), timeout=self._stage_timeout_seconds
                )
                recovered = RecoveredText(pages=pages, method=stage.extraction_method)
                if not recovered.is_usable(self._min_text_length):
                    raise RecoveryStageError(
                        f"first page has {len(recovered.first_page_text.strip())} chars, "
                        f"need more than {self._min_text_length}"
                    )
            except RecoveryStageError as exc:
                Log.warning(f"{name} failed: {exc}")
                attempts.append(RecoveryAttempt(stage.method, success=False, error_detail=str(exc)))
                continue
            except asyncio.TimeoutError:
                Log.warning(f"{name} timed out after {self._stage_timeout_seconds}s")
                attempts.append(
                    RecoveryAttempt(
                        stage.method,
                        success=False,
                        error_detail=f"timed out after {self._stage_timeout_seconds}s",
                    )
                )
                continue
            except Exception as exc:
                # Stage faults never escape the cascade.
                Log.error(f"{name} raised unexpectedly: {exc!r}")
                attempts.append(
                    RecoveryAttempt(
                        stage.method, success=False, error_detail=f"unexpected error: {exc!r}"
                    )
                )
                continue

            attempts.append(RecoveryAttempt(stage.method, success=True))
            Log.info(f"{name} recovered {len(pages)} page(s)")
            return RecoveryReport(recovered=recovered, attempts=attempts)

        Log.error(f"All {len(attempts)} recovery attempt(s) failed")
        return RecoveryReport(
            recovered=RecoveredText(
                pages=[Page(identifier="Results", text=FAILURE_MESSAGE)],
                method=ExtractionMethod.FAILURE,
            ),
            attempts=attempts,
            document_info=await asyncio.to_thread(self._document_info, context.pdf_bytes),
        )

    def _document_info(self, pdf_bytes: bytes) -> dict[str, object]:
        return {
            "structure": analyze_structure(pdf_bytes, self._scan_bytes),
            "metadata": self._extractor.metadata_page(pdf_bytes).text,
        }


def build_recovery_pipeline(
    settings: Settings,
    extractor: TextExtractionAdapter,
    ocr: OcrExtractor | None,
) -> RecoveryPipeline:
    """Assemble the stages in their fixed priority order."""
    stages: list[RecoveryStage] = [DirectStage(extractor, ocr_available=ocr is not None)]
    if ocr is not None:
        stages.append(OcrFirstStage(ocr))
    stages.extend(
        [
            DecryptStage(extractor, settings.common_passwords),
            RepairStage(extractor),
            GhostscriptStage(
                extractor,
                GhostscriptRepairer(
                    settings.ghostscript_binary, settings.ghostscript_timeout_seconds
                ),
                binary=settings.ghostscript_binary,
                enabled=settings.ghostscript_enabled,
            ),
            SplitStage(extractor, settings.split_pages_per_part),
        ]
    )
    if ocr is not None:
        stages.append(OcrFallbackStage(ocr))
    stages.append(ReconstructStage(extractor))
    return RecoveryPipeline(
        stages,
        extractor,
        min_text_length=settings.min_text_length,
        stage_timeout_seconds=settings.stage_timeout_seconds,
        scan_bytes=settings.protection_scan_bytes,
    )
