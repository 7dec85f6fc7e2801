from pathlib import Path

from labreport.ai.completion import TextCompletion
from labreport.ai.factory import AiClientFactory
from labreport.config.settings import Settings
from labreport.extraction.text_extractor import TextExtractionAdapter
from labreport.inspection.health import DocumentHealthValidator
from labreport.inspection.protection import ProtectionAnalyzer
from labreport.logging.logger import Log
from labreport.ocr.base import BaseOcrClient
from labreport.ocr.extractor import OcrExtractor
from labreport.ocr.ocr_space_adapter import OcrSpaceAdapter
from labreport.patient.identifier import PatientIdentifier
from labreport.pdf.factory import PdfExtractorFactory
from labreport.processor.file_loader import FileLoader
from labreport.processor.models import DocumentSource, ProcessingResponse
from labreport.processor.pipeline import PipelineContext, PipelineStep
from labreport.processor.steps import (
    BuildResponseStep,
    DetectProtectionStep,
    IdentifyPatientStep,
    LoadDocumentStep,
    OffloadLargeDocumentStep,
    RecoverTextStep,
    SummarizeStep,
    ValidateDocumentStep,
)
from labreport.recovery.pipeline import build_recovery_pipeline
from labreport.storage.blob_store import BaseBlobStore, BlobOffloader, HttpBlobStore
from labreport.storage.temp_files import TempResourceManager
from labreport.summary.summarizer import ResultSummarizer


class Processor:
    """Runs one document through the full pipeline.

    Pipeline: load -> validate -> offload -> protection -> recover -> patient
    -> summarize -> response. Temp files and offloaded blobs are released on
    every exit path.
    """

    def __init__(
        self,
        steps: list[PipelineStep],
        temp_dir: Path,
        offloader: BlobOffloader | None = None,
    ) -> None:
        self._steps = steps
        self._temp_dir = temp_dir
        self._offloader = offloader

    @property
    def steps(self) -> list[PipelineStep]:
        return list(self._steps)

    async def process(self, source: DocumentSource) -> ProcessingResponse:
        context = PipelineContext(source=source, temp=TempResourceManager(self._temp_dir))
        try:
            for step in self._steps:
                context = await step.run(context)
        finally:
            context.temp.release_all()
            if self._offloader is not None:
                await self._offloader.discard(context.blob_url)

        if context.response is None:
            raise ValueError("Pipeline finished without a response")
        Log.info(
            f"Processed {context.document.filename if context.document else 'document'}: "
            f"method={context.response.extraction_method}"
        )
        return context.response


def build_processor(
    settings: Settings,
    *,
    completion: TextCompletion | None = None,
    ocr_client: BaseOcrClient | None = None,
    blob_store: BaseBlobStore | None = None,
) -> Processor:
    """Build a Processor with all required adapters."""
    completion = completion or AiClientFactory.create(settings)

    if ocr_client is None and settings.ocr_enabled:
        ocr_client = OcrSpaceAdapter(
            api_url=settings.ocr_api_url,
            api_key=settings.ocr_api_key,
            timeout_seconds=settings.ocr_timeout_seconds,
        )
    ocr = None
    if ocr_client is not None:
        ocr = OcrExtractor(
            ocr_client,
            language=settings.ocr_language,
            max_part_kb=settings.ocr_max_part_kb,
            reduce_threshold_kb=settings.ocr_reduce_threshold_kb,
            timeout_seconds=settings.ocr_timeout_seconds,
            max_concurrency=settings.ocr_max_concurrency,
        )

    if blob_store is None and settings.blob_store_url:
        blob_store = HttpBlobStore(settings.blob_store_url, settings.blob_timeout_seconds)
    offloader = None
    if blob_store is not None:
        offloader = BlobOffloader(
            blob_store,
            threshold_bytes=settings.blob_offload_threshold_mb * 1024 * 1024,
            attempts=settings.blob_max_retries,
            backoff_seconds=settings.blob_backoff_seconds,
        )

    extractor = TextExtractionAdapter(
        PdfExtractorFactory.create(settings), min_text_length=settings.min_text_length
    )
    steps: list[PipelineStep] = [
        LoadDocumentStep(
            FileLoader(
                blob_store,
                blob_attempts=settings.blob_max_retries,
                blob_backoff_seconds=settings.blob_backoff_seconds,
            )
        ),
        ValidateDocumentStep(
            DocumentHealthValidator(
                settings.max_upload_size_bytes, settings.protection_scan_bytes
            )
        ),
    ]
    if offloader is not None:
        steps.append(OffloadLargeDocumentStep(offloader))
    steps.extend(
        [
            DetectProtectionStep(ProtectionAnalyzer(settings.protection_scan_bytes)),
            RecoverTextStep(build_recovery_pipeline(settings, extractor, ocr)),
            IdentifyPatientStep(
                PatientIdentifier(
                    completion,
                    max_tokens=settings.name_max_tokens,
                    temperature=settings.ai_temperature,
                    timeout_seconds=settings.ai_timeout_seconds,
                ),
                ocr,
            ),
            SummarizeStep(
                ResultSummarizer(
                    completion,
                    chunk_chars=settings.summary_chunk_chars,
                    max_tokens=settings.summary_max_tokens,
                    temperature=settings.ai_temperature,
                    timeout_seconds=settings.ai_timeout_seconds,
                    max_concurrency=settings.summary_max_concurrency,
                )
            ),
            BuildResponseStep(),
        ]
    )
    return Processor(steps=steps, temp_dir=settings.temp_dir, offloader=offloader)
