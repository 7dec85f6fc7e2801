import asyncio
from dataclasses import replace

from labreport.inspection.health import DocumentHealthValidator
from labreport.inspection.protection import ProtectionAnalyzer
from labreport.logging.logger import Log
from labreport.ocr.extractor import OcrExtractor
from labreport.patient.identifier import OcrPagesProvider, PatientIdentifier
from labreport.processor.exceptions import InputRejectedError
from labreport.processor.file_loader import FileLoader
from labreport.processor.models import Document, ProcessingResponse
from labreport.processor.pipeline import PipelineContext, PipelineStep
from labreport.recovery.base import RecoveryContext
from labreport.recovery.models import ExtractionMethod, Page, RecoveryReport
from labreport.recovery.pipeline import RecoveryPipeline
from labreport.storage.blob_store import BlobOffloader
from labreport.summary.models import Summary
from labreport.summary.summarizer import ResultSummarizer

_OCR_METHODS = (ExtractionMethod.OCR, ExtractionMethod.OCR_API)


def _require_document(context: PipelineContext) -> Document:
    if context.document is None:
        raise ValueError("PipelineContext.document must be set before this step")
    return context.document


def _require_report(context: PipelineContext) -> RecoveryReport:
    if context.report is None:
        raise ValueError("PipelineContext.report must be set before this step")
    return context.report


class LoadDocumentStep(PipelineStep):
    def __init__(self, file_loader: FileLoader) -> None:
        self._file_loader = file_loader

    async def run(self, context: PipelineContext) -> PipelineContext:
        context.document = await self._file_loader.load(context.source)
        Log.info(f"Loaded {context.document.size} bytes from {context.document.filename}")
        return context


class ValidateDocumentStep(PipelineStep):
    def __init__(self, validator: DocumentHealthValidator) -> None:
        self._validator = validator

    async def run(self, context: PipelineContext) -> PipelineContext:
        document = _require_document(context)
        result = await asyncio.to_thread(self._validator.validate, document.data)
        context.validation = result
        if not result.valid:
            reason = result.reason.value if result.reason is not None else "invalid"
            Log.warning(f"Upload rejected ({reason}): {result.message}")
            raise InputRejectedError(reason, result.message)
        Log.info(result.message)
        return context


class OffloadLargeDocumentStep(PipelineStep):
    """Round-trips large uploads through the blob store before recovery."""

    def __init__(self, offloader: BlobOffloader) -> None:
        self._offloader = offloader

    async def run(self, context: PipelineContext) -> PipelineContext:
        document = _require_document(context)
        if not self._offloader.should_offload(document.size):
            return context
        data, context.blob_url = await self._offloader.roundtrip(document.data, document.filename)
        context.document = replace(document, data=data)
        return context


class DetectProtectionStep(PipelineStep):
    def __init__(self, analyzer: ProtectionAnalyzer) -> None:
        self._analyzer = analyzer

    async def run(self, context: PipelineContext) -> PipelineContext:
        document = _require_document(context)
        context.profile = self._analyzer.detect_protection(document.data)
        context.encrypted = await asyncio.to_thread(self._analyzer.is_encrypted, document.data)
        Log.info(f"Document encrypted: {context.encrypted}")
        return context


class RecoverTextStep(PipelineStep):
    def __init__(self, recovery: RecoveryPipeline) -> None:
        self._recovery = recovery

    async def run(self, context: PipelineContext) -> PipelineContext:
        document = _require_document(context)
        if context.profile is None:
            raise ValueError("PipelineContext.profile must be set before recovery")
        context.report = await self._recovery.run(
            RecoveryContext(
                pdf_bytes=document.data,
                profile=context.profile,
                encrypted=context.encrypted,
                temp=context.temp,
            )
        )
        Log.info(f"Text recovered via {context.report.method.value}")
        return context


class IdentifyPatientStep(PipelineStep):
    def __init__(self, identifier: PatientIdentifier, ocr: OcrExtractor | None) -> None:
        self._identifier = identifier
        self._ocr = ocr

    async def run(self, context: PipelineContext) -> PipelineContext:
        report = _require_report(context)
        pages: list[Page] = [] if report.failed else report.recovered.pages
        context.patient_name = await self._identifier.identify(
            pages, self._ocr_provider(context, report)
        )
        return context

    def _ocr_provider(
        self,
        context: PipelineContext,
        report: RecoveryReport,
    ) -> OcrPagesProvider | None:
        ocr = self._ocr
        if ocr is None or report.method in _OCR_METHODS:
            return None
        document = _require_document(context)
        return lambda: ocr.extract(document.data, context.temp)


class SummarizeStep(PipelineStep):
    def __init__(self, summarizer: ResultSummarizer) -> None:
        self._summarizer = summarizer

    async def run(self, context: PipelineContext) -> PipelineContext:
        report = _require_report(context)
        if report.failed:
            context.summary = Summary(
                patient_name=context.patient_name,
                ordered_result_lines=[page.text for page in report.recovered.pages],
            )
            return context
        context.summary = await self._summarizer.summarize(
            report.recovered.pages, context.patient_name
        )
        return context


class BuildResponseStep(PipelineStep):
    async def run(self, context: PipelineContext) -> PipelineContext:
        report = _require_report(context)
        if context.summary is None:
            raise ValueError("PipelineContext.summary must be set before building the response")

        details = None
        if any(not attempt.success for attempt in report.attempts):
            details = list(report.attempts)

        protection = None
        if context.encrypted and context.profile is not None:
            protection = {
                "type": context.profile.description,
                "is_known_pattern": context.profile.is_known_pattern,
            }

        context.response = ProcessingResponse(
            summary_content=context.summary.content,
            patient_name=context.patient_name,
            extraction_method=report.method.value,
            processing_details=details,
            protection=protection,
            document_info=report.document_info,
        )
        return context
