import asyncio
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from labreport.config.settings import Settings
from labreport.processor.exceptions import InputRejectedError
from labreport.processor.models import BytesSource, ProcessingResponse
from labreport.processor.pipeline import PipelineContext, PipelineStep
from labreport.processor.processor import Processor, build_processor
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
from labreport.storage.blob_store import BaseBlobStore, BlobOffloader

RESPONSE = ProcessingResponse(
    summary_content="Paciente: X Y",
    patient_name="X Y",
    extraction_method="direct",
)


class _RecordingStep(PipelineStep):
    def __init__(self, name: str, calls: list[str]) -> None:
        self.name = name
        self.calls = calls

    async def run(self, context: PipelineContext) -> PipelineContext:
        self.calls.append(self.name)
        return context


class _TempWritingStep(PipelineStep):
    async def run(self, context: PipelineContext) -> PipelineContext:
        context.temp.write(b"%PDF scratch", "scratch")
        context.blob_url = "http://blobs/x.pdf"
        return context


class _RespondStep(PipelineStep):
    async def run(self, context: PipelineContext) -> PipelineContext:
        context.response = RESPONSE
        return context


class _FailingStep(PipelineStep):
    async def run(self, context: PipelineContext) -> PipelineContext:
        raise InputRejectedError("not a PDF", "The file is not a valid PDF")


class TestProcessor:
    def test_runs_steps_in_order(self, tmp_path: Path) -> None:
        calls: list[str] = []
        steps: list[PipelineStep] = [
            _RecordingStep("load", calls),
            _RecordingStep("recover", calls),
            _RespondStep(),
        ]

        response = asyncio.run(Processor(steps, tmp_path).process(BytesSource(b"%PDF")))

        assert calls == ["load", "recover"]
        assert response is RESPONSE

    def test_releases_resources_after_success(self, tmp_path: Path) -> None:
        offloader = MagicMock(spec=BlobOffloader)
        processor = Processor([_TempWritingStep(), _RespondStep()], tmp_path, offloader)

        asyncio.run(processor.process(BytesSource(b"%PDF")))

        assert list(tmp_path.iterdir()) == []
        offloader.discard.assert_awaited_once_with("http://blobs/x.pdf")

    def test_releases_resources_and_reraises_on_step_error(self, tmp_path: Path) -> None:
        calls: list[str] = []
        offloader = MagicMock(spec=BlobOffloader)
        processor = Processor(
            [_TempWritingStep(), _FailingStep(), _RecordingStep("never", calls)],
            tmp_path,
            offloader,
        )

        with pytest.raises(InputRejectedError, match="not a valid PDF"):
            asyncio.run(processor.process(BytesSource(b"junk")))

        assert calls == []
        assert list(tmp_path.iterdir()) == []
        offloader.discard.assert_awaited_once_with("http://blobs/x.pdf")

    def test_missing_response_raises(self, tmp_path: Path) -> None:
        processor = Processor([_RecordingStep("only", [])], tmp_path)
        with pytest.raises(ValueError, match="without a response"):
            asyncio.run(processor.process(BytesSource(b"%PDF")))


class TestBuildProcessor:
    def test_step_order_without_blob_store(self, test_settings: Settings) -> None:
        processor = build_processor(test_settings)
        assert [type(step) for step in processor.steps] == [
            LoadDocumentStep,
            ValidateDocumentStep,
            DetectProtectionStep,
            RecoverTextStep,
            IdentifyPatientStep,
            SummarizeStep,
            BuildResponseStep,
        ]

    def test_blob_store_adds_offload_step(self, test_settings: Settings) -> None:
        processor = build_processor(test_settings, blob_store=MagicMock(spec=BaseBlobStore))
        step_types = [type(step) for step in processor.steps]
        assert step_types.index(OffloadLargeDocumentStep) == 2
