from abc import ABC, abstractmethod
from dataclasses import dataclass

from labreport.inspection.models import ProtectionProfile, ValidationResult
from labreport.processor.models import Document, DocumentSource, ProcessingResponse
from labreport.recovery.models import RecoveryReport
from labreport.storage.temp_files import TempResourceManager
from labreport.summary.models import Summary


@dataclass(slots=True)
class PipelineContext:
    source: DocumentSource
    temp: TempResourceManager
    document: Document | None = None
    validation: ValidationResult | None = None
    blob_url: str | None = None
    profile: ProtectionProfile | None = None
    encrypted: bool = False
    report: RecoveryReport | None = None
    patient_name: str = ""
    summary: Summary | None = None
    response: ProcessingResponse | None = None


class PipelineStep(ABC):
    @abstractmethod
    async def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
