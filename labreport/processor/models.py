from dataclasses import dataclass, field
from pathlib import Path

from labreport.recovery.models import RecoveryAttempt


@dataclass(frozen=True)
class PathSource:
    path: Path


@dataclass(frozen=True)
class BytesSource:
    data: bytes
    filename: str = "document.pdf"


@dataclass(frozen=True)
class BlobSource:
    url: str
    filename: str = "document.pdf"


DocumentSource = PathSource | BytesSource | BlobSource


@dataclass(frozen=True)
class Document:
    """Uploaded PDF bytes. Transformations always produce new buffers."""

    data: bytes
    filename: str

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass
class ProcessingResponse:
    """Payload handed back to the calling layer."""

    summary_content: str
    patient_name: str
    extraction_method: str
    processing_details: list[RecoveryAttempt] | None = None
    protection: dict[str, object] | None = None
    document_info: dict[str, object] = field(default_factory=dict)

    def to_dict(self) -> dict[str, object]:
        return {
            "summaries": [{"page": "Results", "content": self.summary_content}],
            "patient_name": self.patient_name,
            "extraction_method": self.extraction_method,
            "processing_details": (
                [attempt.to_dict() for attempt in self.processing_details]
                if self.processing_details is not None
                else None
            ),
            "protection": self.protection,
            "document_info": self.document_info or None,
        }
