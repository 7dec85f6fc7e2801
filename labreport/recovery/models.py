from dataclasses import dataclass, field
from enum import Enum


class RecoveryMethod(str, Enum):
    DIRECT = "direct"
    DECRYPT = "decrypt"
    REPAIR = "repair"
    GHOSTSCRIPT = "ghostscript"
    SPLIT = "split"
    OCR = "ocr"
    RECONSTRUCT = "reconstruct"


class ExtractionMethod(str, Enum):
    """How the accepted text was obtained, as reported to the caller."""

    DIRECT = "direct"
    DECRYPTED = "decrypted"
    REPAIRED = "repaired"
    GS_REPAIRED = "gs_repaired"
    SPLIT = "split"
    OCR = "ocr"
    OCR_API = "ocr_api"
    FAILURE = "failure"


@dataclass(frozen=True)
class Page:
    identifier: str | int
    text: str

    @property
    def is_unrecoverable(self) -> bool:
        return False


@dataclass(frozen=True)
class UnrecoverablePage(Page):
    """A page whose content was lost during rebuild; text is always empty."""

    original_index: int = 0
    text: str = ""

    @property
    def is_unrecoverable(self) -> bool:
        return True


@dataclass(frozen=True)
class RecoveryAttempt:
    method: RecoveryMethod
    success: bool
    error_detail: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "method": self.method.value,
            "success": self.success,
            "error": self.error_detail,
        }


@dataclass(frozen=True)
class RecoveredText:
    pages: list[Page]
    method: ExtractionMethod

    @property
    def first_page_text(self) -> str:
        return self.pages[0].text if self.pages else ""

    def is_usable(self, min_length: int) -> bool:
        return len(self.first_page_text.strip()) > min_length


@dataclass
class RecoveryReport:
    """What the pipeline settled on, plus every attempt made along the way."""

    recovered: RecoveredText
    attempts: list[RecoveryAttempt] = field(default_factory=list)
    document_info: dict[str, object] = field(default_factory=dict)

    @property
    def method(self) -> ExtractionMethod:
        return self.recovered.method

    @property
    def failed(self) -> bool:
        return self.recovered.method is ExtractionMethod.FAILURE
