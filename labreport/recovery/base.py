from abc import ABC, abstractmethod
from dataclasses import dataclass

from labreport.inspection.models import ProtectionProfile
from labreport.recovery.models import ExtractionMethod, Page, RecoveryMethod
from labreport.storage.temp_files import TempResourceManager


@dataclass(slots=True)
class RecoveryContext:
    """Read-only inputs shared by every stage of one recovery run."""

    pdf_bytes: bytes
    profile: ProtectionProfile
    encrypted: bool
    temp: TempResourceManager


class RecoveryStage(ABC):
    """One strategy in the ordered fallback chain."""

    method: RecoveryMethod
    extraction_method: ExtractionMethod

    def applies(self, context: RecoveryContext) -> bool:
        """Stages that do not apply are skipped without recording an attempt."""
        return True

    @abstractmethod
    async def attempt(self, context: RecoveryContext) -> list[Page]:
        """Produce pages of text from the document.

        Raises:
            RecoveryStageError: if the stage cannot produce usable text.
        """
