from abc import ABC, abstractmethod
from pathlib import Path

from labreport.recovery.models import Page


class BaseOcrClient(ABC):
    """Contract for OCR services that read a PDF file and return page texts."""

    @abstractmethod
    def recognize(self, path: Path, language: str) -> list[Page]:
        """Run OCR on the file at path.

        Args:
            path: PDF file no larger than the service payload limit.
            language: Service language hint (e.g. "por").

        Returns:
            Raw recognized text per result section, in service order.

        Raises:
            OcrError: if the service reports an error.
            OcrNetworkError: on connection failures and timeouts.
        """
