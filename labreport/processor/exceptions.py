class ProcessorError(Exception):
    """Base exception for all processor-related errors."""


class InputRejectedError(ProcessorError):
    """Raised when an upload is refused before entering recovery."""

    def __init__(self, reason: str, message: str) -> None:
        super().__init__(message)
        self.reason = reason


class FileReadError(ProcessorError):
    """Raised when a document source cannot be read."""
