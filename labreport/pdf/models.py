from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExtractedText:
    """Per-page text produced by a text extraction engine."""

    pages: list[str] = field(default_factory=list)

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def text(self) -> str:
        return "\n".join(self.pages).strip()


@dataclass(frozen=True)
class RebuiltDocument:
    """A new PDF assembled from the pages of another one.

    error_pages holds zero-based indexes of pages that could not be copied
    and were replaced by a marker page.
    """

    pdf_bytes: bytes
    pages_copied: int
    error_pages: tuple[int, ...] = ()

    @property
    def page_count(self) -> int:
        return self.pages_copied + len(self.error_pages)
