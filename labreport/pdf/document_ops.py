"""Page-level PDF manipulation built on PyMuPDF.

Every function takes and returns byte buffers; nothing here mutates its input.
"""

from collections.abc import Iterable

import pymupdf

from labreport.logging.logger import Log
from labreport.pdf.exceptions import PdfLoadError
from labreport.pdf.models import RebuiltDocument

UNRECOVERABLE_PAGE_MARKER = "[Page {number} unrecoverable]"


def open_tolerant(
    pdf_bytes: bytes,
    passwords: Iterable[str] = (),
) -> pymupdf.Document:
    """Open a PDF ignoring permission flags, trying passwords when one is required.

    Raises:
        PdfLoadError: if the bytes cannot be opened or no password unlocks them.
    """
    try:
        doc = pymupdf.open(stream=pdf_bytes, filetype="pdf")  # type: ignore[no-untyped-call]
    except Exception as exc:
        raise PdfLoadError(f"Failed to open PDF: {exc}") from exc

    if doc.needs_pass:
        for password in passwords:
            if doc.authenticate(password):
                Log.debug("PDF unlocked with a common password")
                break
        else:
            doc.close()
            raise PdfLoadError("PDF requires a password and none of the known ones matched")

    if doc.page_count == 0:
        doc.close()
        raise PdfLoadError("PDF has no pages")
    return doc


def is_library_encrypted(pdf_bytes: bytes) -> bool:
    """Return the encryption flag reported by PyMuPDF.

    Raises:
        PdfLoadError: if the document cannot be opened at all.
    """
    try:
        doc = pymupdf.open(stream=pdf_bytes, filetype="pdf")  # type: ignore[no-untyped-call]
    except Exception as exc:
        raise PdfLoadError(f"Failed to open PDF: {exc}") from exc
    with doc:
        return reports_encryption(doc)


def reports_encryption(doc: pymupdf.Document) -> bool:
    """Permission-only files open without a password but still carry an encryption entry."""
    metadata = doc.metadata or {}
    return bool(doc.needs_pass or doc.is_encrypted or metadata.get("encryption"))


def copy_pages(source: pymupdf.Document) -> RebuiltDocument:
    """Copy every page of an opened document into a fresh, unencrypted one.

    Pages that fail to copy become a marker page so numbering is preserved.

    Raises:
        PdfLoadError: if not a single page could be copied.
    """
    target = pymupdf.open()
    pages_copied = 0
    error_pages: list[int] = []
    try:
        for index in range(source.page_count):
            try:
                target.insert_pdf(source, from_page=index, to_page=index)
                pages_copied += 1
            except Exception as exc:
                Log.warning(f"Page {index + 1} could not be copied: {exc}")
                error_pages.append(index)
                _insert_marker_page(target, index)

        if pages_copied == 0:
            raise PdfLoadError("No page could be copied from the source document")
        return RebuiltDocument(
            pdf_bytes=target.tobytes(garbage=3, deflate=True),
            pages_copied=pages_copied,
            error_pages=tuple(error_pages),
        )
    finally:
        target.close()


def rebuild(pdf_bytes: bytes, passwords: Iterable[str] = ()) -> RebuiltDocument:
    """Open tolerantly and copy every page into a new document."""
    with open_tolerant(pdf_bytes, passwords) as source:
        return copy_pages(source)


def split(pdf_bytes: bytes, pages_per_part: int) -> list[bytes]:
    """Split a PDF into consecutive parts of at most pages_per_part pages."""
    if pages_per_part < 1:
        raise ValueError("pages_per_part must be at least 1")
    parts: list[bytes] = []
    with open_tolerant(pdf_bytes) as source:
        for start in range(0, source.page_count, pages_per_part):
            end = min(start + pages_per_part, source.page_count) - 1
            part = pymupdf.open()
            try:
                part.insert_pdf(source, from_page=start, to_page=end)
                parts.append(part.tobytes(garbage=3, deflate=True))
            except Exception as exc:
                Log.warning(f"Pages {start + 1}-{end + 1} could not be split out: {exc}")
            finally:
                part.close()
    return parts


def split_pages(pdf_bytes: bytes) -> list[bytes]:
    return split(pdf_bytes, 1)


def reconstruct(pdf_bytes: bytes) -> RebuiltDocument:
    """Reassemble a document from the single pages that reload on their own.

    Raises:
        PdfLoadError: if zero pages reload.
    """
    target = pymupdf.open()
    pages_copied = 0
    error_pages: list[int] = []
    try:
        with open_tolerant(pdf_bytes) as source:
            for index in range(source.page_count):
                single = pymupdf.open()
                try:
                    single.insert_pdf(source, from_page=index, to_page=index)
                    with pymupdf.open(stream=single.tobytes(), filetype="pdf") as reloaded:  # type: ignore[no-untyped-call]
                        reloaded.load_page(0)
                        target.insert_pdf(reloaded)
                    pages_copied += 1
                except Exception as exc:
                    Log.warning(f"Page {index + 1} did not reload: {exc}")
                    error_pages.append(index)
                    _insert_marker_page(target, index)
                finally:
                    single.close()

        if pages_copied == 0:
            raise PdfLoadError("No page could be reconstructed")
        return RebuiltDocument(
            pdf_bytes=target.tobytes(garbage=3, deflate=True),
            pages_copied=pages_copied,
            error_pages=tuple(error_pages),
        )
    finally:
        target.close()


def reduce_size(pdf_bytes: bytes) -> bytes:
    """Re-save with garbage collection and stream compression."""
    with open_tolerant(pdf_bytes) as doc:
        return doc.tobytes(garbage=4, deflate=True, clean=True)


def _insert_marker_page(target: pymupdf.Document, index: int) -> None:
    page = target.new_page()
    page.insert_text((72, 72), UNRECOVERABLE_PAGE_MARKER.format(number=index + 1))
