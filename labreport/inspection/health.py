from labreport.inspection import markers
from labreport.inspection.models import FailureKind, RejectionReason, ValidationResult
from labreport.logging.logger import Log
from labreport.pdf import document_ops
from labreport.pdf.exceptions import PdfLoadError

_TAIL_BYTES = 2048


def classify_failure(message: str) -> FailureKind:
    """Map a load error message onto a failure kind."""
    lowered = message.lower()
    if "encrypted" in lowered or "password" in lowered:
        return FailureKind.PROTECTION
    if "corrupt" in lowered or "invalid" in lowered:
        return FailureKind.CORRUPTION
    if "linearized" in lowered or "xref" in lowered:
        return FailureKind.UNCONVENTIONAL_STRUCTURE
    return FailureKind.UNSUPPORTED_FORMAT


class DocumentHealthValidator:
    """Byte-level and structural health check of an uploaded PDF.

    validate() always returns a ValidationResult for malformed input; it does
    not raise.
    """

    def __init__(self, max_size_bytes: int, scan_bytes: int = 20000) -> None:
        self._max_size_bytes = max_size_bytes
        self._scan_bytes = scan_bytes

    def validate(self, pdf_bytes: bytes) -> ValidationResult:
        size_mb = round(len(pdf_bytes) / (1024 * 1024), 2)

        if not pdf_bytes:
            return ValidationResult(
                valid=False,
                message="No file content received",
                reason=RejectionReason.MISSING,
            )

        if len(pdf_bytes) > self._max_size_bytes:
            limit_mb = self._max_size_bytes // (1024 * 1024)
            return ValidationResult(
                valid=False,
                message=f"PDF file is too large (maximum {limit_mb}MB)",
                reason=RejectionReason.OVERSIZED,
                details={"size_mb": size_mb},
            )

        if not markers.has_signature(pdf_bytes):
            return ValidationResult(
                valid=False,
                message="The file is not a valid PDF",
                reason=RejectionReason.NOT_A_PDF,
            )

        prefix = markers.scan_prefix(pdf_bytes, self._scan_bytes)
        try:
            with document_ops.open_tolerant(pdf_bytes) as doc:
                page_count = doc.page_count
                is_encrypted = document_ops.reports_encryption(doc)
        except PdfLoadError as exc:
            return self._classify_load_failure(pdf_bytes, prefix, exc)

        structure_problems = markers.structure_problems(
            prefix, pdf_bytes.decode("latin-1")
        )
        if structure_problems:
            Log.debug(f"Structure anomalies: {structure_problems}")
        return ValidationResult(
            valid=True,
            message="Valid PDF (protected/encrypted)" if is_encrypted else "Valid PDF",
            details={
                "page_count": page_count,
                "is_encrypted": is_encrypted,
                "size_mb": size_mb,
                "version": markers.pdf_version(pdf_bytes),
                "has_xfa": b"XFA" in pdf_bytes,
                "has_acroform": b"/AcroForm" in pdf_bytes,
                "is_scanned": markers.looks_scanned(prefix),
                "structure_problems": structure_problems,
            },
        )

    def _classify_load_failure(
        self,
        pdf_bytes: bytes,
        prefix: str,
        exc: PdfLoadError,
    ) -> ValidationResult:
        kind = classify_failure(str(exc))
        Log.warning(f"Tolerant load failed ({kind.value}): {exc}")
        head_and_tail = prefix + markers.scan_prefix(pdf_bytes[-_TAIL_BYTES:], _TAIL_BYTES)
        if markers.is_basically_valid(pdf_bytes, head_and_tail):
            return ValidationResult(
                valid=True,
                message=f"Valid PDF with {kind.value} problems, alternative recovery will be tried",
                reason=kind,
                details={"error": str(exc), "problem_type": kind.value, "needs_repair": True},
            )
        return ValidationResult(
            valid=False,
            message=f"The PDF appears to have {kind.value} problems",
            reason=kind,
            details={"error": str(exc), "problem_type": kind.value},
        )


def analyze_structure(pdf_bytes: bytes, scan_bytes: int = 20000) -> dict[str, object]:
    """Diagnostic snapshot of the PDF head, reported when recovery fails."""
    prefix = markers.scan_prefix(pdf_bytes, scan_bytes)
    valid_header = markers.has_signature(pdf_bytes)
    return {
        "valid_header": valid_header,
        "version": markers.pdf_version(pdf_bytes) if valid_header else None,
        "has_encryption": "/Encrypt" in prefix or "/Filter /Standard" in prefix,
        "has_embedded_fonts": "/FontFile" in prefix,
        "has_images": "/XObject" in prefix or "/Subtype /Image" in prefix,
        "likely_scanned": markers.looks_scanned(prefix),
        "linearized": "/Linearized" in prefix,
        "xref_issues": markers.XREF_TABLE_PATTERN.search(prefix) is None,
        "file_size": len(pdf_bytes),
    }
