"""Regex and marker scanning over the latin-1 decoded head of a PDF."""

import re

PDF_SIGNATURE = b"%PDF-"

PERMISSION_PATTERN = re.compile(r"/P\s+(-?\d+)")
OBJECT_PATTERN = re.compile(r"\d+\s+\d+\s+obj")
XREF_TABLE_PATTERN = re.compile(r"xref\s+\d+\s+\d+\s*\n\s*\d{10}\s+\d{5}\s+[fn]", re.IGNORECASE)
STREAM_PATTERN = re.compile(r"stream\s*\n.*?\n*endstream", re.DOTALL)
LITERAL_STRING_PATTERN = re.compile(r"\(.*?\)")

ENCRYPTION_MARKERS = (
    "/Encrypt",
    "/Standard",
    "/StdCF",
    "/Crypt",
    "/EncryptMetadata",
    "/R ",
    "/O ",
    "/U ",
    "/P ",
)
IMAGE_CODEC_MARKERS = ("/DCTDecode", "/JPXDecode", "/CCITTFaxDecode")
OCR_PRODUCER_MARKERS = ("OCR", "TextRecognize", "Acrobat Capture")
USER_PASSWORD_REVISIONS = ("/R 2", "/R 3", "/R 4", "/R 5", "/R 6")


def scan_prefix(pdf_bytes: bytes, limit: int) -> str:
    return pdf_bytes[:limit].decode("latin-1")


def has_signature(pdf_bytes: bytes) -> bool:
    return pdf_bytes.startswith(PDF_SIGNATURE)


def pdf_version(pdf_bytes: bytes) -> str:
    return pdf_bytes[5:8].decode("ascii", errors="replace")


def permission_value(prefix: str) -> int | None:
    match = PERMISSION_PATTERN.search(prefix)
    return int(match.group(1)) if match else None


def encryption_score(prefix: str) -> int:
    return sum(1 for marker in ENCRYPTION_MARKERS if marker in prefix)


def looks_scanned(prefix: str) -> bool:
    if not any(marker in prefix for marker in IMAGE_CODEC_MARKERS):
        return False
    few_text_objects = len(LITERAL_STRING_PATTERN.findall(prefix)) < 100
    has_ocr_hints = any(marker in prefix for marker in OCR_PRODUCER_MARKERS)
    return few_text_objects or has_ocr_hints


def structure_problems(prefix: str, full_text: str) -> list[str]:
    problems: list[str] = []
    if not XREF_TABLE_PATTERN.search(prefix):
        problems.append("xref_issues")
    if "FlateDecode" in prefix and len(STREAM_PATTERN.findall(prefix)) < 5:
        problems.append("stream_issues")
    if "/Linearized" in prefix:
        problems.append("linearized")
    if "/Font" in prefix and ("/FontDescriptor" not in prefix or "/BaseFont" not in prefix):
        problems.append("font_issues")
    if full_text.count("Warning: Invalid stream") > 10:
        problems.append("compression_issues")
    return problems


def is_basically_valid(pdf_bytes: bytes, prefix: str) -> bool:
    """Cheap check for object markers, a trailer and page markers."""
    if not has_signature(pdf_bytes):
        return False
    has_objects = OBJECT_PATTERN.search(prefix) is not None
    has_trailer = "trailer" in prefix or "startxref" in prefix
    has_pages = "/Page" in prefix
    return has_objects and has_trailer and has_pages
