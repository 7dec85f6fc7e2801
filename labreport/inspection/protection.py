from labreport.inspection import markers
from labreport.inspection.models import Capability, ProtectionProfile
from labreport.logging.logger import Log
from labreport.pdf import document_ops
from labreport.pdf.exceptions import PdfLoadError

# Bit values of the /P permission integer.
PERMISSION_BITS: dict[Capability, int] = {
    Capability.PRINT: 4,
    Capability.MODIFY: 8,
    Capability.COPY: 16,
    Capability.ANNOTATE: 32,
    Capability.FILL_FORMS: 256,
    Capability.ACCESSIBILITY: 512,
    Capability.ASSEMBLE: 1024,
    Capability.HIGH_QUALITY_PRINT: 2048,
}

KNOWN_PATTERN_DENIED = frozenset(
    {Capability.COPY, Capability.MODIFY, Capability.ANNOTATE, Capability.FILL_FORMS}
)

_DENIAL_LABELS: dict[Capability, str] = {
    Capability.PRINT: "printing blocked",
    Capability.COPY: "text copy blocked",
    Capability.ACCESSIBILITY: "accessibility blocked",
    Capability.MODIFY: "editing blocked",
    Capability.FILL_FORMS: "form filling blocked",
    Capability.ANNOTATE: "annotations blocked",
}

_ENCRYPTION_ERROR_KEYWORDS = ("encrypt", "password", "crypt")


def decode_permissions(permission_value: int) -> frozenset[Capability]:
    """Return the capabilities whose bit is cleared in the /P integer."""
    return frozenset(
        capability
        for capability, bit in PERMISSION_BITS.items()
        if permission_value & bit == 0
    )


def describe(denied: frozenset[Capability], is_known_pattern: bool) -> str:
    if is_known_pattern:
        return "typical lab report protection (printing allowed, copying blocked)"
    labels = [label for capability, label in _DENIAL_LABELS.items() if capability in denied]
    if not labels:
        return "generic protection"
    return ", ".join(labels)


class ProtectionAnalyzer:
    """Classifies encryption and permission restrictions from the head of a PDF.

    Only a bounded prefix of the bytes is scanned. A full tolerant load is used
    solely as the last signal in is_encrypted.
    """

    def __init__(self, scan_bytes: int = 20000) -> None:
        self._scan_bytes = scan_bytes

    def detect_protection(self, pdf_bytes: bytes) -> ProtectionProfile:
        prefix = markers.scan_prefix(pdf_bytes, self._scan_bytes)
        permission_value = markers.permission_value(prefix)
        requires_user_password = any(
            revision in prefix for revision in markers.USER_PASSWORD_REVISIONS
        )
        has_signature = "/Type /Sig" in prefix or "/ByteRange" in prefix

        if permission_value is None:
            denied: frozenset[Capability] = frozenset()
            is_known_pattern = False
        else:
            denied = decode_permissions(permission_value)
            is_known_pattern = (
                Capability.PRINT not in denied and KNOWN_PATTERN_DENIED <= denied
            )

        profile = ProtectionProfile(
            is_protected=bool(denied) or requires_user_password,
            permission_bitmap=permission_value,
            denied_capabilities=denied,
            is_known_pattern=is_known_pattern,
            description=describe(denied, is_known_pattern),
            requires_user_password=requires_user_password,
            has_signature=has_signature,
        )
        if profile.is_protected:
            Log.info(
                f"Protection detected: {profile.description} "
                f"(level {profile.protection_level})"
            )
        return profile

    def is_encrypted(self, pdf_bytes: bytes) -> bool:
        prefix = markers.scan_prefix(pdf_bytes, self._scan_bytes)

        permission_value = markers.permission_value(prefix)
        if permission_value is not None and permission_value < 0:
            return True

        if markers.encryption_score(prefix) >= 3:
            return True

        try:
            return document_ops.is_library_encrypted(pdf_bytes)
        except PdfLoadError as exc:
            message = str(exc).lower()
            if any(keyword in message for keyword in _ENCRYPTION_ERROR_KEYWORDS):
                return True
            Log.debug(f"Encryption check fell through to not encrypted: {exc}")
            return False
