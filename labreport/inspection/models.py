from dataclasses import dataclass, field
from enum import Enum


class Capability(str, Enum):
    """User capabilities governed by the /P permission integer."""

    PRINT = "print"
    MODIFY = "modify"
    COPY = "copy"
    ANNOTATE = "annotate"
    FILL_FORMS = "fill_forms"
    ACCESSIBILITY = "accessibility"
    ASSEMBLE = "assemble"
    HIGH_QUALITY_PRINT = "high_quality_print"


class FailureKind(str, Enum):
    """Why a tolerant structural load failed."""

    PROTECTION = "protection"
    CORRUPTION = "corruption"
    UNCONVENTIONAL_STRUCTURE = "unconventional_structure"
    UNSUPPORTED_FORMAT = "unsupported_format"


class RejectionReason(str, Enum):
    OVERSIZED = "oversized"
    NOT_A_PDF = "not a PDF"
    MISSING = "missing upload"
    UNREADABLE = "unreadable"


@dataclass(frozen=True)
class ProtectionProfile:
    """Encryption and permission classification of one document."""

    is_protected: bool
    permission_bitmap: int | None
    denied_capabilities: frozenset[Capability]
    is_known_pattern: bool
    description: str
    requires_user_password: bool = False
    has_signature: bool = False

    @property
    def protection_level(self) -> int:
        return len(self.denied_capabilities)

    def allows(self, capability: Capability) -> bool:
        return capability not in self.denied_capabilities


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a health check. Never raised, always returned."""

    valid: bool
    message: str
    reason: RejectionReason | FailureKind | None = None
    details: dict[str, object] = field(default_factory=dict)

    @property
    def needs_repair(self) -> bool:
        return bool(self.details.get("needs_repair", False))
