from dataclasses import dataclass, field


@dataclass(frozen=True)
class ExamResult:
    """One parsed result line. canonical_key is only used for dedup."""

    raw_exam_name: str
    canonical_key: str
    value_expression: str
    reference_range: str
    is_abnormal: bool
    line: str


@dataclass(frozen=True)
class Summary:
    patient_name: str
    ordered_result_lines: list[str] = field(default_factory=list)

    @property
    def content(self) -> str:
        header = f"Paciente: {self.patient_name}"
        if not self.ordered_result_lines:
            return header
        return header + "\n\n" + "\n".join(self.ordered_result_lines)
