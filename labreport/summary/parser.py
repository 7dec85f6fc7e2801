"""Parsing of extracted result lines and exam-name canonicalization."""

import re
import unicodedata

from labreport.summary.models import ExamResult

# Whole-name aliases only; "glicose pos prandial" is a different exam from "glicose".
SYNONYM_GROUPS: dict[str, frozenset[str]] = {
    "tgo": frozenset(
        {"tgo", "ast", "aspartato", "aspartato aminotransferase", "transaminase oxalacetica"}
    ),
    "tgp": frozenset(
        {"tgp", "alt", "alanina", "alanina aminotransferase", "transaminase piruvica"}
    ),
    "ggt": frozenset(
        {"ggt", "gama", "gamma", "gama gt", "gamma gt", "gama glutamil transferase"}
    ),
    "hba1c": frozenset({"hba1c", "hb a1c", "a1c", "glicada", "hemoglobina glicada"}),
    "glicose": frozenset({"glicose", "glicemia"}),
}

_ALIASES: dict[str, str] = {
    alias: canonical for canonical, aliases in SYNONYM_GROUPS.items() for alias in aliases
}
_PARENTHESIZED = re.compile(r"\(([^)]*)\)")

_BULLET_PATTERN = re.compile(r"^\s*[-*•–]+\s*")
_ABNORMAL_MARKER = "***"


def strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def canonical_key(raw_exam_name: str) -> str:
    """Lowercase, drop accents and fold known aliases onto one key.

    A name folds when it is an alias as a whole, either bare or with the
    alias written in parentheses ("TGP (ALT)"). Anything else keeps its
    full normalized name.
    """
    key = " ".join(strip_accents(raw_exam_name).lower().split())
    outside = _PARENTHESIZED.sub(" ", key)
    candidates = [key, outside, *_PARENTHESIZED.findall(key)]
    for candidate in candidates:
        phrase = " ".join(re.findall(r"[a-z0-9]+", candidate))
        if phrase in _ALIASES:
            return _ALIASES[phrase]
    return key


def parse_line(line: str) -> ExamResult | None:
    """Parse "<Exam>: <value> | VR: <min> - <max>". Returns None for non-result lines."""
    cleaned = _BULLET_PATTERN.sub("", line).strip()
    # The extraction prompt only emits "<Exam>: ..." lines; anything unlabelled is commentary.
    if ":" not in cleaned:
        return None
    raw_name, rest = cleaned.split(":", 1)
    raw_name = raw_name.strip()
    if not raw_name:
        return None

    value_part, _, reference_part = rest.partition("|")
    reference_range = re.sub(r"^\s*VR\s*:\s*", "", reference_part, flags=re.IGNORECASE).strip()
    return ExamResult(
        raw_exam_name=raw_name,
        canonical_key=canonical_key(raw_name),
        value_expression=value_part.strip(),
        reference_range=reference_range,
        is_abnormal=_ABNORMAL_MARKER in value_part,
        line=cleaned,
    )


def parse_lines(text: str) -> list[ExamResult]:
    results = []
    for line in text.splitlines():
        result = parse_line(line)
        if result is not None:
            results.append(result)
    return results
