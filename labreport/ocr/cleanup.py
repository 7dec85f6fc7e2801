"""Deterministic cleanup of OCR output from lab reports."""

import re

_REPLACEMENTS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(\d),(\d)"), r"\1.\2"),
    (re.compile(r"rng/dL"), "mg/dL"),
    (re.compile(r"(\d)o(\d)"), r"\g<1>0\2"),
    (re.compile(r"(?<=\d)O|O(?=\d)"), "0"),
    (re.compile(r"Hernoglobina"), "Hemoglobina"),
    (re.compile(r"Leucócítos"), "Leucócitos"),
    (re.compile(r"Glicernia"), "Glicemia"),
    (re.compile(r"Pacíente"), "Paciente"),
    (re.compile(r"Resutado"), "Resultado"),
    (re.compile(r"/alor"), "Valor"),
    (re.compile(r"D[nN]:"), "DN:"),
]


def clean_ocr_text(text: str) -> str:
    if not text:
        return ""
    cleaned = re.sub(r"[^\S\n]+", " ", text)
    cleaned = re.sub(r" ?\n ?", "\n", cleaned)
    cleaned = re.sub(r"\n{3,}", "\n\n", cleaned).strip()
    for pattern, replacement in _REPLACEMENTS:
        cleaned = pattern.sub(replacement, cleaned)
    return cleaned
