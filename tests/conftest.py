import io
from pathlib import Path

import pytest
from reportlab.lib.pagesizes import letter
from reportlab.lib.pdfencrypt import StandardEncryption
from reportlab.pdfgen import canvas

from labreport.ai.client_base import BaseAiClient
from labreport.ai.completion import TextCompletion
from labreport.config.settings import Settings
from labreport.ocr.base import BaseOcrClient
from labreport.recovery.models import Page

LAB_REPORT_PAGES = [
    [
        "Laboratorio Central de Analises Clinicas",
        "Paciente: JOAO DA SILVA",
        "Data da coleta: 12/03/2024",
        "Glicose: 95 | VR: 70 - 99",
    ],
    [
        "Hemograma e bioquimica - resultados complementares",
        "Glicemia: 96 | VR: 70 - 99",
        "AST: 32 | VR: 5 - 40",
    ],
    [
        "Funcao hepatica - resultados complementares",
        "TGO: 32 | VR: 5 - 40",
        "Colesterol total: 180 | VR: 0 - 190",
    ],
]

OCR_TEXT = (
    "Laboratorio Central de Analises Clinicas\n"
    "Pacíente: MARIA SOUZA\n"
    "Hernoglobina: 13,5 | VR: 12 - 16\n"
    "Glicose: 88 | VR: 70 - 99\n"
)


def _render(pages: list[list[str]], encrypt: StandardEncryption | None = None) -> bytes:
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter, encrypt=encrypt)
    for lines in pages:
        y = 720
        for line in lines:
            c.drawString(72, y, line)
            y -= 18
        c.showPage()
    c.save()
    return buf.getvalue()


def _lab_protection() -> StandardEncryption:
    return StandardEncryption(
        "",
        ownerPassword="owner-secret",
        canPrint=1,
        canModify=0,
        canCopy=0,
        canAnnotate=0,
    )


class EchoResultsClient(BaseAiClient):
    """Answers name prompts with a fixed value and echoes result lines from the chunk."""

    def __init__(self, name_answer: str = "NOT_FOUND") -> None:
        self.name_answer = name_answer
        self.prompts: list[str] = []

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
    ) -> str:
        self.prompts.append(user_prompt)
        if "full name" in system_prompt:
            return self.name_answer
        text = user_prompt.split("Text to analyze:", 1)[-1]
        return "\n".join(line.strip() for line in text.splitlines() if "| VR:" in line)


class StaticOcrClient(BaseOcrClient):
    """Returns the same text for every part and remembers the files it was given."""

    def __init__(self, text: str = OCR_TEXT) -> None:
        self.text = text
        self.paths: list[Path] = []
        self.existed: list[bool] = []

    def recognize(self, path: Path, language: str) -> list[Page]:
        self.paths.append(path)
        self.existed.append(path.exists())
        return [Page(identifier="Section 1", text=self.text)]


@pytest.fixture()
def sample_pdf_bytes() -> bytes:
    """Generate a minimal single-page PDF with known text content."""
    return _render([["Hello PDF World"]])


@pytest.fixture()
def multi_page_pdf_bytes() -> bytes:
    """Generate a two-page PDF with known text on each page."""
    return _render([["Page one content"], ["Page two content"]])


@pytest.fixture()
def empty_pdf_bytes() -> bytes:
    """Generate a valid PDF with no text content (blank page)."""
    return _render([[]])


@pytest.fixture()
def lab_report_pdf_bytes() -> bytes:
    """Three-page unencrypted lab report with duplicated exams across pages."""
    return _render(LAB_REPORT_PAGES)


@pytest.fixture()
def protected_lab_report_pdf_bytes() -> bytes:
    """The lab report with print-only permissions and an owner password."""
    return _render(LAB_REPORT_PAGES, encrypt=_lab_protection())


@pytest.fixture()
def protected_blank_pdf_bytes() -> bytes:
    """Print-only protected PDF with no text layer, as produced by scanners."""
    return _render([[]], encrypt=_lab_protection())


@pytest.fixture()
def echo_client() -> EchoResultsClient:
    return EchoResultsClient()


@pytest.fixture()
def echo_completion(echo_client: EchoResultsClient) -> TextCompletion:
    return TextCompletion(client=echo_client, model="fake")


@pytest.fixture()
def ocr_client() -> StaticOcrClient:
    return StaticOcrClient()


@pytest.fixture()
def temp_dir(tmp_path: Path) -> Path:
    return tmp_path / "work"


@pytest.fixture()
def test_settings(temp_dir: Path) -> Settings:
    return Settings(
        _env_file=None,
        temp_dir=temp_dir,
        ocr_enabled=False,
        ghostscript_enabled=False,
        ai_provider="example",
    )
