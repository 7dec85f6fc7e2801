import asyncio
import re
from collections.abc import Awaitable, Callable, Sequence

from labreport.ai.completion import TextCompletion
from labreport.ai.exceptions import AiClientError
from labreport.ai.prompt_loader import load_prompt
from labreport.logging.logger import Log
from labreport.ocr.exceptions import OcrError
from labreport.pdf.exceptions import PdfError
from labreport.recovery.models import Page

DEFAULT_PATIENT_NAME = "patient name not identified"
NOT_FOUND_SENTINEL = "NOT_FOUND"
NAME_SCAN_CHARS = 3000

_NAME_CHARS = r"[A-Za-zÀ-ÖØ-öø-ÿ'][A-Za-zÀ-ÖØ-öø-ÿ' ]+"

NAME_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(rf"Paciente[^\S\n]*:[^\S\n]*({_NAME_CHARS})", re.IGNORECASE),
    re.compile(rf"Nome do Paciente[^\S\n]*:[^\S\n]*({_NAME_CHARS})", re.IGNORECASE),
    re.compile(r"Paciente:?[^\S\n]+([A-ZÀ-ÖØ-Þ][A-Za-zÀ-ÖØ-öø-ÿ' ]+)"),
    re.compile(r"Nome:?[^\S\n]+([A-ZÀ-ÖØ-Þ][A-Za-zÀ-ÖØ-öø-ÿ' ]+)"),
)

# Labels that often share the patient's line in report headers.
_TRAILING_LABELS = re.compile(
    r"(\s+(data|idade|sexo|dn|nascimento|rg|cpf|conv[eê]nio|m[eé]dico|"
    r"solicitante|prontu[aá]rio|cadastro|coleta))+$",
    re.IGNORECASE,
)

OcrPagesProvider = Callable[[], Awaitable[list[Page]]]


def looks_like_full_name(candidate: str) -> bool:
    return len(candidate) > 3 and " " in candidate


def clean_candidate(raw: str) -> str:
    candidate = re.split(r"\s{2,}", raw.strip())[0]
    return _TRAILING_LABELS.sub("", candidate).strip()


def match_name(text: str) -> str | None:
    """First label-based match that looks like a full name, or None."""
    prefix = text[:NAME_SCAN_CHARS]
    for pattern in NAME_PATTERNS:
        match = pattern.search(prefix)
        if match is None:
            continue
        candidate = clean_candidate(match.group(1))
        if looks_like_full_name(candidate):
            return candidate
    return None


class PatientIdentifier:
    """Finds the patient name: regex first, then AI, then an optional OCR pass.

    identify() never raises; every failure degrades to DEFAULT_PATIENT_NAME.
    """

    def __init__(
        self,
        completion: TextCompletion,
        *,
        max_tokens: int = 100,
        temperature: float = 0.1,
        timeout_seconds: int = 30,
    ) -> None:
        self._completion = completion
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout_seconds = timeout_seconds
        self._system_prompt = load_prompt("patient_name_system.txt")
        self._user_template = load_prompt("patient_name_user.txt")

    async def identify(
        self,
        pages: Sequence[Page],
        ocr_pages: OcrPagesProvider | None = None,
    ) -> str:
        name = await self._from_pages(pages)
        if name is None and ocr_pages is not None:
            Log.info("Patient name not found in text, trying OCR")
            try:
                name = await self._from_pages(await ocr_pages())
            except (OcrError, PdfError, asyncio.TimeoutError) as exc:
                Log.warning(f"OCR name lookup failed: {exc!r}")
        if name is None:
            Log.info("Patient name not identified")
            return DEFAULT_PATIENT_NAME
        return name

    async def _from_pages(self, pages: Sequence[Page]) -> str | None:
        text = pages[0].text if pages else ""
        if not text.strip():
            return None
        name = match_name(text)
        if name is not None:
            Log.info("Patient name found by pattern")
            return name
        return await self._ask_ai(text[:NAME_SCAN_CHARS])

    async def _ask_ai(self, text: str) -> str | None:
        prompt = self._user_template.format(text=text)
        try:
            answer = await asyncio.wait_for(
                asyncio.to_thread(
                    self._completion.complete,
                    self._system_prompt,
                    prompt,
                    self._max_tokens,
                    self._temperature,
                ),
                timeout=self._timeout_seconds,
            )
        except (AiClientError, asyncio.TimeoutError) as exc:
            Log.warning(f"AI name lookup failed: {exc!r}")
            return None

        answer = answer.strip().strip('"').strip()
        if answer == NOT_FOUND_SENTINEL or not looks_like_full_name(answer):
            return None
        Log.info("Patient name found by AI")
        return answer
