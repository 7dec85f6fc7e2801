import asyncio
from collections.abc import Sequence

from labreport.ai.completion import TextCompletion
from labreport.ai.exceptions import AiClientError
from labreport.ai.prompt_loader import load_prompt
from labreport.logging.logger import Log
from labreport.recovery.models import Page
from labreport.summary.chunker import split_into_chunks
from labreport.summary.merger import ResultMerger
from labreport.summary.models import Summary
from labreport.summary.parser import parse_lines


class ResultSummarizer:
    """Turns page text into a de-duplicated list of exam result lines.

    Chunks are extracted concurrently but merged strictly in page-then-chunk
    order. A chunk whose extraction fails contributes no lines.
    """

    def __init__(
        self,
        completion: TextCompletion,
        *,
        chunk_chars: int = 12000,
        max_tokens: int = 1000,
        temperature: float = 0.1,
        timeout_seconds: int = 30,
        max_concurrency: int = 4,
    ) -> None:
        self._completion = completion
        self._chunk_chars = chunk_chars
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._timeout_seconds = timeout_seconds
        self._max_concurrency = max(1, max_concurrency)
        self._system_prompt = load_prompt("results_system.txt")
        self._user_template = load_prompt("results_user.txt")

    async def summarize(self, pages: Sequence[Page], patient_name: str) -> Summary:
        chunks = [
            chunk
            for page in pages
            if not page.is_unrecoverable
            for chunk in split_into_chunks(page.text, self._chunk_chars)
            if chunk.strip()
        ]
        Log.info(f"Summarizing {len(pages)} page(s) in {len(chunks)} chunk(s)")

        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run_chunk(index: int, chunk: str) -> str:
            async with semaphore:
                return await self._extract_chunk(index, chunk)

        responses = await asyncio.gather(
            *(run_chunk(index, chunk) for index, chunk in enumerate(chunks, start=1))
        )

        merger = ResultMerger()
        for response in responses:
            merger.extend(parse_lines(response))
        Log.info(f"Summary has {len(merger.lines)} unique result line(s)")
        return Summary(patient_name=patient_name, ordered_result_lines=merger.lines)

    async def _extract_chunk(self, index: int, chunk: str) -> str:
        prompt = self._user_template.format(chunk=chunk)
        try:
            return await asyncio.wait_for(
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
            Log.warning(f"Result extraction failed for chunk {index}: {exc!r}")
            return ""
