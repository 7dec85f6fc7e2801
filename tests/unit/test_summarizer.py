import asyncio
import time
from unittest.mock import MagicMock

from labreport.ai.client_base import BaseAiClient
from labreport.ai.completion import TextCompletion
from labreport.ai.exceptions import AiNetworkError
from labreport.recovery.models import Page, UnrecoverablePage
from labreport.summary.summarizer import ResultSummarizer


class _ScriptedClient(BaseAiClient):
    """Answers each chunk with a response chosen by a marker in the chunk text."""

    def __init__(self, answers: dict[str, str], delays: dict[str, float] | None = None) -> None:
        self.answers = answers
        self.delays = delays or {}
        self.chunks: list[str] = []

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
    ) -> str:
        chunk = user_prompt.split("Text to analyze:", 1)[-1].strip()
        self.chunks.append(chunk)
        for marker, answer in self.answers.items():
            if marker in chunk:
                time.sleep(self.delays.get(marker, 0))
                return answer
        return "NOT_FOUND"


def _summarizer(client: BaseAiClient, **kwargs: int) -> ResultSummarizer:
    return ResultSummarizer(TextCompletion(client=client, model="m"), **kwargs)


class TestResultSummarizer:
    def test_merges_across_pages_in_order(self) -> None:
        client = _ScriptedClient(
            {
                "page-one": "Glicose: 95 | VR: 70 - 99\nUreia: 30 | VR: 10 - 50",
                "page-two": "Glicemia: 96 | VR: 70 - 99\nAST: 32 | VR: 5 - 40",
            }
        )
        pages = [Page(1, "page-one text"), Page(2, "page-two text")]

        summary = asyncio.run(_summarizer(client).summarize(pages, "JOAO DA SILVA"))

        assert summary.patient_name == "JOAO DA SILVA"
        assert summary.ordered_result_lines == [
            "Glicose: 95 | VR: 70 - 99",
            "Ureia: 30 | VR: 10 - 50",
            "AST: 32 | VR: 5 - 40",
        ]

    def test_order_follows_pages_not_completion_time(self) -> None:
        client = _ScriptedClient(
            {"slow": "TGO: 10 | VR: 5 - 40", "fast": "AST: 20 | VR: 5 - 40"},
            delays={"slow": 0.2},
        )
        pages = [Page(1, "slow page"), Page(2, "fast page")]
        summary = asyncio.run(_summarizer(client, max_concurrency=2).summarize(pages, "X Y"))
        assert summary.ordered_result_lines == ["TGO: 10 | VR: 5 - 40"]

    def test_long_page_is_chunked(self) -> None:
        client = _ScriptedClient({})
        asyncio.run(_summarizer(client, chunk_chars=10).summarize([Page(1, "a" * 25)], "X Y"))
        assert sorted(len(chunk) for chunk in client.chunks) == [5, 10, 10]

    def test_skips_unrecoverable_and_blank_pages(self) -> None:
        client = _ScriptedClient({})
        pages = [
            Page(1, "real text"),
            UnrecoverablePage(identifier=2, original_index=1),
            Page(3, "   "),
        ]
        asyncio.run(_summarizer(client).summarize(pages, "X Y"))
        assert client.chunks == ["real text"]

    def test_failed_chunk_contributes_nothing(self) -> None:
        client = MagicMock(spec=BaseAiClient)
        client.create_chat_completion.side_effect = [
            AiNetworkError("down"),
            "Ureia: 30 | VR: 10 - 50",
        ]
        pages = [Page(1, "first"), Page(2, "second")]
        summary = asyncio.run(_summarizer(client, max_concurrency=1).summarize(pages, "X Y"))
        assert summary.ordered_result_lines == ["Ureia: 30 | VR: 10 - 50"]

    def test_not_found_answer_yields_no_lines(self) -> None:
        summary = asyncio.run(_summarizer(_ScriptedClient({})).summarize([Page(1, "x")], "X Y"))
        assert summary.ordered_result_lines == []
        assert summary.content == "Paciente: X Y"

    def test_passes_token_limit(self) -> None:
        client = MagicMock(spec=BaseAiClient)
        client.create_chat_completion.return_value = ""
        asyncio.run(_summarizer(client, max_tokens=321).summarize([Page(1, "x")], "X Y"))
        assert client.create_chat_completion.call_args.kwargs["max_tokens"] == 321
