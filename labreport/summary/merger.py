from collections.abc import Iterable

from labreport.summary.models import ExamResult


class ResultMerger:
    """Order-preserving, first-occurrence-wins accumulator keyed on canonical_key.

    One instance spans every page and chunk of a single document.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()
        self._lines: list[str] = []

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def add(self, result: ExamResult) -> bool:
        """Keep result unless its key was already seen. Returns whether it was kept."""
        if result.canonical_key in self._seen:
            return False
        self._seen.add(result.canonical_key)
        self._lines.append(result.line)
        return True

    def extend(self, results: Iterable[ExamResult]) -> None:
        for result in results:
            self.add(result)


def merge(results: Iterable[ExamResult]) -> list[str]:
    merger = ResultMerger()
    merger.extend(results)
    return merger.lines
