"""Line counting for saved cards against the numbers drawn so far.

Everything here is pure: the same cards and drawn set always give the same
report.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass
from typing import Protocol

FREE_SPACE = 0
GRID_SIZE = 5


class ScoredCard(Protocol):
    @property
    def id(self) -> int: ...

    @property
    def grid(self) -> Sequence[Sequence[int]]: ...


@dataclass(frozen=True)
class CardResult:
    card_id: int
    lines: int
    matched: list[int]


@dataclass(frozen=True)
class WinReport:
    drawn: list[int]
    results: list[CardResult]


def _is_covered(number: int, drawn: Collection[int]) -> bool:
    return number == FREE_SPACE or number in drawn


def count_lines(grid: Sequence[Sequence[int]], drawn: Collection[int]) -> int:
    """Count fully covered rows, columns and both diagonals (at most 12)."""

    lines = 0
    for i in range(GRID_SIZE):
        if all(_is_covered(grid[i][j], drawn) for j in range(GRID_SIZE)):
            lines += 1
        if all(_is_covered(grid[j][i], drawn) for j in range(GRID_SIZE)):
            lines += 1

    if all(_is_covered(grid[i][i], drawn) for i in range(GRID_SIZE)):
        lines += 1
    if all(_is_covered(grid[i][GRID_SIZE - 1 - i], drawn) for i in range(GRID_SIZE)):
        lines += 1

    return lines


def matched_numbers(grid: Sequence[Sequence[int]], drawn: Iterable[int]) -> list[int]:
    """Drawn numbers present on the card, in ascending order."""

    matched: list[int] = []
    for number in sorted(set(drawn)):
        if number == FREE_SPACE:
            continue
        for row in grid:
            if number in row:
                matched.append(number)
                break
    return matched


def evaluate(cards: Iterable[ScoredCard], drawn: Iterable[int]) -> WinReport:
    drawn_set = {int(n) for n in drawn}
    results = [
        CardResult(
            card_id=card.id,
            lines=count_lines(card.grid, drawn_set),
            matched=matched_numbers(card.grid, drawn_set),
        )
        for card in cards
    ]
    return WinReport(drawn=sorted(drawn_set), results=results)


def render_report(report: WinReport) -> str:
    drawn_text = " ".join(str(n) for n in report.drawn) if report.drawn else "none"
    blocks = [f"Drawn numbers: {drawn_text}"]

    for result in report.results:
        matched_text = " ".join(str(n) for n in result.matched) if result.matched else "none"
        line_word = "line" if result.lines == 1 else "lines"
        blocks.append(
            f"Card #{result.card_id}: {result.lines} {line_word}\n"
            f"Matched: {matched_text}"
        )

    return "\n\n".join(blocks)
