"""Row-by-row bingo card entry.

A player types one row per message. Rows collect under a temporary state
key until all five are in, then wait for a confirm (saved to the card
repository) or a cancel (discarded).

State shape: ``{"current": [row, ...], "completed": [row, ...]}``. The
third row is entered as 4 numbers and stored with the free space (0)
spliced into the middle.
"""

from __future__ import annotations

import logging
import re
from datetime import timedelta

from bingo.repositories.bingo_card_repository import BingoCardRepository
from bingo.state.store import StateStore
from bingo.utils.numbers import in_range, to_bingo_number

logger = logging.getLogger(__name__)

ROWS_PER_CARD = 5
FREE_ROW_INDEX = 2
FREE_SPACE = 0

DEFAULT_TTL = timedelta(minutes=10)

_ROW_RE = re.compile(r"^[0-9]+(?:\s+[0-9]+)*$")

MSG_FIRST_ROW = (
    "Enter the first row of your bingo card, separated by spaces, e.g. 1 2 3 4 5\n\n"
    "1. Numbers must be between 1 and 75\n"
    "2. Numbers must not repeat"
)
MSG_RESUME_OR_CANCEL = (
    "You have an unfinished bingo card:\n\n"
    "Reply \"continue\" to finish it\n"
    "Reply \"cancel\" to discard it"
)
MSG_CANCELLED = "Bingo card entry cancelled."
MSG_NOTHING_TO_RESUME = "There is no unfinished bingo card. Send \"new card\" to start one."
MSG_CARD_FILLED = (
    "All numbers for this bingo card are filled in!\n\n"
    "1. Reply \"confirm\" to save the card\n"
    "2. Reply \"cancel\" to discard it"
)
MSG_BAD_FORMAT = "Please enter valid numbers separated by spaces, e.g. 1 2 3 4 5"
MSG_OUT_OF_RANGE = "Numbers must be between 1 and 75, separated by spaces. Please try again."
MSG_REPEATED_IN_ROW = "Numbers in a row must not repeat. Please try again."
MSG_FREE_ROW_COUNT = "Row 3 takes 4 numbers separated by spaces, e.g. 1 2 3 4"
MSG_ROW_COUNT = "Please enter 5 numbers separated by spaces, e.g. 1 2 3 4 5"
MSG_NOTHING_TO_SAVE = "There is no bingo card to save. Send \"new card\" to start one."


def card_state_key(owner_id: str) -> str:
    return f"bingo_card_temp_{owner_id}"


def _empty_state() -> dict[str, list[list[int]]]:
    return {"current": [], "completed": []}


def _next_row_prompt(row_count: int) -> str:
    next_row = row_count + 1
    if row_count == FREE_ROW_INDEX:
        return f"Enter row {next_row}: 4 numbers separated by spaces (the centre is a free space)"
    return f"Enter row {next_row}, numbers separated by spaces"


class CardBuilderService:
    """Card entry state machine for one owner at a time."""

    def __init__(
        self,
        store: StateStore,
        repository: BingoCardRepository,
        ttl: timedelta = DEFAULT_TTL,
    ) -> None:
        self._store = store
        self._repo = repository
        self._ttl = ttl

    def begin(self, owner_id: str) -> str:
        key = card_state_key(owner_id)
        with self._store.locked(key):
            state = self._store.get(key, {})
            if state.get("current"):
                return MSG_RESUME_OR_CANCEL

            self._store.put(key, _empty_state(), self._ttl)
        return MSG_FIRST_ROW

    def cancel(self, owner_id: str) -> str:
        key = card_state_key(owner_id)
        with self._store.locked(key):
            self._store.delete(key)
        return MSG_CANCELLED

    def resume_prompt(self, owner_id: str) -> str:
        state = self._store.get(card_state_key(owner_id), {})
        current = state.get("current") or []
        if not current:
            return MSG_NOTHING_TO_RESUME

        lines = ["Numbers entered so far:"]
        for index, row in enumerate(current, start=1):
            lines.append(f"Row {index}: " + " ".join(str(n) for n in row))

        return "\n".join(lines) + "\n\n" + _next_row_prompt(len(current))

    def submit_row(self, owner_id: str, text: str) -> str:
        key = card_state_key(owner_id)
        with self._store.locked(key):
            state = self._store.get(key, _empty_state())
            current: list[list[int]] = state.get("current") or []

            if state.get("completed"):
                return MSG_CARD_FILLED

            rejection, numbers = self._parse_row(text, current)
            if rejection is not None:
                logger.debug("Row rejected for %s: %s", owner_id, rejection)
                return rejection

            if len(current) == FREE_ROW_INDEX:
                numbers.insert(FREE_ROW_INDEX, FREE_SPACE)

            current.append([int(n) for n in numbers])

            if len(current) < ROWS_PER_CARD:
                self._store.put(key, {"current": current, "completed": []}, self._ttl)
                return _next_row_prompt(len(current))

            self._store.put(key, {"current": [], "completed": current}, self._ttl)
        return MSG_CARD_FILLED

    @staticmethod
    def _parse_row(text: str, current: list[list[int]]) -> tuple[str | None, list[int]]:
        cleaned = (text or "").strip()
        if not _ROW_RE.match(cleaned):
            return MSG_BAD_FORMAT, []

        numbers = [to_bingo_number(token) for token in cleaned.split()]

        if not all(in_range(n) for n in numbers):
            return MSG_OUT_OF_RANGE, []

        if len(numbers) != len(set(numbers)):
            return MSG_REPEATED_IN_ROW, []

        used = {n for row in current for n in row}
        repeated = [n for n in numbers if n in used]
        if repeated:
            listed = ", ".join(str(n) for n in repeated)
            return f"Number(s) {listed} already used on this card. Please enter different numbers.", []

        if len(current) == FREE_ROW_INDEX:
            if len(numbers) != ROWS_PER_CARD - 1:
                return MSG_FREE_ROW_COUNT, []
        elif len(numbers) != ROWS_PER_CARD:
            return MSG_ROW_COUNT, []

        return None, numbers

    def confirm(self, owner_id: str) -> str | None:
        """Save a completed card.

        Returns None when the repository call fails: the failure is logged
        and the player gets no reply.
        """

        key = card_state_key(owner_id)
        with self._store.locked(key):
            state = self._store.get(key, {})
            completed = state.get("completed") or []
            if not completed:
                return MSG_NOTHING_TO_SAVE

            try:
                card_id = self._repo.create_card(owner_id, completed)
            except Exception:
                logger.exception("Failed to save bingo card for %s", owner_id)
                return None

            self._store.delete(key)

        logger.info("Saved bingo card %s for %s", card_id, owner_id)
        return f"Bingo card #{card_id} saved!"
