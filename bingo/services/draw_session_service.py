"""Accumulate drawn numbers for a player and score their cards.

State shape: ``{"drawn": [int, ...]}`` in parse order. A freshly started
session lives for 30 minutes; every accepted draw pushes the expiry to 60
minutes from now.
"""

from __future__ import annotations

import logging
import re
from datetime import timedelta

from bingo.repositories.bingo_card_repository import BingoCardRepository
from bingo.services.win_detector import evaluate, render_report
from bingo.state.store import StateStore
from bingo.utils.numbers import in_range, to_bingo_number

logger = logging.getLogger(__name__)


DEFAULT_START_TTL = timedelta(minutes=30)
DEFAULT_TTL = timedelta(minutes=60)

_NUMBER_RE = re.compile(r"\b[0-9]+\b")
_SEPARATOR_RE = re.compile(r"[\s,]+")

MSG_STARTED = (
    "Draw session started!\n\n"
    "Enter the drawn numbers separated by spaces or commas,\n"
    "e.g. 5 12 33 or 5,12,33"
)
MSG_ENTER_NUMBERS = "Enter the drawn numbers, separated by spaces or commas."
MSG_NONE_DRAWN = "No numbers have been drawn yet."
MSG_CANCELLED = "Draw session cancelled."
MSG_NO_SESSION = "There is no draw session in progress."
MSG_NO_CARDS = "You have no bingo cards yet. Build a card first, then start drawing."
MSG_BAD_FORMAT = "Invalid format! Enter numbers separated by spaces or commas, e.g. 5 12 33"
MSG_OUT_OF_RANGE = "Drawn numbers must be between 1 and 75. Please try again."


def draw_state_key(owner_id: str) -> str:
    return f"bingo_draw_{owner_id}"


def parse_draw_numbers(text: str) -> list[int] | None:
    """Extract integers separated by spaces and/or commas.

    Returns None when anything other than numbers and separators is present.
    """

    normalized = _SEPARATOR_RE.sub(" ", (text or "").strip()).strip()
    tokens = _NUMBER_RE.findall(normalized)
    if not tokens or " ".join(tokens) != normalized:
        return None
    return [to_bingo_number(token) for token in tokens]


class DrawSessionService:
    """Drawn-number bookkeeping for one owner at a time."""

    def __init__(
        self,
        store: StateStore,
        repository: BingoCardRepository,
        start_ttl: timedelta = DEFAULT_START_TTL,
        ttl: timedelta = DEFAULT_TTL,
    ) -> None:
        self._store = store
        self._repo = repository
        self._start_ttl = start_ttl
        self._ttl = ttl

    def start(self, owner_id: str) -> str:
        key = draw_state_key(owner_id)
        with self._store.locked(key):
            if self._store.exists(key):
                return MSG_ENTER_NUMBERS
            self._store.put(key, {"drawn": []}, self._start_ttl)
        return MSG_STARTED

    def list_drawn(self, owner_id: str) -> str:
        drawn = self._store.get(draw_state_key(owner_id), {}).get("drawn") or []
        if not drawn:
            return MSG_NONE_DRAWN

        ordered = sorted(int(n) for n in drawn)
        noun = "number" if len(ordered) == 1 else "numbers"
        return f"{len(ordered)} {noun} drawn:\n" + " ".join(str(n) for n in ordered)

    def cancel(self, owner_id: str) -> str:
        key = draw_state_key(owner_id)
        with self._store.locked(key):
            if not self._store.exists(key):
                return MSG_NO_SESSION
            self._store.delete(key)
        return MSG_CANCELLED

    def submit(self, owner_id: str, text: str) -> str:
        key = draw_state_key(owner_id)
        with self._store.locked(key):
            if self._repo.count_cards(owner_id) == 0:
                return MSG_NO_CARDS

            numbers = parse_draw_numbers(text)
            if numbers is None:
                logger.debug("Draw input rejected for %s: %r", owner_id, text)
                return MSG_BAD_FORMAT

            if not all(in_range(n) for n in numbers):
                return MSG_OUT_OF_RANGE

            state = self._store.get(key, {"drawn": []})
            drawn: list[int] = [int(n) for n in state.get("drawn") or []]

            already = [n for n in dict.fromkeys(numbers) if n in drawn]
            if already:
                listed = ", ".join(str(n) for n in already)
                return f"Number(s) {listed} have already been drawn."

            drawn.extend(dict.fromkeys(numbers))
            self._store.put(key, {"drawn": drawn}, self._ttl)

            cards = self._repo.list_cards(owner_id)

        return render_report(evaluate(cards, drawn))
