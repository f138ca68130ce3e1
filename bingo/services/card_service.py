"""Saved card listing and deletion."""

from __future__ import annotations

import logging

from bingo.repositories.bingo_card_repository import BingoCardRepository

logger = logging.getLogger(__name__)

MSG_NO_CARDS = "You have not saved any bingo cards yet."


class CardService:
    """Saved-card use-cases."""

    def __init__(self, repository: BingoCardRepository) -> None:
        self._repo = repository

    def list_cards(self, owner_id: str) -> str:
        cards = self._repo.list_cards(owner_id)
        if not cards:
            return MSG_NO_CARDS

        parts = [f"You have {len(cards)} bingo card(s):"]
        for card in cards:
            rows = "\n".join(" ".join(f"{n:>2}" for n in row) for row in card.grid)
            parts.append(f"Card #{card.id}\n{rows}")
        parts.append("To delete a card, send its card number, e.g. delete 1")

        return "\n\n".join(parts)

    def delete_card(self, owner_id: str, card_id: int) -> str:
        card = self._repo.get_card(owner_id, card_id)
        if card is None:
            return f"Bingo card #{card_id} was not found."

        self._repo.delete_card(card)
        logger.info("Deleted bingo card %s for %s", card_id, owner_id)
        return f"Bingo card #{card_id} deleted."
