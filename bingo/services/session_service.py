"""Per-message entry point for the bingo bot.

The transport layer classifies each incoming message into a ``Command``
and hands it here with the owner id and the trimmed text. The reply is a
string, or None when nothing should be sent back.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import timedelta
from enum import Enum
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from bingo.errors import ServiceUnavailableError, ValidationError
from bingo.repositories.bingo_card_repository import BingoCardRepository
from bingo.services import card_builder_service, draw_session_service
from bingo.services.card_builder_service import CardBuilderService
from bingo.services.card_service import CardService
from bingo.services.draw_session_service import DrawSessionService
from bingo.state.store import StateStore

logger = logging.getLogger(__name__)


class Command(str, Enum):
    NEW_CARD = "new_card"
    CARD_ROW = "card_row"
    CANCEL_CARD = "cancel_card"
    CONTINUE_CARD = "continue_card"
    CONFIRM_CARD = "confirm_card"
    LIST_CARDS = "list_cards"
    DELETE_CARD = "delete_card"
    START_DRAW = "start_draw"
    DRAW_NUMBERS = "draw_numbers"
    LIST_DRAWS = "list_draws"
    CANCEL_DRAW = "cancel_draw"


class SessionService:
    """Wires the card builder, draw session and card catalog together."""

    def __init__(
        self,
        store: StateStore,
        repository: BingoCardRepository,
        *,
        builder_ttl: timedelta = card_builder_service.DEFAULT_TTL,
        draw_start_ttl: timedelta = draw_session_service.DEFAULT_START_TTL,
        draw_ttl: timedelta = draw_session_service.DEFAULT_TTL,
    ) -> None:
        self._builder = CardBuilderService(store, repository, ttl=builder_ttl)
        self._draws = DrawSessionService(store, repository, start_ttl=draw_start_ttl, ttl=draw_ttl)
        self._cards = CardService(repository)

    @classmethod
    def from_config(
        cls,
        store: StateStore,
        repository: BingoCardRepository,
        config: Mapping[str, Any],
    ) -> SessionService:
        return cls(
            store,
            repository,
            builder_ttl=timedelta(minutes=int(config.get("CARD_BUILDER_TTL_MINUTES", 10))),
            draw_start_ttl=timedelta(minutes=int(config.get("DRAW_START_TTL_MINUTES", 30))),
            draw_ttl=timedelta(minutes=int(config.get("DRAW_TTL_MINUTES", 60))),
        )

    # Card building

    def begin_card(self, owner_id: str) -> str:
        return self._builder.begin(owner_id)

    def submit_card_row(self, owner_id: str, text: str) -> str:
        return self._builder.submit_row(owner_id, text)

    def cancel_card(self, owner_id: str) -> str:
        return self._builder.cancel(owner_id)

    def resume_card(self, owner_id: str) -> str:
        return self._builder.resume_prompt(owner_id)

    def confirm_card(self, owner_id: str) -> str | None:
        return self._builder.confirm(owner_id)

    # Saved cards

    def list_cards(self, owner_id: str) -> str:
        return self._cards.list_cards(owner_id)

    def delete_card(self, owner_id: str, card_id: int) -> str:
        return self._cards.delete_card(owner_id, card_id)

    # Drawing

    def start_draw(self, owner_id: str) -> str:
        return self._draws.start(owner_id)

    def submit_draw(self, owner_id: str, text: str) -> str:
        return self._draws.submit(owner_id, text)

    def list_draws(self, owner_id: str) -> str:
        return self._draws.list_drawn(owner_id)

    def cancel_draw(self, owner_id: str) -> str:
        return self._draws.cancel(owner_id)

    def handle(
        self,
        owner_id: str,
        command: Command,
        text: str = "",
        card_id: int | None = None,
    ) -> str | None:
        """Run one classified message and return the reply text."""

        if command is Command.DELETE_CARD and card_id is None:
            raise ValidationError(
                message="card_id is required",
                details={"card_id": ["Required for delete_card"]},
            )

        handlers: dict[Command, Callable[[], str | None]] = {
            Command.NEW_CARD: lambda: self.begin_card(owner_id),
            Command.CARD_ROW: lambda: self.submit_card_row(owner_id, text),
            Command.CANCEL_CARD: lambda: self.cancel_card(owner_id),
            Command.CONTINUE_CARD: lambda: self.resume_card(owner_id),
            Command.CONFIRM_CARD: lambda: self.confirm_card(owner_id),
            Command.LIST_CARDS: lambda: self.list_cards(owner_id),
            Command.DELETE_CARD: lambda: self.delete_card(owner_id, int(card_id)),  # type: ignore[arg-type]
            Command.START_DRAW: lambda: self.start_draw(owner_id),
            Command.DRAW_NUMBERS: lambda: self.submit_draw(owner_id, text),
            Command.LIST_DRAWS: lambda: self.list_draws(owner_id),
            Command.CANCEL_DRAW: lambda: self.cancel_draw(owner_id),
        }

        try:
            return handlers[command]()
        except SQLAlchemyError as exc:
            logger.exception("Card storage failed while handling %s for %s", command.value, owner_id)
            raise ServiceUnavailableError(message="Card storage is unavailable") from exc
