"""Repository layer for saved bingo cards."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bingo.models.bingo_card import BingoCard

Grid = list[list[int]]


@dataclass(frozen=True)
class BingoCardRecord:
    id: int
    grid: Grid


def _to_record(card: BingoCard) -> BingoCardRecord:
    return BingoCardRecord(id=int(card.id), grid=[[int(n) for n in row] for row in card.numbers])


class BingoCardRepository:
    """CRUD operations for BingoCard, scoped to one SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def count_cards(self, owner_id: str) -> int:
        stmt = select(func.count()).select_from(BingoCard).where(BingoCard.owner_id == owner_id)
        return int(self._session.scalar(stmt) or 0)

    def create_card(self, owner_id: str, grid: Sequence[Sequence[int]]) -> int:
        card = BingoCard(owner_id=owner_id, numbers=[[int(n) for n in row] for row in grid])
        self._session.add(card)
        self._commit()
        return int(card.id)

    def list_cards(self, owner_id: str) -> list[BingoCardRecord]:
        stmt = select(BingoCard).where(BingoCard.owner_id == owner_id).order_by(BingoCard.id.asc())
        return [_to_record(card) for card in self._session.scalars(stmt).all()]

    def get_card(self, owner_id: str, card_id: int) -> BingoCardRecord | None:
        stmt = select(BingoCard).where(BingoCard.owner_id == owner_id, BingoCard.id == card_id)
        card = self._session.scalars(stmt).first()
        if card is None:
            return None
        return _to_record(card)

    def delete_card(self, record: BingoCardRecord) -> None:
        card = self._session.get(BingoCard, record.id)
        if card is None:
            return
        self._session.delete(card)
        self._commit()

    def _commit(self) -> None:
        # Durable before returning: callers reply "saved" right after.
        try:
            self._session.commit()
        except SQLAlchemyError:
            self._session.rollback()
            raise
