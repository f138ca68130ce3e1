"""Saved bingo card ORM model.

A card is stored as a JSON grid of 5 rows x 5 numbers; the centre cell
(row 3, column 3) holds 0 for the free space.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from bingo.models.base import Base


class BingoCard(Base):
    """A finalized bingo card owned by one player."""

    __tablename__ = "bingo_cards"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    numbers: Mapped[list[list[int]]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())
