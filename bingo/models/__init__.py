"""ORM models."""

from bingo.models.bingo_card import BingoCard

__all__ = ["BingoCard"]
