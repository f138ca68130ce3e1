"""Bingo number bounds shared by row entry and draw entry."""

from __future__ import annotations

MIN_NUMBER = 1
MAX_NUMBER = 75

_MAX_DIGITS = len(str(MAX_NUMBER))


def to_bingo_number(token: str) -> int:
    """Convert a digit token, mapping anything too long to MAX_NUMBER + 1.

    Leading zeros are ignored; overlong tokens never reach ``int()``.
    """

    digits = token.lstrip("0") or "0"
    if len(digits) > _MAX_DIGITS:
        return MAX_NUMBER + 1
    return int(digits)


def in_range(number: int) -> bool:
    return MIN_NUMBER <= number <= MAX_NUMBER
