"""Kinds of expiry alerts sent for monitored domains."""

from __future__ import annotations

from enum import IntEnum

_LABELS = {
    0: "2 month alert",
    1: "1 month alert",
    2: "2 week alert",
    3: "1 week alert",
    4: "3 day alert",
    5: "daily alert",
}


class Alert(IntEnum):
    """An expiry alert threshold."""

    TWO_MONTHS = 0
    ONE_MONTH = 1
    TWO_WEEKS = 2
    ONE_WEEK = 3
    THREE_DAYS = 4
    DAILY = 5

    def __str__(self) -> str:
        return _LABELS[int(self)]