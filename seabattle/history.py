"""Records of finished games as the server reports them."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .constants import FIELD_WIDTH_DEFAULT

log = logging.getLogger(__name__)

HISTORY_PREFIX = "HISTORY:UPDATE:"
RECORD_SEPARATOR = "$$"
COLUMN_TITLES = (
    "игрок 1",
    "игрок 2",
    "поле 1",
    "поле 2",
    "время начала",
    "время окончания",
    "победитель",
)

_FIELD_COUNT = len(COLUMN_TITLES)


def wrap_field(field: str, width: int = FIELD_WIDTH_DEFAULT) -> str:
    """Break a board string into rows, each row preceded by a newline."""
    if width <= 0:
        raise ValueError("width must be positive")
    return "".join("\n" + field[start:start + width] for start in range(0, len(field), width))


@dataclass(frozen=True)
class GameRecord:
    """One finished game: both players, both boards, its times and the winner."""

    player1: str
    player2: str
    field1: str
    field2: str
    start_time: str
    end_time: str
    winner: str

    @property
    def row(self) -> tuple[str, ...]:
        """The record as a table row, boards wrapped into lines."""
        return (
            self.player1,
            self.player2,
            wrap_field(self.field1),
            wrap_field(self.field2),
            self.start_time,
            self.end_time,
            self.winner,
        )


def parse_game_record(text: str) -> GameRecord:
    """Parse 'login1:login2:field1:field2:start:end:winner'."""
    parts = text.split(":")
    if len(parts) < _FIELD_COUNT:
        raise ValueError(f"game record has {len(parts)} fields instead of {_FIELD_COUNT}: {text!r}")
    log.debug("game record: %s", parts)
    return GameRecord(*parts[:_FIELD_COUNT])


def parse_history(payload: str) -> list[GameRecord]:
    """Parse the records of a history update, with or without its prefix."""
    if payload.startswith(HISTORY_PREFIX):
        payload = payload[len(HISTORY_PREFIX):]
    return [
        parse_game_record(entry)
        for entry in payload.split(RECORD_SEPARATOR)
        if entry
    ]