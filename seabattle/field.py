"""A single battleship board: drawable cells, ship layout and placement rules."""

from __future__ import annotations

import logging
import math
from enum import IntEnum
from typing import Iterable, MutableSequence, Sequence

from .constants import (
    FIELD_HEIGHT_DEFAULT,
    FIELD_WIDTH_DEFAULT,
    SHIP_COUNTS,
    SHIP_MAXLEN,
)

log = logging.getLogger(__name__)


class CellDraw(IntEnum):
    """How a cell is shown to the player."""

    EMPTY = 0
    LIVE = 1
    DOT = 2
    DAMAGED = 3
    KILLED = 4
    MARK = 5


class CellState(IntEnum):
    """Internal role of a cell within the ship layout."""

    EMPTY = 0
    CENTER = 1
    TOP = 2
    BOTTOM = 3
    VMIDDLE = 4
    HMIDDLE = 5
    LEFT = 6
    RIGHT = 7
    UNDEFINED = 8


class Owner(IntEnum):
    """Whose board a field is."""

    MY_FIELD = 0
    ENEMY_FIELD = 1


_GENERATED_EXAMPLE = (
    "8888088800"
    "0000000000"
    "8880880880"
    "0000000000"
    "8808080808"
    "0000000000"
    "0000000000"
    "0000000000"
    "0000000000"
    "0000000000"
)


def _parse_cells(text: str, kind: type[IntEnum]) -> list | None:
    """Turn a string of digits into enum members, or None if any digit is out of range."""
    low, high = min(kind), max(kind)
    cells = []
    for ch in text:
        value = int(ch) if ch.isdecimal() else -1
        if value < low or value > high:
            return None
        cells.append(kind(value))
    return cells


def field_draw_from_str(text: str) -> list[CellDraw]:
    """Parse a drawable board string; an empty list if it is too short or malformed."""
    if len(text) < FIELD_WIDTH_DEFAULT * FIELD_HEIGHT_DEFAULT:
        log.debug("Wrong field draw string size: %d", len(text))
        return []
    cells = _parse_cells(text, CellDraw)
    if cells is None:
        log.debug("Wrong field draw string: %r", text)
        return []
    return cells


def format_field(cells: Sequence[int]) -> str:
    """Render a square board as rows of space-separated cell values."""
    width = math.isqrt(len(cells))
    rows = (cells[row * width:(row + 1) * width] for row in range(width))
    return "\n".join(" ".join(str(int(c)) for c in row) for row in rows)


class Field:
    """A board holding both the drawable view and the internal ship layout."""

    def __init__(self, field: str | Iterable[int] | None = None):
        self._width = FIELD_WIDTH_DEFAULT
        self._height = FIELD_HEIGHT_DEFAULT
        self._area = self._width * self._height
        self._state: list[CellState] = []
        self._draw: list[CellDraw] = []
        self.clear()
        if field is not None:
            self.set_state_field(field)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def area(self) -> int:
        return self._area

    def _inside(self, x: int, y: int) -> bool:
        return 0 <= x < self._width and 0 <= y < self._height

    def get_cell(self, x: int, y: int) -> CellDraw:
        """Drawable state of a cell; EMPTY for coordinates off the board."""
        if self._inside(x, y):
            return self._draw[self._width * y + x]
        log.debug("Wrong cell indexes (%d, %d)", x, y)
        return CellDraw.EMPTY

    def set_draw_cell(self, x: int, y: int, cell: int) -> None:
        """Set the drawable state of a cell; coordinates off the board are ignored."""
        if self._inside(x, y):
            self._draw[self._width * y + x] = CellDraw(cell)
        else:
            log.debug("No such cell (%d, %d)", x, y)

    def set_state_cell(self, x: int, y: int, cell: int) -> None:
        """Set the internal state of a cell; coordinates off the board are ignored."""
        if self._inside(x, y):
            self._state[self._width * y + x] = CellState(cell)
        else:
            log.debug("No such cell (%d, %d)", x, y)

    def state_field_str(self) -> str:
        return "".join(str(int(c)) for c in self._state)

    def draw_field_str(self) -> str:
        return "".join(str(int(c)) for c in self._draw)

    def draw_field(self) -> list[CellDraw]:
        return list(self._draw)

    def set_state_field(self, field: str | Iterable[int]) -> None:
        """Replace the ship layout.

        A string is parsed digit by digit; a malformed string leaves the layout
        empty. Any other sequence is taken only if it covers the whole board.
        """
        if isinstance(field, str):
            cells = _parse_cells(field, CellState)
            if cells is None:
                log.debug("Wrong state field string: %r", field)
                self._state = []
                return
            self._state = cells
            return
        cells = list(field)
        if len(cells) != self._area:
            return
        self._state = [CellState(c) for c in cells]

    def set_draw_field(self, field: str | Iterable[int]) -> None:
        """Replace the drawable view; input not covering the whole board is ignored.

        A string with an out-of-range digit leaves the view empty.
        """
        if isinstance(field, str):
            if len(field) != self._area:
                return
            cells = _parse_cells(field, CellDraw)
            if cells is None:
                log.debug("Wrong draw field string: %r", field)
                self._draw = []
                return
            self._draw = cells
            return
        cells = list(field)
        if len(cells) != self._area:
            return
        self._draw = [CellDraw(c) for c in cells]

    def init_my_draw_field(self) -> None:
        """Derive the drawable view from the layout: every ship cell is shown live."""
        self._draw = [
            CellDraw.EMPTY if cell == CellState.EMPTY else CellDraw.LIVE
            for cell in self._state[: self._area]
        ]

    def clear(self) -> None:
        self._draw = [CellDraw.EMPTY] * self._area
        self._state = [CellState.EMPTY] * self._area

    def generate(self) -> None:
        """Fill the board with a fixed valid placement."""
        self.set_state_field(_GENERATED_EXAMPLE)
        self.init_my_draw_field()
        log.debug("Generated field (state): %s", self.state_field_str())

    def _bordered_size(self) -> int:
        return (self._width + 2) * (self._height + 2)

    def _with_borders(self) -> list[CellState]:
        stride = self._width + 2
        bordered = [CellState.EMPTY] * self._bordered_size()
        for i in range(self._height):
            row = self._state[self._width * i:self._width * (i + 1)]
            start = stride * (i + 1) + 1
            bordered[start:start + self._width] = row
        return bordered

    def check_diagonal_collisions(self, bordered: Sequence[int]) -> bool:
        """False if two ship cells touch by a corner."""
        if len(bordered) != self._bordered_size():
            log.debug("Wrong size of the bordered field: %d", len(bordered))
            return False
        stride = self._width + 2
        for i in range(self._height):
            for j in range(self._width):
                index = stride * (i + 1) + (j + 1)
                if bordered[index] == CellState.EMPTY:
                    continue
                corners = (
                    index - stride - 1,
                    index - stride + 1,
                    index + stride + 1,
                    index + stride - 1,
                )
                if any(bordered[c] != CellState.EMPTY for c in corners):
                    return False
        return True

    def check_length(self, bordered: MutableSequence[int]) -> bool:
        """Classify undefined ship cells in place; False if a ship is too long."""
        if len(bordered) != self._bordered_size():
            log.debug("Wrong size of the bordered field: %d", len(bordered))
            return False
        stride = self._width + 2
        for i in range(self._height):
            for j in range(self._width):
                index = stride * (i + 1) + (j + 1)
                if bordered[index] != CellState.UNDEFINED:
                    continue
                if bordered[index + 1] != CellState.EMPTY:
                    delta, first, middle, last = 1, CellState.LEFT, CellState.HMIDDLE, CellState.RIGHT
                elif bordered[index + stride] != CellState.EMPTY:
                    delta, first, middle, last = stride, CellState.TOP, CellState.VMIDDLE, CellState.BOTTOM
                else:
                    bordered[index] = CellState.CENTER
                    continue
                bordered[index] = first
                length = 2
                index += delta
                while bordered[index + delta] != CellState.EMPTY:
                    bordered[index] = middle
                    index += delta
                    length += 1
                bordered[index] = last
                if length > SHIP_MAXLEN:
                    return False
        log.debug("Classified field:\n%s", format_field(bordered))
        return True

    def _is_ship(self, size: int, x: int, y: int, bordered: Sequence[int]) -> bool:
        if size < 0 or size > SHIP_MAXLEN:
            return False
        stride = self._width + 2
        index = stride * y + x
        head = bordered[index]
        length = 0
        if head in (CellState.TOP, CellState.LEFT):
            delta = stride if head == CellState.TOP else 1
            index += delta
            length = 1
            while bordered[index] != CellState.EMPTY:
                length += 1
                index += delta
        elif head == CellState.CENTER:
            length = 1
        return length == size

    def _ship_count(self, size: int, bordered: Sequence[int]) -> int:
        if len(bordered) != self._bordered_size():
            return 0
        return sum(
            self._is_ship(size, x, y, bordered)
            for y in range(self._width + 2)
            for x in range(self._height + 2)
        )

    def is_correct(self) -> bool:
        """Whether the layout is a legal fleet: no corner contact, no long ships, right counts."""
        if len(self._state) != self._area:
            log.debug("Layout has %d cells instead of %d", len(self._state), self._area)
            return False
        bordered = self._with_borders()
        if not self.check_diagonal_collisions(bordered):
            return False
        if not self.check_length(bordered):
            return False
        return all(
            self._ship_count(size, bordered) == count
            for size, count in SHIP_COUNTS.items()
        )