"""Game state for one client: both boards, whose turn it is and who is playing."""

from __future__ import annotations

import logging
from enum import IntEnum
from typing import Iterable, Sequence

from .constants import FIELD_HEIGHT_DEFAULT, FIELD_WIDTH_DEFAULT
from .field import CellDraw, CellState, Field

log = logging.getLogger(__name__)


class ModelState(IntEnum):
    """Stage of the game as seen by this client."""

    GAME_NSTARTED = 0
    PLACING_SHIPS = 1
    WAITING_PLACING = 2
    WAITING_STEP = 3
    MAKING_STEP = 4
    GAME_FINISHED = 5


_CELL_SYMBOLS = {
    CellDraw.EMPTY: ".",
    CellDraw.LIVE: "O",
    CellDraw.DAMAGED: "X",
    CellDraw.KILLED: "#",
    CellDraw.DOT: "*",
}

# Results of shots that the server may reveal on the enemy board.
_REVEALED = frozenset({CellDraw.DAMAGED, CellDraw.DOT, CellDraw.KILLED})


def _board_text(field: Field) -> str:
    """Text picture of a board, one line per column, as the game logs it."""
    lines = (
        "".join(
            _CELL_SYMBOLS.get(field.get_cell(x, y), "?")
            for y in range(FIELD_HEIGHT_DEFAULT)
        )
        for x in range(FIELD_WIDTH_DEFAULT)
    )
    return "".join(line + "\n" for line in lines)


class Model:
    """Holds the player's and the enemy's boards and the game's progress."""

    def __init__(self):
        self.state = ModelState.GAME_NSTARTED
        self.my_field = Field()
        self.enemy_field = Field()
        self.game_id = -1
        self.login = ""
        self.enemy_login = ""
        self.started = False

    def update_state(self, state: ModelState) -> None:
        state = ModelState(state)
        log.debug("state updated to %s", state.name)
        self.state = state

    def my_cell(self, x: int, y: int) -> CellDraw:
        return self.my_field.get_cell(x, y)

    def enemy_cell(self, x: int, y: int) -> CellDraw:
        return self.enemy_field.get_cell(x, y)

    def set_my_draw_cell(self, x: int, y: int, cell: int) -> None:
        self.my_field.set_draw_cell(x, y, cell)

    def set_my_state_cell(self, x: int, y: int, cell: int) -> None:
        self.my_field.set_state_cell(x, y, cell)

    def set_enemy_cell(self, x: int, y: int, cell: int) -> None:
        self.enemy_field.set_draw_cell(x, y, cell)

    def set_enemy_state_cell(self, x: int, y: int, cell: int) -> None:
        self.enemy_field.set_state_cell(x, y, cell)

    def set_my_field(self, field: str | Iterable[int]) -> None:
        """Replace the player's board.

        A sequence made of CellDraw values replaces the drawable view; a string
        or any other sequence replaces the ship layout.
        """
        if isinstance(field, str):
            self.my_field.set_state_field(field)
            return
        cells = list(field)
        if cells and all(isinstance(c, CellDraw) for c in cells):
            self.my_field.set_draw_field(cells)
        else:
            self.my_field.set_state_field(cells)

    def init_my_draw_field(self) -> None:
        self.my_field.init_my_draw_field()

    def clear_my_field(self) -> None:
        self.my_field.clear()

    def my_field_str(self) -> str:
        return _board_text(self.my_field)

    def enemy_field_str(self) -> str:
        return _board_text(self.enemy_field)

    def update_my_field_draw(self, field: Sequence[int]) -> None:
        self.my_field.set_draw_field(field)

    def update_enemy_field_draw(self, field: Sequence[int]) -> None:
        """Copy only revealed shot results onto the enemy board; marks stay put."""
        updated = self.enemy_field.draw_field()
        for index, cell in enumerate(field[: len(updated)]):
            if cell in _REVEALED:
                updated[index] = CellDraw(cell)
        self.enemy_field.set_draw_field(updated)

    def switch_step(self) -> None:
        if self.state == ModelState.MAKING_STEP:
            self.update_state(ModelState.WAITING_STEP)
        elif self.state == ModelState.WAITING_STEP:
            self.update_state(ModelState.MAKING_STEP)

    def is_my_field_correct(self) -> bool:
        return self.my_field.is_correct()

    def start_game(self, enemy_login: str, game_id: int) -> None:
        self.game_id = game_id
        self.enemy_login = enemy_login
        self.update_state(ModelState.PLACING_SHIPS)

    def finish_game(self) -> None:
        self.my_field.clear()
        self.enemy_field.clear()
        self.update_state(ModelState.GAME_FINISHED)
        self.update_state(ModelState.GAME_NSTARTED)

    def start_fight(self) -> None:
        """Whoever started the game makes the first shot."""
        if self.started:
            self.update_state(ModelState.MAKING_STEP)
        else:
            self.update_state(ModelState.WAITING_STEP)

    def generate_my_field(self) -> None:
        self.my_field.generate()