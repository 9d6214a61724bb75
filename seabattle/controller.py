"""Mouse input on the boards and the game's sound effects."""

from __future__ import annotations

import logging
from enum import Enum, IntEnum
from pathlib import Path
from typing import Callable, Optional

from .constants import (
    ENEMYFIELD_IMG_X,
    ENEMYFIELD_IMG_Y,
    FIELD_HEIGHT_DEFAULT,
    FIELD_IMG_HEIGHT_DEFAULT,
    FIELD_IMG_WIDTH_DEFAULT,
    FIELD_WIDTH_DEFAULT,
    MYFIELD_IMG_X,
    MYFIELD_IMG_Y,
)
from .field import CellDraw, CellState, Owner
from .model import Model, ModelState
from .sound import Sink, Sound

log = logging.getLogger(__name__)

SOUND_NAMES = (
    "intro_music",
    "background",
    "field_music",
    "victory_sound",
    "defeat_sound",
    "click",
    "you_hit",
    "enemy_hit",
    "you_miss",
    "enemy_miss",
    "you_kill",
    "enemy_kill",
    "new_msg",
)


class MouseButton(Enum):
    LEFT = "left"
    RIGHT = "right"
    MIDDLE = "middle"


class GameResult(IntEnum):
    NONE = 0
    WON = 1
    LOST = -1


def field_coord(pos: tuple[int, int], owner: Owner) -> tuple[int, int]:
    """Board cell under a pixel position, or (-1, -1) if it is off the board."""
    if owner == Owner.MY_FIELD:
        shift_x, shift_y = MYFIELD_IMG_X, MYFIELD_IMG_Y
    else:
        shift_x, shift_y = ENEMYFIELD_IMG_X, ENEMYFIELD_IMG_Y
    px, py = pos
    if (
        px < shift_x
        or px > shift_x + FIELD_IMG_WIDTH_DEFAULT
        or py < shift_y
        or py > shift_y + FIELD_IMG_HEIGHT_DEFAULT
    ):
        return (-1, -1)
    x = int(FIELD_WIDTH_DEFAULT * (px - shift_x) / FIELD_IMG_WIDTH_DEFAULT)
    y = int(FIELD_HEIGHT_DEFAULT * (py - shift_y) / FIELD_IMG_HEIGHT_DEFAULT)
    return (x, y)


class Controller:
    """Turns clicks into board edits and shots, and plays sound effects."""

    def __init__(
        self,
        model: Model,
        send: Callable[[bytes], None],
        sound_dir: str | Path = "sounds",
        sink: Optional[Sink] = None,
    ):
        self.model = model
        self.send = send
        self.sound_dir = Path(sound_dir)
        self.sink = sink
        self.volume = 50
        self.sounds: dict[str, Sound] = {}
        self._loaded = False
        self.load_sounds()

    def _toggle_mark(self, x: int, y: int) -> None:
        cell = self.model.enemy_cell(x, y)
        if cell == CellDraw.MARK:
            self.model.set_enemy_cell(x, y, CellDraw.EMPTY)
        elif cell == CellDraw.EMPTY:
            self.model.set_enemy_cell(x, y, CellDraw.MARK)
        else:
            log.debug("Cell already played, cannot mark it")

    def on_mouse_pressed(self, pos: tuple[int, int], button: MouseButton) -> Optional[bool]:
        """Handle a click at a pixel position.

        While ships are being placed, returns whether the placement is now
        correct; otherwise returns None.
        """
        state = self.model.state

        if state in (ModelState.PLACING_SHIPS, ModelState.GAME_NSTARTED):
            x, y = field_coord(pos, Owner.MY_FIELD)
            if x == -1 or y == -1:
                return None
            if button == MouseButton.LEFT:
                self.model.set_my_draw_cell(x, y, CellDraw.LIVE)
                self.model.set_my_state_cell(x, y, CellState.UNDEFINED)
            elif button == MouseButton.RIGHT:
                self.model.set_my_draw_cell(x, y, CellDraw.EMPTY)
                self.model.set_my_state_cell(x, y, CellState.EMPTY)
            correct = self.model.is_my_field_correct()
            log.debug("Placement is %s", "correct" if correct else "incorrect")
            return correct

        if state == ModelState.MAKING_STEP:
            x, y = field_coord(pos, Owner.ENEMY_FIELD)
            if x == -1 or y == -1:
                return None
            if button == MouseButton.LEFT:
                cell = self.model.enemy_cell(x, y)
                if cell not in (CellDraw.EMPTY, CellDraw.MARK):
                    log.debug("Already shot")
                    return None
                message = f"GAME:{self.model.game_id}:{self.model.login}:SHOT:{x}:{y}"
                self.send((message + "@").encode("utf-8"))
            elif button == MouseButton.RIGHT:
                self._toggle_mark(x, y)
            return None

        if state == ModelState.WAITING_STEP:
            x, y = field_coord(pos, Owner.ENEMY_FIELD)
            if x == -1 or y == -1:
                return None
            if button == MouseButton.RIGHT:
                self._toggle_mark(x, y)
        return None

    def load_sounds(self) -> None:
        """Load every sound effect once from the sound directory."""
        if self._loaded:
            return
        for name in SOUND_NAMES:
            self.sounds[name] = Sound(self.sound_dir / f"{name}.wav", self.sink)
            log.debug("%s.wav is loaded", name)
        self._loaded = True

    def _sound(self, name: str) -> Sound:
        try:
            return self.sounds[name]
        except KeyError:
            raise KeyError(f"unknown sound: {name}") from None

    def play_sound(self, name: str) -> None:
        self._sound(name).play()

    def stop_sound(self, name: str) -> None:
        self._sound(name).stop()

    def update_volume(self, volume: int) -> None:
        self.volume = max(volume, 0)