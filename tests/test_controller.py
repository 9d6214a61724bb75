import wave

import pytest

from seabattle.constants import (
    ENEMYFIELD_IMG_X,
    ENEMYFIELD_IMG_Y,
    FIELD_IMG_HEIGHT_DEFAULT,
    FIELD_IMG_WIDTH_DEFAULT,
    MYFIELD_IMG_X,
    MYFIELD_IMG_Y,
)
from seabattle.controller import SOUND_NAMES, Controller, MouseButton, field_coord
from seabattle.field import CellDraw, Owner
from seabattle.model import Model, ModelState

MY_ORIGIN = (MYFIELD_IMG_X + 1, MYFIELD_IMG_Y + 1)
ENEMY_ORIGIN = (ENEMYFIELD_IMG_X + 1, ENEMYFIELD_IMG_Y + 1)
MY_CORNER = (MYFIELD_IMG_X + FIELD_IMG_WIDTH_DEFAULT - 1, MYFIELD_IMG_Y + FIELD_IMG_HEIGHT_DEFAULT - 1)


@pytest.fixture
def sent():
    return []


@pytest.fixture
def controller(tmp_path, sent):
    return Controller(Model(), sent.append, tmp_path)


def test_field_coord_origin_and_outside():
    assert field_coord((MYFIELD_IMG_X, MYFIELD_IMG_Y), Owner.MY_FIELD) == (0, 0)
    assert field_coord((ENEMYFIELD_IMG_X, ENEMYFIELD_IMG_Y), Owner.ENEMY_FIELD) == (0, 0)
    assert field_coord((MYFIELD_IMG_X - 1, MYFIELD_IMG_Y), Owner.MY_FIELD) == (-1, -1)
    assert field_coord(
        (MYFIELD_IMG_X + FIELD_IMG_WIDTH_DEFAULT + 1, MYFIELD_IMG_Y), Owner.MY_FIELD
    ) == (-1, -1)


def test_field_coord_last_cell():
    assert field_coord(MY_CORNER, Owner.MY_FIELD) == (9, 9)


def test_left_click_places_ship(controller):
    result = controller.on_mouse_pressed(MY_ORIGIN, MouseButton.LEFT)
    assert result is False
    assert controller.model.my_cell(0, 0) == CellDraw.LIVE
    assert controller.model.my_field.state_field_str()[0] == "8"


def test_right_click_restores_correct_placement(controller):
    controller.model.generate_my_field()
    assert controller.on_mouse_pressed(MY_CORNER, MouseButton.LEFT) is False
    assert controller.on_mouse_pressed(MY_CORNER, MouseButton.RIGHT) is True
    assert controller.model.my_cell(9, 9) == CellDraw.EMPTY


def test_shot_is_sent(controller, sent):
    model = controller.model
    model.update_state(ModelState.MAKING_STEP)
    model.game_id = 7
    model.login = "alice"
    assert controller.on_mouse_pressed(ENEMY_ORIGIN, MouseButton.LEFT) is None
    assert sent == [b"GAME:7:alice:SHOT:0:0@"]


def test_no_shot_at_played_cell(controller, sent):
    controller.model.update_state(ModelState.MAKING_STEP)
    controller.model.set_enemy_cell(0, 0, CellDraw.DOT)
    controller.on_mouse_pressed(ENEMY_ORIGIN, MouseButton.LEFT)
    assert sent == []
    assert controller.model.enemy_cell(0, 0) == CellDraw.DOT


def test_right_click_toggles_mark(controller):
    controller.model.update_state(ModelState.MAKING_STEP)
    controller.on_mouse_pressed(ENEMY_ORIGIN, MouseButton.RIGHT)
    assert controller.model.enemy_cell(0, 0) == CellDraw.MARK
    controller.on_mouse_pressed(ENEMY_ORIGIN, MouseButton.RIGHT)
    assert controller.model.enemy_cell(0, 0) == CellDraw.EMPTY


def test_waiting_step_marks_but_does_not_shoot(controller, sent):
    controller.model.update_state(ModelState.WAITING_STEP)
    controller.on_mouse_pressed(ENEMY_ORIGIN, MouseButton.LEFT)
    assert sent == []
    controller.on_mouse_pressed(ENEMY_ORIGIN, MouseButton.RIGHT)
    assert controller.model.enemy_cell(0, 0) == CellDraw.MARK


def test_played_cell_cannot_be_marked(controller):
    controller.model.update_state(ModelState.WAITING_STEP)
    controller.model.set_enemy_cell(0, 0, CellDraw.KILLED)
    controller.on_mouse_pressed(ENEMY_ORIGIN, MouseButton.RIGHT)
    assert controller.model.enemy_cell(0, 0) == CellDraw.KILLED


def test_all_sounds_loaded(controller):
    assert set(controller.sounds) == set(SOUND_NAMES)


def test_unknown_sound_raises(controller):
    with pytest.raises(KeyError):
        controller.play_sound("nope")
    with pytest.raises(KeyError):
        controller.stop_sound("nope")


def test_play_sound_reaches_sink(tmp_path):
    frames = b"\x01\x02" * 300
    with wave.open(str(tmp_path / "click.wav"), "wb") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(8000)
        w.writeframes(frames)
    received = []
    controller = Controller(Model(), lambda data: None, tmp_path, lambda fmt, chunk: received.append(chunk))
    controller.play_sound("click")
    controller.sounds["click"].wait()
    assert b"".join(received) == frames


def test_update_volume_clamps_negative(controller):
    assert controller.volume == 50
    controller.update_volume(-5)
    assert controller.volume == 0
    controller.update_volume(70)
    assert controller.volume == 70