import pytest

from seabattle.field import CellDraw, CellState
from seabattle.model import Model, ModelState


@pytest.fixture
def model():
    return Model()


def test_initial_state(model):
    assert model.state == ModelState.GAME_NSTARTED
    assert model.game_id == -1
    assert model.login == ""
    assert model.started is False


def test_draw_cells_round_trip(model):
    model.set_my_draw_cell(3, 4, CellDraw.LIVE)
    model.set_enemy_cell(7, 1, CellDraw.MARK)
    assert model.my_cell(3, 4) == CellDraw.LIVE
    assert model.enemy_cell(7, 1) == CellDraw.MARK
    assert model.my_cell(4, 3) == CellDraw.EMPTY


def test_off_board_cell_is_empty(model):
    model.set_my_draw_cell(10, 0, CellDraw.LIVE)
    assert model.my_cell(10, 0) == CellDraw.EMPTY


def test_state_cell_sets_layout(model):
    model.set_my_state_cell(2, 1, CellState.UNDEFINED)
    model.init_my_draw_field()
    assert model.my_cell(2, 1) == CellDraw.LIVE
    assert model.my_field.state_field_str().count("8") == 1


def test_empty_board_text(model):
    lines = model.my_field_str().splitlines()
    assert len(lines) == 10
    assert all(len(line) == 10 for line in lines)
    assert set("".join(lines)) == {"."}


def test_board_text_symbols(model):
    model.set_my_draw_cell(2, 5, CellDraw.LIVE)
    model.set_my_draw_cell(0, 0, CellDraw.MARK)
    model.set_enemy_cell(1, 1, CellDraw.KILLED)
    model.set_enemy_cell(1, 2, CellDraw.DOT)
    model.set_enemy_cell(1, 3, CellDraw.DAMAGED)
    mine = model.my_field_str().splitlines()
    assert mine[2][5] == "O"
    assert mine[0][0] == "?"
    enemy = model.enemy_field_str().splitlines()
    assert enemy[1][1:4] == "#*X"


def test_switch_step(model):
    model.update_state(ModelState.MAKING_STEP)
    model.switch_step()
    assert model.state == ModelState.WAITING_STEP
    model.switch_step()
    assert model.state == ModelState.MAKING_STEP


def test_switch_step_outside_fight(model):
    model.update_state(ModelState.PLACING_SHIPS)
    model.switch_step()
    assert model.state == ModelState.PLACING_SHIPS


def test_start_game(model):
    model.start_game("rival", 7)
    assert model.enemy_login == "rival"
    assert model.game_id == 7
    assert model.state == ModelState.PLACING_SHIPS


@pytest.mark.parametrize(
    "started, expected",
    [(True, ModelState.MAKING_STEP), (False, ModelState.WAITING_STEP)],
)
def test_start_fight(model, started, expected):
    model.started = started
    model.start_fight()
    assert model.state == expected


def test_finish_game_clears_boards(model):
    model.generate_my_field()
    model.set_enemy_cell(0, 0, CellDraw.DOT)
    model.update_state(ModelState.MAKING_STEP)
    model.finish_game()
    assert model.state == ModelState.GAME_NSTARTED
    assert set(model.my_field.draw_field()) == {CellDraw.EMPTY}
    assert set(model.enemy_field.draw_field()) == {CellDraw.EMPTY}


def test_generated_field_is_correct(model):
    model.generate_my_field()
    assert model.is_my_field_correct() is True


def test_cleared_field_is_incorrect(model):
    model.generate_my_field()
    model.clear_my_field()
    assert model.is_my_field_correct() is False


def test_set_my_field_from_string(model):
    model.generate_my_field()
    layout = model.my_field.state_field_str()
    model.clear_my_field()
    model.set_my_field(layout)
    assert model.my_field.state_field_str() == layout
    assert model.is_my_field_correct() is True


def test_set_my_field_from_draw_values(model):
    cells = [CellDraw.EMPTY] * 100
    cells[12] = CellDraw.DAMAGED
    model.set_my_field(cells)
    assert model.my_field.draw_field() == cells


def test_update_my_field_draw_ignores_wrong_size(model):
    before = model.my_field.draw_field()
    model.update_my_field_draw([CellDraw.LIVE] * 5)
    assert model.my_field.draw_field() == before


def test_update_enemy_field_draw_reveals_only_shots(model):
    model.set_enemy_cell(0, 0, CellDraw.MARK)
    incoming = [CellDraw.EMPTY] * 100
    incoming[0] = CellDraw.EMPTY
    incoming[1] = CellDraw.LIVE
    incoming[2] = CellDraw.DOT
    incoming[3] = CellDraw.DAMAGED
    incoming[4] = CellDraw.KILLED
    model.update_enemy_field_draw(incoming)
    assert model.enemy_cell(0, 0) == CellDraw.MARK
    assert model.enemy_cell(1, 0) == CellDraw.EMPTY
    assert model.enemy_cell(2, 0) == CellDraw.DOT
    assert model.enemy_cell(3, 0) == CellDraw.DAMAGED
    assert model.enemy_cell(4, 0) == CellDraw.KILLED


def test_update_enemy_field_draw_empty_input(model):
    model.set_enemy_cell(5, 5, CellDraw.DOT)
    before = model.enemy_field.draw_field()
    model.update_enemy_field_draw([])
    assert model.enemy_field.draw_field() == before