import pytest

from seabattle.history import (
    COLUMN_TITLES,
    GameRecord,
    parse_game_record,
    parse_history,
    wrap_field,
)

FIELD_A = "8888088800" + "0" * 90
FIELD_B = "0" * 90 + "8880880880"


def _record_text(p1="alice", p2="bob", winner="alice"):
    return f"{p1}:{p2}:{FIELD_A}:{FIELD_B}:start:end:{winner}"


def test_wrap_field_keeps_all_characters():
    wrapped = wrap_field(FIELD_A)
    assert wrapped.replace("\n", "") == FIELD_A


def test_wrap_field_rows_have_board_width():
    lines = wrap_field(FIELD_A).split("\n")
    assert lines[0] == ""
    assert [len(line) for line in lines[1:]] == [10] * 10


def test_wrap_field_short_tail():
    assert wrap_field("0123456789ab", 10) == "\n0123456789\nab"


def test_wrap_field_empty():
    assert wrap_field("") == ""


def test_wrap_field_rejects_bad_width():
    with pytest.raises(ValueError):
        wrap_field("abc", 0)


def test_parse_game_record_fields():
    record = parse_game_record(_record_text())
    assert record == GameRecord("alice", "bob", FIELD_A, FIELD_B, "start", "end", "alice")


def test_parse_game_record_too_short():
    with pytest.raises(ValueError):
        parse_game_record("alice:bob:field")


def test_record_row_wraps_boards():
    row = parse_game_record(_record_text()).row
    assert len(row) == len(COLUMN_TITLES)
    assert row[2] == wrap_field(FIELD_A)
    assert row[3] == wrap_field(FIELD_B)
    assert row[0] == "alice"
    assert row[6] == "alice"


def test_parse_history_with_prefix_keeps_order():
    payload = "HISTORY:UPDATE:" + _record_text() + "$$" + _record_text("carol", "dave", "dave")
    records = parse_history(payload)
    assert [r.player1 for r in records] == ["alice", "carol"]
    assert records[1].winner == "dave"


def test_parse_history_without_prefix():
    records = parse_history(_record_text())
    assert len(records) == 1
    assert records[0].player2 == "bob"


def test_parse_history_empty():
    assert parse_history("HISTORY:UPDATE:") == []