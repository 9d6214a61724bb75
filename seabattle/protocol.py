"""Wire format of the client's conversation with the game server.

Every message is UTF-8 text of colon-separated parts, terminated by '@'.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum

from .field import CellDraw, CellState

log = logging.getLogger(__name__)

TERMINATOR = b"@"

PONG_MESSAGE = b"PONG:@"
USERS_REQUEST = b"USERS:@"
HISTORY_REQUEST = b"HISTORY:UPDATE:@"
EXIT_MESSAGE = b"EXIT:@"
GENERATE_REQUEST = b"GENERATE:@"


class ConnectionState(IntEnum):
    DISCONNECTED = 0
    CONNECTED = 1
    AUTHORIZED = 2


class Readiness(IntEnum):
    NREADY = 0
    READY = 1
    PLAYING = 2


@dataclass(frozen=True)
class UserInfo:
    """A user as listed by the server: login, connection status and readiness."""

    login: str
    status: int
    readiness: int

    @property
    def can_be_invited(self) -> bool:
        """Authorized and ready for a game."""
        return self.status == ConnectionState.AUTHORIZED and self.readiness == Readiness.READY


def _frame(text: str) -> bytes:
    return text.encode("utf-8") + TERMINATOR


def split_messages(data: bytes) -> tuple[list[str], bytes]:
    """Split received bytes into complete messages and the unterminated rest."""
    *complete, rest = data.split(TERMINATOR)
    return [chunk.decode("utf-8", errors="replace") for chunk in complete], rest


def convert_bin_field_to_state(text: str) -> str:
    """Turn a 0/1 board from the server into a layout string of empty and undefined cells."""
    result = []
    for ch in text:
        if ch == "0":
            result.append(str(int(CellState.EMPTY)))
        elif ch == "1":
            result.append(str(int(CellState.UNDEFINED)))
        else:
            log.debug("Wrong binary field character %r", ch)
    return "".join(result)


def _to_int(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


def parse_users(payload: str) -> list[UserInfo]:
    """Parse space-separated 'login:status:readiness' entries."""
    users = []
    for entry in payload.strip().split(" "):
        if not entry:
            continue
        parts = entry.split(":")
        if len(parts) < 3:
            raise ValueError(f"malformed user entry: {entry!r}")
        users.append(UserInfo(parts[0], _to_int(parts[1]), _to_int(parts[2])))
    return users


_SHOT_RESULTS = {
    "DOT": CellDraw.DOT,
    "DAMAGED": CellDraw.DAMAGED,
    "KILLED": CellDraw.KILLED,
}


def shot_status(result: str) -> CellDraw:
    """Cell to draw for a shot result word; EMPTY for an unknown word."""
    return _SHOT_RESULTS.get(result, CellDraw.EMPTY)


def validate_login(login: str) -> str:
    """Return the login if it is usable; raise ValueError if it is empty or has spaces."""
    if not login:
        raise ValueError("login is empty")
    if len(login.split(" ")) > 1:
        raise ValueError("login must not contain spaces")
    return login


def auth_message(login: str) -> bytes:
    return _frame(f"AUTH:{login}")


def shot_message(game_id: int, login: str, x: int, y: int) -> bytes:
    return _frame(f"GAME:{game_id}:{login}:SHOT:{x}:{y}")


def field_message(game_id: int, login: str, field: str) -> bytes:
    return _frame(f"GAME:{game_id}:{login}:FIELD:{field}")


def readiness_message(readiness: int) -> bytes:
    return _frame(f"READINESS:{int(readiness)}")


def connection_message(login: str) -> bytes:
    return _frame(f"CONNECTION:{login}")


def connection_answer(login: str, accept: bool) -> bytes:
    return _frame(f"CONNECTION:{login}:{'ACCEPT' if accept else 'REJECT'}")


def game_start_message(login: str, enemy: str) -> bytes:
    return _frame(f"GAME:START:{login}:{enemy}")


def game_finish_message(game_id: int) -> bytes:
    return _frame(f"GAME:{game_id}:FINISH")