"""Console client: connects to the game server and drives a session from typed commands."""

from __future__ import annotations

import argparse
import logging
import socket
import sys
import threading
import time
from typing import Callable, Optional, Sequence, TextIO

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
from .controller import Controller, MouseButton
from .field import Owner, format_field
from .history import COLUMN_TITLES, GameRecord
from .model import Model
from .protocol import ConnectionState, Readiness, UserInfo
from .session import Frontend, Session

log = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.1.1"
DEFAULT_PORT = 50000
DEFAULT_ATTEMPTS = 30
RETRY_DELAY = 2.0
CONNECT_TIMEOUT = 1.0
_RECV_SIZE = 4096

_READINESS_LABELS = {
    Readiness.NREADY: "не готов",
    Readiness.READY: "готов",
    Readiness.PLAYING: "в игре",
}

_HELP = """\
commands:
  login NAME        authorize on the server
  users             refresh the list of users
  chat NAME         open the chat with NAME (or 'all')
  say CHAT TEXT     send a chat line
  invite NAME       invite a ready user to a game
  ready | notready  change readiness
  place X Y         put a ship cell on your board
  remove X Y        remove a ship cell from your board
  generate          ask the server for a random placement
  clear             clear your board
  check             validate your placement
  apply             submit your placement
  shoot X Y         shoot at the enemy board
  mark X Y          toggle a mark on the enemy board
  leave             end the running game early
  history           request the history of finished games
  quit              leave the server"""


class ConsoleFrontend(Frontend):
    """Prints what the session reports and reads yes/no answers from a stream."""

    def __init__(
        self,
        output: Optional[TextIO] = None,
        answers: Optional[TextIO] = None,
        model: Optional[Model] = None,
    ):
        self.output = output if output is not None else sys.stdout
        self.answers = answers
        self.model = model
        self.stopped = False

    def _say(self, text: str) -> None:
        print(text, file=self.output, flush=True)

    def show_status(self, state: ConnectionState) -> None:
        self._say(f"status: ST_{ConnectionState(state).name}")

    def warn(self, title: str, text: str) -> None:
        self._say(f"{title}: {text}")

    def inform(self, title: str, text: str) -> None:
        self._say(f"{title}: {text}")

    def ask(self, title: str, text: str) -> bool:
        self._say(f"{title}: {text} [y/n]")
        if self.answers is None:
            return False
        answer = self.answers.readline().strip().lower()
        return answer in {"y", "yes", "д", "да"}

    def authorized(self, login: str) -> None:
        self._say(f"Вы успешно авторизованы как {login}!")

    def show_message(self, chat: str, sender: str, text: str) -> None:
        self._say(f"[{chat}] {sender}> {text}")

    def set_users(self, users: Sequence[UserInfo]) -> None:
        for user in users:
            label = _READINESS_LABELS.get(user.readiness, "?")
            self._say(f"user {user.login}: {label}")

    def user_exited(self, login: str) -> None:
        self._say(f"{login} left the server")

    def show_history(self, records: Sequence[GameRecord]) -> None:
        self._say("\t".join(COLUMN_TITLES))
        for record in records:
            self._say(
                "\t".join(
                    (
                        record.player1,
                        record.player2,
                        record.field1,
                        record.field2,
                        record.start_time,
                        record.end_time,
                        record.winner,
                    )
                )
            )

    def placement_checked(self, correct: bool) -> None:
        self._say("Расстановка корректна" if correct else "Расстановка некорректна")

    def set_turn(self, mine: bool) -> None:
        self._say("Ваш ход" if mine else "Ход соперника")

    def game_started(self, login: str, enemy: str) -> None:
        self._say(f"Игра: {login} против {enemy}")

    def fight_started(self, my_turn: bool) -> None:
        self._say("Бой начался!")
        self.set_turn(my_turn)

    def game_finished(self) -> None:
        self._say("Игра завершена")

    def readiness_changed(self, readiness: Readiness) -> None:
        self._say(_READINESS_LABELS.get(readiness, "?"))

    def refresh(self) -> None:
        if self.model is None:
            return
        self._say("my field:\n" + format_field(self.model.my_field.draw_field()))
        self._say("enemy field:\n" + format_field(self.model.enemy_field.draw_field()))

    def stop(self, message: str) -> None:
        self._say(message)
        self.stopped = True


def _cell_center(owner: Owner, x: int, y: int) -> tuple[int, int]:
    """Pixel position in the middle of a board cell."""
    if not (0 <= x < FIELD_WIDTH_DEFAULT and 0 <= y < FIELD_HEIGHT_DEFAULT):
        raise ValueError(f"no such cell ({x}, {y})")
    if owner == Owner.MY_FIELD:
        shift_x, shift_y = MYFIELD_IMG_X, MYFIELD_IMG_Y
    else:
        shift_x, shift_y = ENEMYFIELD_IMG_X, ENEMYFIELD_IMG_Y
    px = shift_x + int((x + 0.5) * FIELD_IMG_WIDTH_DEFAULT / FIELD_WIDTH_DEFAULT)
    py = shift_y + int((y + 0.5) * FIELD_IMG_HEIGHT_DEFAULT / FIELD_HEIGHT_DEFAULT)
    return (px, py)


def _coords(args: Sequence[str]) -> tuple[int, int]:
    if len(args) != 2:
        raise ValueError("expected two coordinates: X Y")
    try:
        return int(args[0]), int(args[1])
    except ValueError:
        raise ValueError("coordinates must be integers") from None


class Client:
    """A connection to the game server with its model, controller and session."""

    def __init__(
        self,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        frontend: Optional[Frontend] = None,
    ):
        self.host = host
        self.port = port
        self.frontend = frontend if frontend is not None else ConsoleFrontend()
        self.retry_delay = RETRY_DELAY
        self.model = Model()
        self.controller = Controller(self.model, self._send)
        if isinstance(self.frontend, ConsoleFrontend) and self.frontend.model is None:
            self.frontend.model = self.model
        self.session = Session(self._send, self.controller, self.frontend)
        self._sock: Optional[socket.socket] = None
        self._lock = threading.RLock()

    def _send(self, data: bytes) -> None:
        sock = self._sock
        if sock is None:
            log.debug("Not connected, dropping %r", data)
            return
        try:
            sock.sendall(data)
        except OSError as exc:
            log.debug("Cannot send %r: %s", data, exc)

    def _stopped(self) -> bool:
        return bool(getattr(self.frontend, "stopped", False))

    def connect(self, attempts: int = DEFAULT_ATTEMPTS) -> None:
        """Try to reach the server; raise ConnectionError after the last failed attempt."""
        if attempts < 1:
            raise ValueError("attempts must be positive")
        for attempt in range(1, attempts + 1):
            try:
                sock = socket.create_connection(
                    (self.host, self.port), timeout=CONNECT_TIMEOUT
                )
            except OSError as exc:
                log.debug("Cannot connect (attempt %d): %s", attempt, exc)
                if attempt < attempts:
                    time.sleep(self.retry_delay)
                continue
            sock.settimeout(None)
            self._sock = sock
            with self._lock:
                self.session.connection_state = ConnectionState.CONNECTED
            return
        self.frontend.stop("Timeout. Cannot connect to the server...")
        raise ConnectionError(
            f"cannot connect to {self.host}:{self.port} after {attempts} attempts"
        )

    def run(self) -> None:
        """Handle server messages until the connection ends or the client is stopped."""
        sock = self._sock
        if sock is None:
            raise RuntimeError("client is not connected")
        while not self._stopped():
            try:
                data = sock.recv(_RECV_SIZE)
            except OSError:
                break
            if not data:
                break
            with self._lock:
                self.session.feed(data)

    def close(self) -> None:
        """Say goodbye to the server and drop the connection."""
        with self._lock:
            self.session.exit_from_server()
        sock, self._sock = self._sock, None
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        sock.close()

    def _read_commands(self, stream: TextIO) -> None:
        for line in stream:
            if not self._execute(line):
                break
        self.close()

    def _board_click(self, owner: Owner, button: MouseButton, args: Sequence[str]) -> None:
        x, y = _coords(args)
        result = self.controller.on_mouse_pressed(_cell_center(owner, x, y), button)
        if result is not None:
            self.frontend.placement_checked(result)
        self.frontend.refresh()

    def _say(self, line: str) -> None:
        parts = line.split(None, 2)
        if len(parts) < 3:
            raise ValueError("usage: say CHAT TEXT")
        self.session.send_message(parts[1], parts[2].rstrip("\n"))

    def _one_arg(self, args: Sequence[str], action: Callable[[str], object]) -> None:
        if len(args) != 1:
            raise ValueError("expected exactly one name")
        action(args[0])

    def _set_chat(self, name: str) -> None:
        self.session.current_chat = name

    def _execute(self, line: str) -> bool:
        """Run one typed command; False when the player wants to quit."""
        words = line.split()
        if not words:
            return True
        command, args = words[0].lower(), words[1:]
        if command == "quit":
            return False
        actions: dict[str, Callable[[], object]] = {
            "help": lambda: self.frontend.inform("help", _HELP),
            "login": lambda: self._one_arg(args, self.session.begin_auth),
            "users": self.session.request_users,
            "chat": lambda: self._one_arg(args, self._set_chat),
            "say": lambda: self._say(line),
            "invite": lambda: self._one_arg(args, self.session.connect_to_game),
            "ready": lambda: self.session.update_readiness(Readiness.READY),
            "notready": lambda: self.session.update_readiness(Readiness.NREADY),
            "place": lambda: self._board_click(Owner.MY_FIELD, MouseButton.LEFT, args),
            "remove": lambda: self._board_click(Owner.MY_FIELD, MouseButton.RIGHT, args),
            "shoot": lambda: self._board_click(Owner.ENEMY_FIELD, MouseButton.LEFT, args),
            "mark": lambda: self._board_click(Owner.ENEMY_FIELD, MouseButton.RIGHT, args),
            "generate": self.session.generate_field,
            "clear": self.session.clear_field,
            "check": self.session.check_field,
            "apply": self.session.apply_field,
            "leave": self.session.exit_game,
            "history": self.session.request_history,
        }
        action = actions.get(command)
        if action is None:
            self.frontend.warn("ERROR!", f"unknown command: {command}")
            return True
        with self._lock:
            try:
                action()
            except (RuntimeError, ValueError) as exc:
                self.frontend.warn("ERROR!", str(exc))
        return True


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="seabattle", description="Sea battle console client.")
    parser.add_argument("host", nargs="?", default=DEFAULT_HOST)
    parser.add_argument("port", nargs="?", type=int, default=DEFAULT_PORT)
    parser.add_argument("--attempts", type=int, default=DEFAULT_ATTEMPTS)
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    frontend = ConsoleFrontend(sys.stdout, sys.stdin)
    client = Client(args.host, args.port, frontend)
    try:
        client.connect(args.attempts)
    except (ConnectionError, ValueError) as exc:
        print(exc, file=sys.stderr)
        return 1

    frontend.inform("help", _HELP)
    reader = threading.Thread(target=client._read_commands, args=(sys.stdin,), daemon=True)
    reader.start()
    try:
        client.run()
    except KeyboardInterrupt:
        pass
    finally:
        client.close()
    return 0