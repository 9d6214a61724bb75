"""The client's side of a game session: reacting to server messages and player actions."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from .field import CellDraw, field_draw_from_str
from .history import GameRecord, parse_history
from .model import Model, ModelState
from .protocol import (
    EXIT_MESSAGE,
    GENERATE_REQUEST,
    HISTORY_REQUEST,
    PONG_MESSAGE,
    USERS_REQUEST,
    ConnectionState,
    Readiness,
    UserInfo,
    auth_message,
    connection_answer,
    connection_message,
    convert_bin_field_to_state,
    field_message,
    game_finish_message,
    game_start_message,
    parse_users,
    readiness_message,
    shot_status,
    split_messages,
    validate_login,
)

log = logging.getLogger(__name__)

ALL_CHAT = "all"

_BUSY_STATES = (ModelState.MAKING_STEP, ModelState.WAITING_STEP)
_LOCKED_STATES = _BUSY_STATES + (ModelState.WAITING_PLACING,)


def _to_int(text: str) -> int:
    try:
        return int(text)
    except ValueError:
        return 0


class Frontend:
    """What the session tells the player about.

    This base class ignores every notification and declines every question;
    a user interface subclasses it and overrides what it shows.
    """

    def show_status(self, state: ConnectionState) -> None:
        """The connection state changed or was refreshed."""

    def warn(self, title: str, text: str) -> None:
        """Something went wrong that the player should know about."""

    def inform(self, title: str, text: str) -> None:
        """A piece of news for the player."""

    def ask(self, title: str, text: str) -> bool:
        """A yes/no question; the base frontend always answers no."""
        return False

    def authorized(self, login: str) -> None:
        """The server accepted the login."""

    def show_message(self, chat: str, sender: str, text: str) -> None:
        """A chat line arrived or was sent."""

    def set_users(self, users: Sequence[UserInfo]) -> None:
        """The list of users on the server changed."""

    def user_exited(self, login: str) -> None:
        """A user with an open chat left the server."""

    def show_history(self, records: Sequence[GameRecord]) -> None:
        """The history of finished games arrived."""

    def placement_checked(self, correct: bool) -> None:
        """The player's placement was (re)validated."""

    def set_turn(self, mine: bool) -> None:
        """Whose turn it is changed."""

    def game_started(self, login: str, enemy: str) -> None:
        """A game against enemy began: ships are to be placed."""

    def fight_started(self, my_turn: bool) -> None:
        """Both players placed their ships; shooting begins."""

    def game_finished(self) -> None:
        """The current game is over."""

    def readiness_changed(self, readiness: Readiness) -> None:
        """The player's readiness for a game changed."""

    def refresh(self) -> None:
        """The boards changed and should be redrawn."""

    def stop(self, message: str) -> None:
        """The client has to close."""


class Session:
    """Dispatches server messages to the game model and the frontend."""

    def __init__(
        self,
        send: Callable[[bytes], None],
        controller,
        frontend: Optional[Frontend] = None,
    ):
        self.send = send
        self.controller = controller
        self.frontend = frontend if frontend is not None else Frontend()
        self.login = ""
        self.readiness = Readiness.NREADY
        self.users: list[UserInfo] = []
        self.chats: dict[str, list[tuple[str, str]]] = {}
        self.unread: set[str] = set()
        self.history: list[GameRecord] = []
        self._current_chat: Optional[str] = None
        self._pending_login = ""
        self._buffer = b""
        self._connection_state = ConnectionState.DISCONNECTED

    @property
    def model(self) -> Model:
        return self.controller.model

    @property
    def connection_state(self) -> ConnectionState:
        return self._connection_state

    @connection_state.setter
    def connection_state(self, state: ConnectionState) -> None:
        self._connection_state = ConnectionState(state)
        self.frontend.show_status(self._connection_state)

    @property
    def current_chat(self) -> Optional[str]:
        return self._current_chat

    @current_chat.setter
    def current_chat(self, chat: Optional[str]) -> None:
        if chat is not None and chat not in self.chats:
            self.chats[chat] = []
        self._current_chat = chat
        self.unread.discard(chat)

    def _click(self) -> None:
        self.controller.play_sound("click")

    # incoming data

    def feed(self, data: bytes) -> None:
        """Take received bytes and handle every complete message in them."""
        messages, self._buffer = split_messages(self._buffer + data)
        for message in messages:
            self.handle(message)

    def handle(self, message: str) -> None:
        """Handle one message without its terminator."""
        log.debug("server: %s", message)
        if message.startswith("AUTH:"):
            self._handle_auth(message)
            return
        if message.startswith("CONNECTION:"):
            self._handle_connection(message)
        if self.connection_state != ConnectionState.AUTHORIZED:
            return

        handlers = (
            ("MESSAGE:", self._handle_message),
            ("USERS:", self._handle_users),
            ("FIELD:", self._handle_field),
            ("SHOT:", self._handle_shot),
            ("PING:", self._handle_ping),
            ("GAME:", self._handle_game),
            ("GENERATE:", self._handle_generate),
            ("EXIT:", self._handle_exit),
            ("STOP:", self._handle_stop),
            ("HISTORY:UPDATE:", self._handle_history),
        )
        for prefix, handler in handlers:
            if message.startswith(prefix):
                handler(message)
                return

    def _handle_auth(self, message: str) -> None:
        if self.connection_state != ConnectionState.CONNECTED or not self._pending_login:
            return
        login, self._pending_login = self._pending_login, ""
        if not message.strip().startswith("AUTH:SUCCESS"):
            self.frontend.warn("ERROR!", "Login is already in use")
            return
        self.connection_state = ConnectionState.AUTHORIZED
        self.login = login
        self.model.login = login
        self.controller.play_sound("intro_music")
        self.chats.setdefault(ALL_CHAT, [])
        self.frontend.authorized(login)
        self.update_readiness(Readiness.NREADY)

    def _handle_ping(self, message: str) -> None:
        self.send(PONG_MESSAGE)

    def _handle_message(self, message: str) -> None:
        parts = message.split(":")
        if len(parts) < 2:
            log.debug("Malformed chat message: %r", message)
            return
        chat = parts[1]
        if chat not in self.chats:
            log.debug("No chat with %s", chat)
            return
        shift = 1 if chat == ALL_CHAT else 0
        if len(parts) < 3 + shift:
            log.debug("Malformed chat message: %r", message)
            return
        sender, text = parts[1 + shift], parts[2 + shift]
        if sender == self.login:
            return
        self.chats[chat].append((sender, text))
        self.frontend.show_message(chat, sender, text)
        if chat != self._current_chat:
            self.controller.play_sound("new_msg")
            self.unread.add(chat)

    def _handle_users(self, message: str) -> None:
        self.users = parse_users(message.strip()[len("USERS:"):])
        logins = {ALL_CHAT} | {user.login for user in self.users}
        for login in logins:
            self.chats.setdefault(login, [])
        for gone in [chat for chat in self.chats if chat not in logins]:
            del self.chats[gone]
            self.unread.discard(gone)
            if self._current_chat == gone:
                self._current_chat = None
        self.frontend.set_users(self.users)

    def _handle_field(self, message: str) -> None:
        parts = message.split(":")
        if len(parts) < 4 or parts[1] != "UPDATE":
            log.debug("Wrong field request: %r", message)
            return
        cells = field_draw_from_str(parts[3])
        if parts[2] == "MY":
            self.model.update_my_field_draw(cells)
        elif parts[2] == "ENEMY":
            self.model.update_enemy_field_draw(cells)
        else:
            log.debug("Wrong field owner: %r", parts[2])
            return
        self.frontend.refresh()

    def _handle_shot(self, message: str) -> None:
        parts = message.split(":")
        if len(parts) != 4:
            log.debug("Wrong shot request: %r", message)
            return
        status = shot_status(parts[1])
        x, y = _to_int(parts[2]), _to_int(parts[3])
        state = self.model.state
        if state == ModelState.MAKING_STEP:
            self.model.set_enemy_cell(x, y, status)
            sounds = {CellDraw.DOT: "enemy_miss", CellDraw.DAMAGED: "enemy_hit", CellDraw.KILLED: "enemy_kill"}
            mine_next = False
        elif state == ModelState.WAITING_STEP:
            self.model.set_my_draw_cell(x, y, status)
            sounds = {CellDraw.DOT: "you_miss", CellDraw.DAMAGED: "you_hit", CellDraw.KILLED: "you_kill"}
            mine_next = True
        else:
            self.frontend.refresh()
            return
        if status in sounds:
            self.controller.play_sound(sounds[status])
        if status == CellDraw.DOT:
            self.model.switch_step()
            self.frontend.set_turn(mine_next)
        self.frontend.refresh()

    def _handle_game(self, message: str) -> None:
        parts = message.split(":")
        if len(parts) == 3 and parts[1] == "FINISH":
            winner = parts[2]
            if winner == self.login:
                self._announce_result("victory_sound", "Вы победили!")
            elif winner == self.model.enemy_login:
                self._announce_result("defeat_sound", f"Игрок {winner} победил!")
            else:
                log.debug("Unknown winner %s", winner)
        elif len(parts) == 2 and parts[1] == "STOP":
            self.frontend.inform("Information!", "Игра остановлена одним из пользователей...")
            self.finish_game()
        elif len(parts) == 2 and parts[1] == "FIGHT":
            self.start_fight()
        elif len(parts) == 4 and parts[1] == "START":
            self.start_game(parts[2], _to_int(parts[3]))
        else:
            log.debug("Wrong game request: %r", message)

    def _announce_result(self, sound: str, text: str) -> None:
        self.controller.play_sound(sound)
        self.frontend.inform("Information!", text)
        self.controller.stop_sound(sound)
        self.finish_game()

    def _handle_generate(self, message: str) -> None:
        if self.model.state in _BUSY_STATES:
            return
        parts = message.split(":")
        if len(parts) < 2:
            log.debug("Wrong generate answer: %r", message)
            self.frontend.placement_checked(False)
            return
        self.model.my_field.set_state_field(convert_bin_field_to_state(parts[1]))
        self.model.my_field.init_my_draw_field()
        self.frontend.placement_checked(True)
        self.frontend.refresh()

    def _handle_exit(self, message: str) -> None:
        parts = message.split(":")
        if len(parts) < 2:
            log.debug("Wrong exit request: %r", message)
            return
        login = parts[1]
        if login not in self.chats:
            log.debug("No chat with exited user %s", login)
            return
        self.frontend.user_exited(login)

    def _handle_stop(self, message: str) -> None:
        self.frontend.stop("Server stopped... Closing the app")

    def _handle_history(self, message: str) -> None:
        self.history = parse_history(message)
        self.frontend.show_history(self.history)

    def _handle_connection(self, message: str) -> None:
        parts = message.split(":")
        if len(parts) < 2:
            log.debug("Wrong connection request: %r", message)
            return
        enemy = parts[1]
        if len(parts) == 2:
            accept = self.frontend.ask(
                "Запрос на подключение",
                f"Пользователь {enemy} приглашает вас сыграть! Принять приглашение?",
            )
            self.send(connection_answer(enemy, accept))
            self.model.started = False
        elif len(parts) == 3 and parts[2] == "ACCEPT":
            self.frontend.inform("Connection info!", f"Пользователь {enemy} принял запрос на игру!")
            self.send(game_start_message(self.login, enemy))
            self.model.started = True
        elif len(parts) == 3 and parts[2] == "REJECT":
            self.frontend.inform("Connection info!", f"Пользователь {enemy} отклонил запрос на игру!")
        else:
            log.debug("Wrong connection request: %r", message)

    # player actions

    def begin_auth(self, login: str) -> None:
        """Ask the server to authorize login; the answer arrives as a message.

        Raises RuntimeError when not connected and ValueError for a login with spaces.
        """
        self._click()
        if self.connection_state == ConnectionState.DISCONNECTED:
            raise RuntimeError("Cannot connect user to server... Server not started yet")
        if self.connection_state == ConnectionState.AUTHORIZED or not login:
            return
        validate_login(login)
        self._pending_login = login
        self.send(auth_message(login))

    def send_message(self, receiver: Optional[str], text: str) -> bool:
        """Send a chat line; False if there was nothing to send or no such chat."""
        self._click()
        if not text:
            return False
        if not receiver:
            raise ValueError("No reciever selected")
        if receiver not in self.chats:
            log.debug("Chat with %s not found", receiver)
            return False
        self.chats[receiver].append((self.login, text))
        self.frontend.show_message(receiver, self.login, text)
        self.send(f"MESSAGE:{receiver}:{text}".encode("utf-8") + b"@")
        return True

    def connect_to_game(self, enemy: str) -> None:
        self._click()
        self.send(connection_message(enemy))

    def update_readiness(self, readiness: Readiness) -> None:
        self.readiness = Readiness(readiness)
        self.frontend.readiness_changed(self.readiness)
        self.send(readiness_message(self.readiness))

    def apply_field(self) -> bool:
        """Submit the placement if it is legal; returns whether it was submitted."""
        self._click()
        if not self.model.is_my_field_correct():
            self.frontend.warn(
                "Ship placing warning",
                "Расстановка кораблей некорректна! Поменяйте её",
            )
            return False
        self.send(field_message(self.model.game_id, self.login, self.model.my_field_str()))
        self.model.update_state(ModelState.WAITING_PLACING)
        self.frontend.placement_checked(True)
        return True

    def generate_field(self) -> bool:
        """Ask the server for a random placement unless the placement is locked."""
        self._click()
        if self.model.state in _LOCKED_STATES:
            return False
        self.send(GENERATE_REQUEST)
        return True

    def clear_field(self) -> bool:
        self._click()
        if self.model.state in _LOCKED_STATES:
            return False
        self.model.clear_my_field()
        self.frontend.refresh()
        return True

    def check_field(self) -> bool:
        """Validate the placement and tell the player the result."""
        self._click()
        correct = self.model.is_my_field_correct()
        verdict = "КОРРЕКТНАЯ" if correct else "НЕКОРРЕКТНАЯ"
        self.frontend.inform(
            "IS CORRECT? INFO",
            f"Результат проверки вашей расстановки: {verdict}",
        )
        return correct

    def exit_game(self) -> bool:
        """Ask to end the running game early; returns whether the request was sent."""
        self._click()
        if self.model.state in (ModelState.GAME_NSTARTED, ModelState.GAME_FINISHED):
            return False
        if not self.frontend.ask("Завершить игру", "Хотите завершить игру досрочно?"):
            return False
        self.send(game_finish_message(self.model.game_id))
        return True

    def request_users(self) -> None:
        self._click()
        self.frontend.show_status(self.connection_state)
        self.send(USERS_REQUEST)

    def request_history(self) -> None:
        self.send(HISTORY_REQUEST)

    def start_game(self, enemy: str, game_id: int) -> None:
        self.model.start_game(enemy, game_id)
        self.frontend.game_started(self.login, enemy)
        self.update_readiness(Readiness.PLAYING)
        self.controller.stop_sound("intro_music")
        self.controller.play_sound("field_music")

    def finish_game(self) -> None:
        self.model.finish_game()
        self.frontend.game_finished()
        self.update_readiness(Readiness.NREADY)
        self.controller.play_sound("field_music")

    def start_fight(self) -> None:
        self.model.start_fight()
        self.controller.play_sound("background")
        self.frontend.fight_started(self.model.started)

    def exit_from_server(self) -> None:
        """Tell the server this client leaves, if it is connected."""
        if self.connection_state == ConnectionState.DISCONNECTED:
            return
        self.send(EXIT_MESSAGE)
        self.connection_state = ConnectionState.DISCONNECTED