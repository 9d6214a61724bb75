import io
import socket
import threading

import pytest

from seabattle.app import Client, ConsoleFrontend, main
from seabattle.field import CellDraw
from seabattle.model import ModelState
from seabattle.protocol import ConnectionState, Readiness


@pytest.fixture
def server():
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.bind(("127.0.0.1", 0))
    srv.listen(1)
    srv.settimeout(5)
    yield srv
    srv.close()


def free_port():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


def read_until(conn, marker):
    data = b""
    while marker not in data:
        chunk = conn.recv(4096)
        if not chunk:
            break
        data += chunk
    return data


def make_client(port, answers=None):
    out = io.StringIO()
    frontend = ConsoleFrontend(output=out, answers=answers)
    client = Client("127.0.0.1", port, frontend)
    client.retry_delay = 0
    return client, out


def test_console_status_line():
    out = io.StringIO()
    ConsoleFrontend(output=out).show_status(ConnectionState.CONNECTED)
    assert out.getvalue().strip() == "status: ST_CONNECTED"


def test_console_ask_reads_answers():
    out = io.StringIO()
    assert ConsoleFrontend(output=out, answers=io.StringIO("y\n")).ask("t", "q") is True
    assert ConsoleFrontend(output=out, answers=io.StringIO("n\n")).ask("t", "q") is False
    assert ConsoleFrontend(output=out).ask("t", "q") is False


def test_console_stop_and_readiness():
    out = io.StringIO()
    frontend = ConsoleFrontend(output=out)
    frontend.readiness_changed(Readiness.READY)
    frontend.stop("bye")
    assert frontend.stopped is True
    assert out.getvalue().splitlines() == ["готов", "bye"]


def test_connect_failure_raises_and_stops():
    client, out = make_client(free_port())
    with pytest.raises(ConnectionError):
        client.connect(2)
    assert client.frontend.stopped is True
    assert "Timeout. Cannot connect to the server..." in out.getvalue()


def test_connect_needs_positive_attempts():
    client, _ = make_client(free_port())
    with pytest.raises(ValueError):
        client.connect(0)


def test_run_without_connection():
    client, _ = make_client(free_port())
    with pytest.raises(RuntimeError):
        client.run()


def test_connect_success(server):
    client, out = make_client(server.getsockname()[1])
    client.connect(1)
    conn, _ = server.accept()
    try:
        assert client.session.connection_state == ConnectionState.CONNECTED
        assert "status: ST_CONNECTED" in out.getvalue()
    finally:
        client.close()
        conn.close()


def test_close_sends_exit(server):
    client, _ = make_client(server.getsockname()[1])
    client.connect(1)
    conn, _ = server.accept()
    conn.settimeout(5)
    client.close()
    try:
        assert read_until(conn, b"EXIT:@") == b"EXIT:@"
        assert client.session.connection_state == ConnectionState.DISCONNECTED
    finally:
        conn.close()


def test_run_handles_auth_and_ping(server):
    client, _ = make_client(server.getsockname()[1])
    client.connect(1)
    conn, _ = server.accept()
    conn.settimeout(5)
    client._execute("login alice")
    assert read_until(conn, b"AUTH:alice@") == b"AUTH:alice@"

    received = []

    def serve():
        conn.sendall(b"AUTH:SUCCESS@PING:@")
        received.append(read_until(conn, b"PONG:@"))
        conn.close()

    worker = threading.Thread(target=serve)
    worker.start()
    client.run()
    worker.join(5)
    client.close()

    assert client.session.login == "alice"
    assert client.model.login == "alice"
    assert b"READINESS:0@" in received[0]
    assert received[0].endswith(b"PONG:@")


def test_run_ends_on_server_stop(server):
    client, out = make_client(server.getsockname()[1])
    client.connect(1)
    conn, _ = server.accept()
    conn.settimeout(5)
    try:
        client._execute("login alice")
        read_until(conn, b"AUTH:alice@")
        conn.sendall(b"AUTH:SUCCESS@STOP:@")
        client.run()
        assert client.frontend.stopped is True
        assert "Server stopped... Closing the app" in out.getvalue()
    finally:
        client.close()
        conn.close()


def test_place_and_remove_ship_cell():
    client, out = make_client(free_port())
    assert client._execute("place 2 3") is True
    assert client.model.my_cell(2, 3) == CellDraw.LIVE
    assert client.model.my_field.state_field_str()[3 * 10 + 2] == "8"
    assert "Расстановка некорректна" in out.getvalue()
    client._execute("remove 2 3")
    assert client.model.my_cell(2, 3) == CellDraw.EMPTY


def test_mark_toggles_enemy_cell():
    client, _ = make_client(free_port())
    client.model.update_state(ModelState.WAITING_STEP)
    client._execute("mark 1 1")
    assert client.model.enemy_cell(1, 1) == CellDraw.MARK
    client._execute("mark 1 1")
    assert client.model.enemy_cell(1, 1) == CellDraw.EMPTY


def test_shoot_sends_shot(server):
    client, _ = make_client(server.getsockname()[1])
    client.connect(1)
    conn, _ = server.accept()
    conn.settimeout(5)
    try:
        client.model.update_state(ModelState.MAKING_STEP)
        client.model.game_id = 7
        client.model.login = "bob"
        client._execute("shoot 3 4")
        assert read_until(conn, b"@") == b"GAME:7:bob:SHOT:3:4@"
    finally:
        client.close()
        conn.close()


def test_quit_and_bad_commands():
    client, out = make_client(free_port())
    assert client._execute("quit") is False
    assert client._execute("") is True
    assert client._execute("fly away") is True
    assert "ERROR!: unknown command: fly" in out.getvalue()
    client._execute("place x y")
    assert "coordinates must be integers" in out.getvalue()


def test_login_without_connection_warns():
    client, out = make_client(free_port())
    client._execute("login alice")
    assert "Server not started yet" in out.getvalue()
    assert client.session.login == ""


def test_main_returns_error_when_server_absent():
    assert main(["127.0.0.1", str(free_port()), "--attempts", "1"]) == 1


def test_main_rejects_bad_port():
    with pytest.raises(SystemExit):
        main(["127.0.0.1", "notaport"])