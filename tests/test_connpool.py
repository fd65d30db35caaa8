import socket
import threading
import time

import pytest

from treds.connpool import ConnectionPool


def _serve(listener, echo):
    while True:
        try:
            conn, _ = listener.accept()
        except OSError:
            return
        if not echo:
            conn.close()
            continue

        def handle(c=conn):
            with c:
                while True:
                    try:
                        data = c.recv(4096)
                    except OSError:
                        return
                    if not data:
                        return
                    c.sendall(data)

        threading.Thread(target=handle, daemon=True).start()


def _start_server(echo):
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen()
    threading.Thread(target=_serve, args=(listener, echo), daemon=True).start()
    host, port = listener.getsockname()
    return listener, f"{host}:{port}"


@pytest.fixture
def server_addr():
    listener, addr = _start_server(echo=False)
    yield addr
    listener.close()


@pytest.fixture
def echo_addr():
    listener, addr = _start_server(echo=True)
    yield addr
    listener.close()


def test_new_pooled_conn(server_addr):
    pool = ConnectionPool(5)
    conn = pool.dial(server_addr)
    conn.close()
    assert len(pool) == 1
    pool.close()


def test_pooled_conn_close_recycles(server_addr):
    pool = ConnectionPool(5)
    conn = pool.dial(server_addr)
    pool.add(conn)
    assert len(pool) == 1
    conn.close()
    assert len(pool) == 1
    pool.close()


def test_add_and_remove_from_pool(server_addr):
    pool = ConnectionPool(5)
    conn = pool.dial(server_addr)
    pool.add(conn)
    assert len(pool) == 1
    pool.remove(conn)
    assert len(pool) == 0
    conn.close()
    pool.close()


def test_dial(server_addr):
    pool = ConnectionPool(5)
    conn = pool.dial(server_addr)
    assert len(pool) == 0
    conn.close()
    assert len(pool) == 1
    pool.close()


def test_dial_error():
    pool = ConnectionPool(5)
    with pytest.raises(OSError):
        pool.dial("invalid:1234")
    assert len(pool) == 0


def test_pool_close(server_addr):
    pool = ConnectionPool(5)
    conn1 = pool.dial(server_addr)
    conn2 = pool.dial(server_addr)
    assert len(pool) == 0
    conn1.close()
    assert len(pool) == 1
    conn2.close()
    assert len(pool) == 2
    pool.close()
    assert len(pool) == 0


def test_close_timed_out(server_addr):
    pool = ConnectionPool(0.005)
    conn1 = pool.dial(server_addr)
    conn2 = pool.dial(server_addr)
    assert len(pool) == 0
    conn1.close()
    assert len(pool) == 1
    time.sleep(0.2)
    conn2.close()
    assert len(pool) == 1
    pool.close()


def test_send_and_receive(echo_addr):
    with ConnectionPool(5) as pool:
        conn = pool.dial(echo_addr)
        conn.sendall(b"PING")
        received = b""
        while len(received) < 4:
            received += conn.recv(4 - len(received))
        assert received == b"PING"
        conn.close()
        assert len(pool) == 1
    assert len(pool) == 0


def test_pool_close_closes_sockets(echo_addr):
    pool = ConnectionPool(5)
    conn = pool.dial(echo_addr)
    conn.close()
    pool.close()
    with pytest.raises(OSError):
        conn.sendall(b"data")


def test_dial_accepts_tuple(server_addr):
    host, port = server_addr.rsplit(":", 1)
    pool = ConnectionPool(5)
    conn = pool.dial((host, int(port)))
    conn.close()
    assert len(pool) == 1
    pool.close()