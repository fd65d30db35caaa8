"""A small pool that keeps recently closed TCP connections around."""

from __future__ import annotations

import socket
import threading
import time


def _parse_address(addr: str | tuple[str, int]) -> tuple[str, int]:
    if isinstance(addr, tuple):
        return addr[0], int(addr[1])
    if addr.startswith("["):
        host, _, rest = addr[1:].partition("]")
        port = rest.lstrip(":")
    else:
        host, sep, port = addr.rpartition(":")
        if not sep:
            raise ValueError(f"missing port in address: {addr}")
    return host, int(port)


def _format_address(address: object) -> str:
    if isinstance(address, tuple) and len(address) >= 2:
        return f"{address[0]}:{address[1]}"
    return str(address)


class PooledConnection:
    """A socket that returns itself to its pool when closed."""

    def __init__(self, sock: socket.socket, pool: ConnectionPool) -> None:
        self._sock = sock
        self._pool = pool
        self._timestamp = time.monotonic()
        self._id = _format_address(sock.getpeername()) + _format_address(sock.getsockname())

    def sendall(self, data: bytes) -> None:
        """Send all of ``data`` on the underlying socket."""
        self._sock.sendall(data)

    def recv(self, size: int) -> bytes:
        """Receive up to ``size`` bytes from the underlying socket."""
        return self._sock.recv(size)

    def close(self) -> None:
        """Hand the connection back to the pool and evict stale ones."""
        self._timestamp = time.monotonic()
        self._pool.add(self)
        self._pool.close_timed_out()

    def _close_socket(self) -> None:
        try:
            self._sock.close()
        except OSError:
            pass

    def __enter__(self) -> PooledConnection:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


class ConnectionPool:
    """Tracks idle connections and closes those idle longer than ``timeout`` seconds."""

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        self._pool: dict[str, PooledConnection] = {}
        self._lock = threading.RLock()

    def dial(self, addr: str | tuple[str, int]) -> PooledConnection:
        """Open a new TCP connection to ``addr`` ("host:port" or a tuple)."""
        sock = socket.create_connection(_parse_address(addr))
        try:
            conn = PooledConnection(sock, self)
        except OSError:
            sock.close()
            raise
        self.remove(conn)
        return conn

    def add(self, conn: PooledConnection) -> None:
        """Put ``conn`` into the pool."""
        with self._lock:
            self._pool[conn._id] = conn

    def remove(self, conn: PooledConnection) -> None:
        """Drop ``conn`` from the pool without closing it."""
        with self._lock:
            self._pool.pop(conn._id, None)

    def close_timed_out(self) -> None:
        """Close and drop connections idle for longer than the timeout."""
        now = time.monotonic()
        with self._lock:
            stale = [c for c in self._pool.values() if now - c._timestamp > self.timeout]
            for conn in stale:
                conn._close_socket()
                self.remove(conn)

    def close(self) -> None:
        """Close every pooled connection and empty the pool."""
        with self._lock:
            for conn in self._pool.values():
                conn._close_socket()
            self._pool = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._pool)

    def __enter__(self) -> ConnectionPool:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()