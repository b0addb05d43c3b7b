"""A multi-threaded TCP/UDP message server driven by a middleware chain."""

from __future__ import annotations

import logging
import selectors
import socket
import threading
from collections.abc import Callable
from types import TracebackType

from ndmserver.context import RequestContext, ResponseContext
from ndmserver.middleware import MiddlewareBase
from ndmserver.user import User

CONNECTION_MAX_SIZE = 10
"""Backlog of pending TCP connections."""

BUFFER_SIZE = 1024
"""Size of the receive buffer; one byte is kept for the terminating NUL."""

_POLL_INTERVAL = 0.1

SendFunc = Callable[[bytes], object]

logger = logging.getLogger(__name__)


class NdmServer:
    """Listens on TCP and UDP ports and answers each message through a middleware."""

    def __init__(self, root_middleware: MiddlewareBase | None = None) -> None:
        self.root_middleware = root_middleware
        self._tcp_sockets: list[socket.socket] = []
        self._udp_sockets: list[socket.socket] = []
        self._users: dict[int, User] = {}
        self._users_lock = threading.Lock()
        self._running_lock = threading.Lock()
        self._is_running = False
        self._wakeup = threading.Event()

    # -- configuration -------------------------------------------------

    def add_tcp(self, port: int) -> int:
        """Bind a TCP socket on every interface; return the bound port."""
        return self._bind(socket.SOCK_STREAM, port, self._tcp_sockets)

    def add_udp(self, port: int) -> int:
        """Bind a UDP socket on every interface; return the bound port."""
        return self._bind(socket.SOCK_DGRAM, port, self._udp_sockets)

    @staticmethod
    def _bind(kind: int, port: int, into: list[socket.socket]) -> int:
        try:
            sock = socket.socket(socket.AF_INET, kind)
        except OSError as exc:
            raise RuntimeError("create socket failure") from exc
        try:
            sock.bind(("", port))
        except OSError as exc:
            sock.close()
            raise RuntimeError("bind socket failure. Try change target port") from exc
        into.append(sock)
        return sock.getsockname()[1]

    # -- lifecycle -----------------------------------------------------

    @property
    def is_running(self) -> bool:
        with self._running_lock:
            return self._is_running

    def run(self, thread_count: int) -> None:
        """Serve with the given number of worker threads until stopped.

        Returns at once if the server is already running.
        """
        with self._running_lock:
            if self._is_running:
                return
            self._start_listening()
            self._is_running = True
            self._wakeup.clear()

        workers = [
            threading.Thread(target=self._listen_thread, daemon=True)
            for _ in range(thread_count)
        ]
        for worker in workers:
            worker.start()
        try:
            while self.is_running:
                self._wakeup.wait(1)
        finally:
            self.stop()
            for worker in workers:
                worker.join()

    def stop(self) -> None:
        """Ask the server to stop; run() returns once the workers finish."""
        with self._running_lock:
            self._is_running = False
        self._wakeup.set()

    def close(self) -> None:
        """Stop the server and close every listening socket."""
        self.stop()
        for sock in (*self._tcp_sockets, *self._udp_sockets):
            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            sock.close()
        self._tcp_sockets.clear()
        self._udp_sockets.clear()

    def __enter__(self) -> NdmServer:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _start_listening(self) -> None:
        for sock in self._tcp_sockets:
            try:
                sock.listen(CONNECTION_MAX_SIZE)
            except OSError as exc:
                raise RuntimeError("listen") from exc
            sock.setblocking(False)
        for sock in self._udp_sockets:
            sock.setblocking(False)

    # -- request handling ---------------------------------------------

    def handle_request(self, data: bytes, send: SendFunc) -> None:
        """Pass a message through the root middleware and send the response.

        Nothing is sent when there is no root middleware. Errors raised by the
        middleware are logged and an empty response goes out; errors from
        ``send`` propagate, and then no shutdown request is honoured.
        """
        middleware = self.root_middleware
        if middleware is None:
            return
        with self._users_lock:
            users = dict(self._users)
        request = RequestContext(data, users)
        response = ResponseContext()
        try:
            middleware.handle_request(request, response)
        except Exception:
            logger.exception("middleware failed")
        send(response.response.encode("utf-8", errors="surrogateescape"))
        if response.can_shutdown():
            self.stop()

    # -- worker --------------------------------------------------------

    def _listen_thread(self) -> None:
        with selectors.DefaultSelector() as selector:
            for sock in self._udp_sockets:
                selector.register(sock, selectors.EVENT_READ, self._serve_udp)
            for sock in self._tcp_sockets:
                selector.register(sock, selectors.EVENT_READ, self._accept)
            try:
                while self.is_running:
                    for key, _ in selector.select(_POLL_INTERVAL):
                        key.data(key.fileobj, selector)
            finally:
                connections = [
                    key.fileobj
                    for key in selector.get_map().values()
                    if key.data == self._serve_tcp
                ]
                for conn in connections:
                    selector.unregister(conn)
                    conn.close()

    def _accept(self, listener: socket.socket, selector: selectors.BaseSelector) -> None:
        try:
            conn, _ = listener.accept()
        except OSError:
            # Another worker took the connection, or it vanished.
            return
        conn.setblocking(True)
        with self._users_lock:
            self._users[conn.fileno()] = User()
        selector.register(conn, selectors.EVENT_READ, self._serve_tcp)

    def _serve_udp(self, sock: socket.socket, selector: selectors.BaseSelector) -> None:
        try:
            data, addr = sock.recvfrom(BUFFER_SIZE - 1)
        except OSError:
            return
        self._touch_user(sock.fileno())
        self._respond(data, lambda payload: sock.sendto(payload, addr))

    def _serve_tcp(self, conn: socket.socket, selector: selectors.BaseSelector) -> None:
        fd = conn.fileno()
        try:
            data = conn.recv(BUFFER_SIZE - 1)
        except BlockingIOError:
            return
        except OSError:
            data = b""
        if not data:
            with self._users_lock:
                self._users.setdefault(fd, User()).is_closed = True
            selector.unregister(conn)
            conn.close()
            return
        self._touch_user(fd)
        self._respond(data, conn.sendall)

    def _touch_user(self, fd: int) -> None:
        with self._users_lock:
            user = self._users.get(fd)
            if user is None:
                self._users[fd] = User()
            else:
                user.update_time()

    def _respond(self, data: bytes, send: SendFunc) -> None:
        try:
            self.handle_request(data + b"\0", send)
        except OSError:
            logger.warning("failed to send response", exc_info=True)