"""TCP and UDP endpoints."""

from __future__ import annotations

import errno
import logging
import socket
import time
from typing import Optional

from .peer import ClientInfo, Peer

log = logging.getLogger(__name__)

ACCEPT_ERROR_PAUSE = 0.5


def format_address(address) -> str:
    """Render a socket address as ``host:port``, bracketing IPv6 hosts."""
    host, port = address[0], address[1]
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


def _ensure_open(sock: socket.socket) -> None:
    """Raise ``OSError`` if the socket has already been closed."""
    if sock.fileno() == -1:
        raise OSError(errno.EBADF, "socket is closed")


class _TcpConnection:
    """A socket shared by a reading and a writing half; closed when both are."""

    def __init__(self, sock: socket.socket) -> None:
        self.socket = sock
        self._open_halves = 2

    def release(self) -> None:
        self._open_halves -= 1
        if self._open_halves == 0:
            self.socket.close()


class _TcpReader:
    def __init__(self, connection: _TcpConnection) -> None:
        self._connection = connection
        self._closed = False

    def read(self, size: int) -> bytes:
        return self._connection.socket.recv(size)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._connection.socket.shutdown(socket.SHUT_RD)
        except OSError:
            pass
        self._connection.release()


class _TcpWriter:
    def __init__(self, connection: _TcpConnection) -> None:
        self._connection = connection
        self._closed = False

    def write(self, data: bytes) -> int:
        return self._connection.socket.send(data)

    def flush(self) -> None:
        """Sends are unbuffered; only check that the socket is still usable."""
        _ensure_open(self._connection.socket)

    def shutdown(self) -> None:
        self._connection.socket.shutdown(socket.SHUT_WR)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._connection.release()


def _tcp_peer(sock: socket.socket) -> Peer:
    connection = _TcpConnection(sock)
    return Peer(_TcpReader(connection), _TcpWriter(connection))


def tcp_connect_peer(host: str, port: int) -> Peer:
    """Connect to a TCP host and port."""
    sock = socket.create_connection((host, port))
    log.info("Connected to TCP")
    return _tcp_peer(sock)


class _TcpListener:
    """Iterates over accepted connections until closed."""

    def __init__(self, sock: socket.socket, client_info: Optional[ClientInfo]) -> None:
        self.socket = sock
        self.client_info = client_info
        self._closed = False

    @property
    def address(self):
        return self.socket.getsockname()

    def __iter__(self) -> "_TcpListener":
        return self

    def __next__(self) -> Peer:
        while True:
            if self._closed:
                raise StopIteration
            try:
                sock, address = self.socket.accept()
            except OSError as error:
                if self._closed:
                    raise StopIteration from None
                log.error("Accepting a TCP connection failed: %s", error)
                time.sleep(ACCEPT_ERROR_PAUSE)
                continue
            log.info("Incoming TCP connection from %s", address)
            if self.client_info is not None:
                self.client_info.client_addr = format_address(address)
            return _tcp_peer(sock)

    def close(self) -> None:
        self._closed = True
        self.socket.close()

    def __enter__(self) -> "_TcpListener":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def tcp_listen(host: str, port: int, client_info: Optional[ClientInfo] = None) -> _TcpListener:
    """Listen on a TCP address and return an iterator of incoming connections.

    When ``client_info`` is given, its ``client_addr`` is set to the address
    of every newly accepted client.
    """
    family, _, _, _, sockaddr = socket.getaddrinfo(
        host, port, 0, socket.SOCK_STREAM, 0, socket.AI_PASSIVE
    )[0]
    sock = socket.create_server(sockaddr, family=family)
    return _TcpListener(sock, client_info)


class UdpPeer:
    """Both halves of a UDP endpoint.

    A connected peer talks to one fixed remote address. A listening peer
    answers the most recently seen sender; until a datagram has arrived,
    writes raise ``BlockingIOError``. In one-shot mode only one reply is
    sent per received datagram.
    """

    def __init__(self, sock: socket.socket, connected: bool = False, oneshot: bool = False) -> None:
        self.socket = sock
        self.connected = connected
        self.oneshot = oneshot
        self.remote = None

    @property
    def local_address(self):
        return self.socket.getsockname()

    def read(self, size: int) -> bytes:
        if self.connected:
            return self.socket.recv(size)
        data, address = self.socket.recvfrom(size)
        if self.remote is not None and address != self.remote:
            log.warning("New client for the same listening UDP socket")
        self.remote = address
        return data

    def write(self, data: bytes) -> int:
        if self.connected:
            return self.socket.send(data)
        if self.remote is None:
            raise BlockingIOError("no UDP client address known yet")
        target = self.remote
        if self.oneshot:
            self.remote = None
        return self.socket.sendto(data, target)

    def flush(self) -> None:
        """Datagrams are sent at once; only check that the socket is still usable."""
        _ensure_open(self.socket)

    def shutdown(self) -> None:
        """UDP has no write half to close; only check that the socket is still usable."""
        _ensure_open(self.socket)

    def close(self) -> None:
        self.socket.close()


def _resolve_udp(host: str, port: int):
    family, _, _, _, sockaddr = socket.getaddrinfo(host, port, 0, socket.SOCK_DGRAM)[0]
    return family, sockaddr


def udp_connect_peer(host: str, port: int, oneshot: bool = False) -> Peer:
    """Send to and receive from one UDP address, from a random local port."""
    family, sockaddr = _resolve_udp(host, port)
    sock = socket.socket(family, socket.SOCK_DGRAM)
    try:
        sock.bind(("::", 0) if family == socket.AF_INET6 else ("0.0.0.0", 0))
        sock.connect(sockaddr)
    except OSError:
        sock.close()
        raise
    handle = UdpPeer(sock, connected=True, oneshot=oneshot)
    return Peer(handle, handle)


def udp_listen_peer(host: str, port: int, oneshot: bool = False) -> Peer:
    """Bind a UDP socket and reply to whichever sender was seen last."""
    family, sockaddr = _resolve_udp(host, port)
    sock = socket.socket(family, socket.SOCK_DGRAM)
    try:
        sock.bind(sockaddr)
    except OSError:
        sock.close()
        raise
    handle = UdpPeer(sock, connected=False, oneshot=oneshot)
    return Peer(handle, handle)