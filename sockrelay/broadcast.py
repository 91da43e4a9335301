"""Share one inner connection between many clients, replies going to all of them."""

from __future__ import annotations

import itertools
import logging
from collections import deque
from typing import Callable, Optional

from .peer import Peer

log = logging.getLogger(__name__)


class _BroadcastClientReader:
    """Reading half of one client: receives copies of everything the inner peer sends."""

    def __init__(self, owner: "BroadcastReuser", key: int) -> None:
        self._owner = owner
        self._key = key
        self._queue: deque[bytes] = deque()
        self.closed = False

    def _enqueue(self, message: bytes) -> None:
        if len(self._queue) >= self._owner.queue_len:
            log.warning("A client's queue is full, dropping a message")
            return
        self._queue.append(message)

    def read(self, size: int) -> bytes:
        if self.closed:
            raise BrokenPipeError("client is closed")
        self._owner.pump()
        while self._queue:
            message = self._queue.popleft()
            if len(message) > size:
                log.error("Too big message dropped")
                continue
            return message
        raise BlockingIOError("no broadcast message available")

    def close(self) -> None:
        """Disconnect this client from the broadcaster."""
        if not self.closed:
            self.closed = True
            self._owner._clients.pop(self._key, None)


class _BroadcastClientWriter:
    """Writing half of one client: passes everything to the inner peer."""

    def __init__(self, owner: "BroadcastReuser") -> None:
        self._owner = owner

    def write(self, data: bytes) -> int:
        return self._owner._require_inner().write(data)

    def flush(self) -> None:
        self._owner._require_inner().flush()

    def shutdown(self) -> None:
        """Shutdown is not passed on to the shared connection."""
        self._owner._require_inner()


class BroadcastReuser:
    """Creates the inner connection once and duplicates its output to every client.

    Messages from any client go to the inner connection. Chunks read from the
    inner connection are copied into every connected client's queue, holding
    up to ``queue_len`` messages each; further messages for a full queue and
    chunks arriving while no client is connected are dropped.
    """

    def __init__(self, buffer_size: int = 65536, queue_len: int = 16) -> None:
        self.buffer_size = buffer_size
        self.queue_len = queue_len
        self.inner: Optional[Peer] = None
        self.finished = False
        self._clients: dict[int, _BroadcastClientReader] = {}
        self._keys = itertools.count()

    @property
    def client_count(self) -> int:
        return len(self._clients)

    def _require_inner(self) -> Peer:
        if self.inner is None:
            raise RuntimeError("broadcast connection is not established")
        return self.inner

    def connect(self, factory: Callable[[], Peer]) -> Peer:
        """Return a new client peer, calling ``factory`` only for the first one."""
        if self.inner is None:
            log.info("Initializing")
            self.inner = factory()
        else:
            log.info("Reusing")
        key = next(self._keys)
        reader = _BroadcastClientReader(self, key)
        self._clients[key] = reader
        return Peer(reader, _BroadcastClientWriter(self))

    def pump(self) -> bool:
        """Move everything currently readable from the inner peer to the clients.

        Returns ``False`` once the inner peer has finished or failed.
        """
        inner = self._require_inner()
        while not self.finished:
            try:
                data = inner.read(self.buffer_size)
            except BlockingIOError:
                return True
            except OSError as error:
                log.error("Inner peer read failed: %s", error)
                self.finished = True
                break
            if not data:
                log.info("Underlying peer finished")
                self.finished = True
                break
            if not self._clients:
                log.info("Dropping broadcast due to no clients being connected")
                continue
            message = bytes(data)
            for client in list(self._clients.values()):
                client._enqueue(message)
        return False