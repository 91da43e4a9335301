"""Share one inner connection between many clients."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .peer import Peer

log = logging.getLogger(__name__)


class _ReuseHandle:
    def __init__(self, reuser: "ConnectionReuser") -> None:
        self._reuser = reuser

    @property
    def _inner(self) -> Peer:
        inner = self._reuser.inner
        if inner is None:
            raise RuntimeError("reused connection is not established")
        return inner

    def read(self, size: int) -> bytes:
        return self._inner.read(size)

    def write(self, data: bytes) -> int:
        return self._inner.write(data)

    def flush(self) -> None:
        self._inner.flush()

    def shutdown(self) -> None:
        """Shutdown is not passed on; optionally send an empty message."""
        inner = self._inner
        if self._reuser.send_zero_msg_on_disconnect:
            inner.write(b"")


class ConnectionReuser:
    """Creates the inner connection once and hands out handles to it.

    Reads and writes of every client go straight to the shared connection,
    so replies reach whichever client happens to read first.
    """

    def __init__(self, send_zero_msg_on_disconnect: bool = False) -> None:
        self.send_zero_msg_on_disconnect = send_zero_msg_on_disconnect
        self.inner: Optional[Peer] = None

    def connect(self, factory: Callable[[], Peer]) -> Peer:
        """Return a client peer, calling ``factory`` only for the first one."""
        if self.inner is None:
            log.info("Initializing")
            self.inner = factory()
        else:
            log.info("Reusing")
        handle = _ReuseHandle(self)
        return Peer(handle, handle)