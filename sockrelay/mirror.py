"""Endpoints that echo written messages back, or answer each with a fixed reply."""

from __future__ import annotations

import logging
from collections import deque

from .options import DebtHandling
from .peer import Peer

log = logging.getLogger(__name__)


class _Channel:
    """A bounded single-producer message queue."""

    def __init__(self, capacity: int = 1) -> None:
        self.capacity = capacity
        self.messages: deque[bytes] = deque()
        self.closed = False

    def send(self, message: bytes) -> None:
        if self.closed:
            raise BrokenPipeError("channel is closed")
        if len(self.messages) >= self.capacity:
            raise BlockingIOError("channel is full")
        self.messages.append(message)

    def receive(self) -> bytes:
        if self.messages:
            return self.messages.popleft()
        if self.closed:
            raise BrokenPipeError("channel is closed")
        raise BlockingIOError("no message available")


class MirrorReader:
    """Returns queued messages, splitting or dropping those that do not fit."""

    def __init__(self, channel: _Channel, debt_handling: DebtHandling = DebtHandling.SILENT) -> None:
        self._channel = channel
        self.debt_handling = debt_handling
        self._debt = b""

    def read(self, size: int) -> bytes:
        if self._debt:
            chunk, self._debt = self._debt[:size], self._debt[size:]
            return chunk
        while True:
            message = self._channel.receive()
            if len(message) <= size:
                return message
            if self.debt_handling is DebtHandling.DROP_MESSAGE:
                log.warning("Dropping too long message of %d bytes", len(message))
                continue
            if self.debt_handling is DebtHandling.WARN:
                log.warning(
                    "Message of %d bytes does not fit into %d-byte buffer, splitting",
                    len(message),
                    size,
                )
            self._debt = message[size:]
            return message[:size]


class MirrorWriter:
    """Queues every written chunk as one message for the paired reader."""

    def __init__(self, channel: _Channel) -> None:
        self._channel = channel
        self.shut_down = False

    def write(self, data: bytes) -> int:
        self._channel.send(bytes(data))
        return len(data)

    def flush(self) -> None:
        """Fail if the channel has been closed; queued messages need no flushing."""
        if self._channel.closed:
            raise BrokenPipeError("channel is closed")

    def shutdown(self) -> None:
        """Record the shutdown; the mirror keeps working until ``close``."""
        self.shut_down = True

    def close(self) -> None:
        """Send a final empty message and close the channel."""
        if self._channel.closed:
            return
        log.info("MirrorWrite close")
        self._channel.messages.append(b"")
        self._channel.closed = True


class _LiteralReplyWriter(MirrorWriter):
    def __init__(self, channel: _Channel, content: bytes) -> None:
        super().__init__(channel)
        self._content = bytes(content)

    def write(self, data: bytes) -> int:
        self._channel.send(self._content)
        return len(data)

    def close(self) -> None:
        self._channel.closed = True


def mirror_peer() -> Peer:
    """Create an endpoint that reads back what was written to it."""
    channel = _Channel()
    return Peer(MirrorReader(channel), MirrorWriter(channel))


def literal_reply_peer(content: bytes) -> Peer:
    """Create an endpoint that answers every written chunk with ``content``."""
    channel = _Channel()
    return Peer(MirrorReader(channel), _LiteralReplyWriter(channel, content))