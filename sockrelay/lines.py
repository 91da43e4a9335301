"""Filters converting between messages and newline/NUL-delimited lines."""

from __future__ import annotations

import logging
from typing import Optional

from .peer import Peer

log = logging.getLogger(__name__)


class Packet2LineReader:
    """Turns each message read from ``inner`` into exactly one line."""

    def __init__(self, inner, null_terminated: bool = False) -> None:
        self.inner = inner
        self.null_terminated = null_terminated

    def read(self, size: int) -> bytes:
        if size <= 1:
            raise ValueError("buffer size must be greater than 1")
        data = self.inner.read(size - 1)
        if not data:
            return b""
        if not self.null_terminated:
            if data.endswith(b"\n"):
                data = data[:-1]
            if data.endswith(b"\r"):
                data = data[:-1]
            return data.replace(b"\n", b" ").replace(b"\r", b" ") + b"\n"
        if data.endswith(b"\x00"):
            data = data[:-1]
        if b"\x00" in data:
            log.warning("zero byte in a message in null-terminated mode")
        return data + b"\x00"


class Line2PacketReader:
    """Turns a byte stream into one message per newline- or NUL-terminated line."""

    def __init__(
        self,
        inner,
        retain_newlines: bool = True,
        strict: bool = False,
        null_terminated: bool = False,
    ) -> None:
        self.inner = inner
        self.retain_newlines = retain_newlines
        self.allow_incomplete_lines = not strict
        self.drop_too_long_lines = strict
        self.null_terminated = null_terminated
        self.eof = False
        self._queue = bytearray()

    @property
    def _terminator(self) -> bytes:
        return b"\x00" if self.null_terminated else b"\n"

    def _strip(self, line: bytes) -> bytes:
        if self.null_terminated:
            if line.endswith(b"\x00"):
                line = line[:-1]
        elif not self.retain_newlines:
            if line.endswith(b"\n"):
                line = line[:-1]
            if line.endswith(b"\r"):
                line = line[:-1]
        return line

    def _deliver(self, size: int, n: int) -> Optional[bytes]:
        if n > size:
            if self.drop_too_long_lines:
                log.error(
                    "Dropping too long line of %d bytes because the buffer is only %d bytes",
                    n,
                    size,
                )
                del self._queue[:n]
                return None
            log.warning(
                "Splitting too long line of %d bytes because the buffer is only %d bytes",
                n,
                size,
            )
            line = bytes(self._queue[:size])
            del self._queue[:size]
            return line
        line = bytes(self._queue[:n])
        del self._queue[:n]
        return self._strip(line)

    def read(self, size: int) -> bytes:
        terminator = self._terminator
        while True:
            if self.eof:
                return b""
            index = self._queue.find(terminator)
            if index >= 0:
                line = self._deliver(size, index + 1)
                if line is not None:
                    return line
                continue

            data = self.inner.read(size)
            if not data:
                self.eof = True
                if self._queue:
                    if self.allow_incomplete_lines:
                        log.warning("Sending possibly incomplete line.")
                        line = self._deliver(size, len(self._queue))
                        if line is not None:
                            return line
                    else:
                        log.warning(
                            "Throwing away %d bytes of incomplete line", len(self._queue)
                        )
                return b""

            happy = (
                not self._queue
                and terminator not in data[:-1]
                and data.endswith(terminator)
            )
            if happy:
                return self._strip(data)
            self._queue.extend(data)


def packet2line_peer(peer: Peer, null_terminated: bool = False) -> Peer:
    """Wrap the reading half of ``peer`` with a message-to-line filter."""
    return Peer(Packet2LineReader(peer.reader, null_terminated), peer.writer)


def line2packet_peer(
    peer: Peer,
    retain_newlines: bool = True,
    strict: bool = False,
    null_terminated: bool = False,
) -> Peer:
    """Wrap the reading half of ``peer`` with a line-to-message filter."""
    reader = Line2PacketReader(peer.reader, retain_newlines, strict, null_terminated)
    return Peer(reader, peer.writer)