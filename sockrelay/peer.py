"""Connection endpoints: a reading half and a writing half."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol


class Reader(Protocol):
    def read(self, size: int) -> bytes: ...


class Writer(Protocol):
    def write(self, data: bytes) -> Optional[int]: ...

    def flush(self) -> None: ...


@dataclass
class ClientInfo:
    """Details about the accepting side, passed on to the connecting side."""

    uri: Optional[str] = None
    client_addr: Optional[str] = None


@dataclass
class Peer:
    """An active connection made of a reader and a writer.

    Readers return ``b""`` at end of stream, raise ``BlockingIOError`` when
    no data is available yet and ``BrokenPipeError`` when the source is gone.
    """

    reader: Reader
    writer: Writer

    def read(self, size: int) -> bytes:
        return self.reader.read(size)

    def write(self, data: bytes) -> int:
        written = self.writer.write(data)
        return len(data) if written is None else written

    def flush(self) -> None:
        self.writer.flush()

    def shutdown(self) -> None:
        """Shut down the writing half, or flush it if it cannot be shut down."""
        shutdown = getattr(self.writer, "shutdown", None)
        if callable(shutdown):
            shutdown()
        else:
            self.writer.flush()