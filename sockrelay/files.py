"""Endpoints backed by files on disk."""

from __future__ import annotations

import io
from pathlib import Path
from typing import BinaryIO, Union

from .peer import Peer

PathLike = Union[str, Path]


class _DevNull:
    """Discards everything written and reads as an empty stream."""

    def __init__(self) -> None:
        self._empty = io.BytesIO()
        self.discarded = 0

    def read(self, size: int) -> bytes:
        return self._empty.read(size)

    def write(self, data: bytes) -> int:
        self.discarded += len(data)
        return len(data)

    def flush(self) -> None:
        self._empty.flush()

    def shutdown(self) -> None:
        self.flush()


class _FileReader:
    def __init__(self, file: BinaryIO) -> None:
        self._file = file

    def read(self, size: int) -> bytes:
        return self._file.read(size)

    def close(self) -> None:
        self._file.close()


class _FileWriter:
    def __init__(self, file: BinaryIO) -> None:
        self._file = file

    def write(self, data: bytes) -> int:
        return self._file.write(data)

    def flush(self) -> None:
        self._file.flush()

    def shutdown(self) -> None:
        """Flush pending data; the file itself stays open until ``close``."""
        self._file.flush()

    def close(self) -> None:
        self._file.close()


def read_file_peer(path: PathLike) -> Peer:
    """Read the file at ``path``; anything written is discarded."""
    return Peer(_FileReader(open(path, "rb")), _DevNull())


def write_file_peer(path: PathLike) -> Peer:
    """Truncate and write the file at ``path``; reads return end of stream."""
    return Peer(_DevNull(), _FileWriter(open(path, "wb")))


def append_file_peer(path: PathLike) -> Peer:
    """Append to the file at ``path``, creating it if needed."""
    return Peer(_DevNull(), _FileWriter(open(path, "ab")))