"""Copy all data from a reader into a writer."""

from __future__ import annotations

import logging
from dataclasses import dataclass

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class CopyOptions:
    stop_on_reader_zero_read: bool = True
    once: bool = False
    buffer_size: int = 65536


def copy(reader, writer, options=None) -> int:
    """Copy from ``reader`` to ``writer`` and return the number of bytes copied.

    A ``BrokenPipeError`` from the reader counts as end of stream. The writer
    is flushed after every write and once more at the end. With
    ``stop_on_reader_zero_read`` unset, empty reads do not end the copy.
    With ``once`` set, only the first successful read is forwarded.
    """
    if options is None:
        options = CopyOptions()
    total = 0
    read_occurred = False
    while True:
        if read_occurred and options.once:
            break
        try:
            chunk = reader.read(options.buffer_size)
        except BrokenPipeError:
            log.debug("BrokenPipe: read done")
            break
        if not chunk:
            log.debug("zero length read")
            if options.stop_on_reader_zero_read:
                break
            continue
        read_occurred = True
        pos = 0
        while pos < len(chunk):
            written = writer.write(chunk[pos:])
            if written is None:
                written = len(chunk) - pos
            if written == 0:
                raise OSError("write zero byte into writer")
            pos += written
            total += written
            writer.flush()
    writer.flush()
    log.debug("copy done")
    return total