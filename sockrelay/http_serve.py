"""Plain HTTP replies for requests that are not WebSocket upgrades."""

from __future__ import annotations

import io
import logging
import os
from typing import BinaryIO, Iterable, Optional

from .copy import CopyOptions, copy
from .options import StaticFile

log = logging.getLogger(__name__)

_HEAD = b"Server: sockrelay\r\nContent-Type: text/plain\r\nConnection: close\r\n\r\n"

BAD_REQUEST = (
    b"HTTP/1.1 400 Bad Request\r\n" + _HEAD + b"Only WebSocket connections are welcome here\n"
)
NOT_FOUND = (
    b"HTTP/1.1 404 Not Found\r\n"
    + _HEAD
    + b"URI does not match any -F option and is not a WebSocket connection.\n"
)
NOT_FOUND2 = (
    b"HTTP/1.1 500 Not Found\r\n" + _HEAD + b"Failed to open the file on server side.\n"
)
BAD_METHOD = b"HTTP/1.1 400 Bad Request\r\n" + _HEAD + b"HTTP method should be GET\n"
BAD_URI_FORMAT = b"HTTP/1.1 400 Bad Request\r\n" + _HEAD + b"URI should be an absolute path\n"


def static_file_header(length: Optional[int], content_type: str) -> bytes:
    """Build the ``200 OK`` header for a served file."""
    parts = [
        b"HTTP/1.1 200 OK\r\nServer: sockrelay\r\nContent-Type: ",
        content_type.encode(),
        b"\r\n",
    ]
    if length is not None:
        parts.append(b"Content-Length: %d\r\n" % length)
    parts.append(b"\r\n")
    return b"".join(parts)


def choose_reply(
    method: str, uri: str, static_files: Iterable[StaticFile]
) -> tuple[bytes, Optional[BinaryIO]]:
    """Pick the reply for a request, opening the matching file if there is one.

    Returns the reply header and an open file (to be sent after the header
    and closed by the caller) or ``None``. The last matching entry wins.
    """
    if method != "GET":
        return BAD_METHOD, None
    if not uri.startswith("/"):
        return BAD_URI_FORMAT, None
    reply: Optional[bytes] = None
    serve_file: Optional[BinaryIO] = None
    for static_file in static_files:
        if static_file.uri != uri:
            continue
        try:
            opened = open(static_file.file, "rb")
        except OSError:
            reply = NOT_FOUND2
            continue
        try:
            length: Optional[int] = os.fstat(opened.fileno()).st_size
        except OSError:
            length = None
        if serve_file is not None:
            serve_file.close()
        reply = static_file_header(length, static_file.content_type)
        serve_file = opened
    return (NOT_FOUND if reply is None else reply), serve_file


def http_serve(
    writer, request: Optional[tuple[str, str]], static_files: Iterable[StaticFile]
) -> int:
    """Answer a plain HTTP request on ``writer`` and return the bytes written.

    ``request`` is ``(method, uri)`` or ``None`` when it could not be parsed.
    """
    static_files = list(static_files)
    serve_file: Optional[BinaryIO] = None
    if not static_files or request is None:
        content = BAD_REQUEST
    else:
        method, uri = request
        log.info("HTTP-serving %s %s", method, uri)
        content, serve_file = choose_reply(method, uri, static_files)
    total = copy(io.BytesIO(content), writer, CopyOptions(buffer_size=1024))
    if serve_file is not None:
        with serve_file:
            total += copy(serve_file, writer, CopyOptions(buffer_size=65536))
    return total