"""Turn typed commands like ``abc 1,2`` into JSON-RPC 2.0 requests."""

from __future__ import annotations

import logging

from .peer import Peer

log = logging.getLogger(__name__)

_WHITESPACE = b" \t\n"


def _split_command(message: bytes) -> tuple[bytes, bytes]:
    """Split a message into the method name and the raw parameter text."""
    stripped = message.lstrip(_WHITESPACE)
    for index, byte in enumerate(stripped):
        if byte in _WHITESPACE:
            return stripped[:index], stripped[index:].lstrip(_WHITESPACE)
    return stripped, b""


def format_jsonrpc(message: bytes, request_id: int) -> bytes:
    """Build a JSON-RPC request line from ``method params``.

    Parameters not starting with ``{`` or ``[`` are wrapped in brackets.
    A trailing newline (and carriage return) of the parameters is removed.
    """
    method, params = _split_command(bytes(message))
    needs_brackets = params[:1] not in (b"{", b"[")
    if params.endswith(b"\n"):
        params = params[:-1]
    if params.endswith(b"\r"):
        params = params[:-1]
    if needs_brackets:
        params = b"[" + params + b"]"
    return b"".join(
        [
            b'{"jsonrpc":"2.0","id":',
            str(request_id).encode("ascii"),
            b', "method":"',
            method,
            b'", "params":',
            params,
            b"}\n",
        ]
    )


class JsonRpcReader:
    """Reads messages from ``inner`` and returns them as JSON-RPC requests."""

    def __init__(self, inner) -> None:
        self.inner = inner
        self.next_id = 1

    def read(self, size: int) -> bytes:
        if size <= 1:
            raise ValueError("buffer size must be greater than 1")
        data = self.inner.read(size)
        if not data:
            return b""
        request = format_jsonrpc(data, self.next_id)
        self.next_id += 1
        if len(request) >= size:
            log.warning("Buffer too small, JSON RPC message may be truncated.")
            request = request[:size]
        return request


def jsonrpc_peer(peer: Peer) -> Peer:
    """Wrap the reading half of ``peer`` with the JSON-RPC formatter."""
    return Peer(JsonRpcReader(peer.reader), peer.writer)