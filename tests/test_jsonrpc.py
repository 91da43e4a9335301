import json

import pytest

from sockrelay.jsonrpc import JsonRpcReader, format_jsonrpc, jsonrpc_peer
from sockrelay.peer import Peer


class ChunkReader:
    def __init__(self, chunks):
        self.chunks = list(chunks)

    def read(self, size):
        if not self.chunks:
            return b""
        return self.chunks.pop(0)[:size]


class SinkWriter:
    def __init__(self):
        self.data = bytearray()

    def write(self, data):
        self.data.extend(data)
        return len(data)

    def flush(self):
        pass


def test_documented_example():
    assert (
        format_jsonrpc(b"abc 1,2", 412)
        == b'{"jsonrpc":"2.0","id":412, "method":"abc", "params":[1,2]}\n'
    )


def test_object_params_not_wrapped():
    result = json.loads(format_jsonrpc(b'call {"a": 5}', 3))
    assert result["params"] == {"a": 5}
    assert result["method"] == "call"
    assert result["id"] == 3


def test_list_params_not_wrapped():
    result = json.loads(format_jsonrpc(b"sum [1, 2]\n", 7))
    assert result["params"] == [1, 2]


def test_no_params_gives_empty_list():
    result = json.loads(format_jsonrpc(b"ping\n", 1))
    assert result["method"] == "ping"
    assert result["params"] == []


def test_leading_whitespace_and_crlf_ignored():
    result = json.loads(format_jsonrpc(b" \t add \t 4,5\r\n", 2))
    assert result["method"] == "add"
    assert result["params"] == [4, 5]


def test_output_ends_with_newline():
    assert format_jsonrpc(b"x 1", 9).endswith(b"}\n")


def test_reader_increments_ids():
    reader = JsonRpcReader(ChunkReader([b"a 1", b"b 2"]))
    first = json.loads(reader.read(1024))
    second = json.loads(reader.read(1024))
    assert (first["id"], first["method"]) == (1, "a")
    assert (second["id"], second["method"]) == (2, "b")


def test_reader_eof():
    reader = JsonRpcReader(ChunkReader([]))
    assert reader.read(1024) == b""


def test_reader_rejects_tiny_buffer():
    reader = JsonRpcReader(ChunkReader([b"a"]))
    with pytest.raises(ValueError):
        reader.read(1)


def test_reader_truncates_to_buffer():
    reader = JsonRpcReader(ChunkReader([b"method 1,2,3"]))
    out = reader.read(10)
    assert out == format_jsonrpc(b"method 1,2,3", 1)[:10]


def test_jsonrpc_peer_keeps_writer():
    writer = SinkWriter()
    peer = jsonrpc_peer(Peer(ChunkReader([b"go"]), writer))
    peer.write(b"reply")
    assert bytes(writer.data) == b"reply"
    assert json.loads(peer.read(1024))["method"] == "go"