import pytest

from sockrelay.mirror import literal_reply_peer, mirror_peer
from sockrelay.options import DebtHandling


def test_mirror_echoes():
    peer = mirror_peer()
    assert peer.write(b"hello") == 5
    assert peer.read(100) == b"hello"


def test_mirror_empty_read_blocks():
    peer = mirror_peer()
    with pytest.raises(BlockingIOError):
        peer.read(100)


def test_mirror_second_write_blocks_until_read():
    peer = mirror_peer()
    peer.write(b"one")
    with pytest.raises(BlockingIOError):
        peer.write(b"two")
    assert peer.read(100) == b"one"
    peer.write(b"two")
    assert peer.read(100) == b"two"


def test_mirror_close_gives_eof_then_broken_pipe():
    peer = mirror_peer()
    peer.writer.close()
    assert peer.read(100) == b""
    with pytest.raises(BrokenPipeError):
        peer.read(100)


def test_mirror_shutdown_does_not_end():
    peer = mirror_peer()
    peer.shutdown()
    peer.write(b"still")
    assert peer.read(100) == b"still"


def test_mirror_splits_long_message():
    peer = mirror_peer()
    peer.write(b"abcdefg")
    parts = [peer.read(3), peer.read(3), peer.read(3)]
    assert b"".join(parts) == b"abcdefg"
    assert all(len(p) <= 3 for p in parts)


def test_mirror_drops_long_message_in_drop_mode():
    peer = mirror_peer()
    peer.reader.debt_handling = DebtHandling.DROP_MESSAGE
    peer.write(b"abcdefg")
    with pytest.raises(BlockingIOError):
        peer.read(3)


def test_literal_reply_answers_each_write():
    peer = literal_reply_peer(b'{"status":"OK"}')
    assert peer.write(b"anything") == 8
    assert peer.read(100) == b'{"status":"OK"}'
    peer.write(b"x")
    assert peer.read(100) == b'{"status":"OK"}'


def test_literal_reply_without_write_blocks():
    peer = literal_reply_peer(b"reply")
    with pytest.raises(BlockingIOError):
        peer.read(100)


def test_literal_reply_split_over_reads():
    peer = literal_reply_peer(b"0123456789")
    peer.write(b"q")
    assert peer.read(4) + peer.read(4) + peer.read(4) == b"0123456789"


def test_literal_reply_closed():
    peer = literal_reply_peer(b"reply")
    peer.writer.close()
    with pytest.raises(BrokenPipeError):
        peer.read(100)