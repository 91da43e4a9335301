import socket

import pytest

from sockrelay.net import (
    UdpPeer,
    format_address,
    tcp_connect_peer,
    tcp_listen,
    udp_connect_peer,
    udp_listen_peer,
)
from sockrelay.peer import ClientInfo

TIMEOUT = 5


@pytest.fixture
def tcp_server():
    server = socket.create_server(("127.0.0.1", 0))
    server.settimeout(TIMEOUT)
    yield server
    server.close()


@pytest.fixture
def udp_socket():
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(TIMEOUT)
    yield sock
    sock.close()


def test_format_address_ipv4_and_ipv6():
    assert format_address(("127.0.0.1", 80)) == "127.0.0.1:80"
    assert format_address(("::1", 22, 0, 0)) == "[::1]:22"


def test_tcp_connect_exchanges_data(tcp_server):
    port = tcp_server.getsockname()[1]
    peer = tcp_connect_peer("127.0.0.1", port)
    conn, _ = tcp_server.accept()
    conn.settimeout(TIMEOUT)
    with conn:
        assert peer.write(b"hello") == 5
        assert conn.recv(100) == b"hello"
        conn.sendall(b"world")
        assert peer.read(100) == b"world"
        peer.shutdown()
        assert conn.recv(100) == b""
        conn.close()
        assert peer.read(100) == b""
    peer.reader.close()
    peer.writer.close()


def test_tcp_connect_refused():
    probe = socket.create_server(("127.0.0.1", 0))
    port = probe.getsockname()[1]
    probe.close()
    with pytest.raises(ConnectionRefusedError):
        tcp_connect_peer("127.0.0.1", port)


def test_tcp_listen_accepts_and_fills_client_info():
    info = ClientInfo()
    with tcp_listen("127.0.0.1", 0, info) as listener:
        port = listener.address[1]
        client = socket.create_connection(("127.0.0.1", port), timeout=TIMEOUT)
        with client:
            peer = next(listener)
            assert info.client_addr == "127.0.0.1:%d" % client.getsockname()[1]
            client.sendall(b"ping")
            assert peer.read(100) == b"ping"
            peer.write(b"pong")
            assert client.recv(100) == b"pong"
            peer.reader.close()
            peer.writer.close()
            assert client.recv(100) == b""


def test_tcp_listen_serves_multiple_connections():
    with tcp_listen("127.0.0.1", 0) as listener:
        port = listener.address[1]
        clients = [socket.create_connection(("127.0.0.1", port), timeout=TIMEOUT) for _ in range(2)]
        peers = [next(listener) for _ in range(2)]
        for index, (client, peer) in enumerate(zip(clients, peers)):
            client.sendall(bytes([index]))
            assert peer.read(10) == bytes([index])
            client.close()


def test_tcp_listen_stops_after_close():
    listener = tcp_listen("127.0.0.1", 0)
    listener.close()
    assert list(listener) == []
    with pytest.raises(StopIteration):
        next(listener)


def test_tcp_listen_bad_host():
    with pytest.raises(OSError):
        tcp_listen("256.1.1.1", 0)


def test_udp_connect_exchanges_datagrams(udp_socket):
    port = udp_socket.getsockname()[1]
    peer = udp_connect_peer("127.0.0.1", port)
    peer.reader.socket.settimeout(TIMEOUT)
    try:
        assert peer.write(b"hi") == 2
        data, address = udp_socket.recvfrom(100)
        assert data == b"hi"
        udp_socket.sendto(b"back", address)
        assert peer.read(100) == b"back"
    finally:
        peer.reader.close()


def test_udp_listen_write_before_any_client_would_block():
    peer = udp_listen_peer("127.0.0.1", 0)
    try:
        with pytest.raises(BlockingIOError):
            peer.write(b"x")
    finally:
        peer.reader.close()


def test_udp_listen_replies_to_last_sender(udp_socket):
    peer = udp_listen_peer("127.0.0.1", 0)
    handle = peer.reader
    handle.socket.settimeout(TIMEOUT)
    other = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    other.bind(("127.0.0.1", 0))
    other.settimeout(TIMEOUT)
    try:
        target = handle.local_address
        udp_socket.sendto(b"one", target)
        assert peer.read(100) == b"one"
        peer.write(b"r1")
        assert udp_socket.recv(100) == b"r1"
        peer.write(b"r2")
        assert udp_socket.recv(100) == b"r2"

        other.sendto(b"two", target)
        assert peer.read(100) == b"two"
        peer.write(b"r3")
        assert other.recv(100) == b"r3"
        assert handle.remote == other.getsockname()
    finally:
        other.close()
        handle.close()


def test_udp_listen_oneshot_sends_one_reply_per_datagram(udp_socket):
    peer = udp_listen_peer("127.0.0.1", 0, oneshot=True)
    handle = peer.reader
    handle.socket.settimeout(TIMEOUT)
    try:
        udp_socket.sendto(b"q", handle.local_address)
        assert peer.read(100) == b"q"
        peer.write(b"a")
        assert udp_socket.recv(100) == b"a"
        with pytest.raises(BlockingIOError):
            peer.write(b"b")
    finally:
        handle.close()


def test_udp_peer_halves_are_the_same_object():
    peer = udp_listen_peer("127.0.0.1", 0)
    try:
        assert peer.reader is peer.writer
        assert isinstance(peer.reader, UdpPeer)
        assert peer.reader.connected is False
    finally:
        peer.reader.close()