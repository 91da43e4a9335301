import ipaddress
from pathlib import Path

import pytest

from sockrelay.options import DebtHandling, Options, SocksSocketAddr, StaticFile


def test_default_sizes():
    opts = Options()
    assert opts.buffer_size == 65536
    assert opts.broadcast_queue_len == 16


def test_default_debt_handling_is_silent():
    assert Options().read_debt_handling is DebtHandling.SILENT


def test_list_defaults_are_independent():
    a = Options()
    b = Options()
    a.exec_args.append("x")
    assert b.exec_args == []


def test_secret_fields_hidden_from_repr():
    password = "password"
    opts = Options(pkcs12_der=b"\x01\x02", pkcs12_passwd=password)
    text = repr(opts)
    assert "pkcs12_passwd" not in text
    assert "pkcs12_der" not in text
    assert "buffer_size" in text


def test_static_file_converts_path():
    sf = StaticFile(uri="/index.html", file="index.html", content_type="text/html")
    assert sf.file == Path("index.html")
    assert sf.uri == "/index.html"


def test_socks_addr_ipv6_formatting():
    addr = SocksSocketAddr(ipaddress.IPv6Address("::1"), 80)
    assert str(addr) == "[::1]:80"


def test_socks_addr_name_formatting():
    addr = SocksSocketAddr("hostname", 5678)
    assert str(addr) == "hostname:5678"


def test_socks_addr_rejects_bad_port():
    with pytest.raises(ValueError):
        SocksSocketAddr("hostname", 70000)