"""Program-wide options shared by every connection endpoint."""

from __future__ import annotations

import enum
import ipaddress
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

HostAddress = Union[str, ipaddress.IPv4Address, ipaddress.IPv6Address]


class DebtHandling(enum.Enum):
    """What to do when a message does not fit into the reader's buffer."""

    SILENT = "silent"
    WARN = "warn"
    DROP_MESSAGE = "drop_message"


@dataclass(frozen=True)
class StaticFile:
    """A file served over plain HTTP to non-WebSocket requests."""

    uri: str
    file: Path
    content_type: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "file", Path(self.file))


@dataclass(frozen=True)
class SocksSocketAddr:
    """Destination host and port requested from a SOCKS5 proxy."""

    host: HostAddress
    port: int

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"port {self.port} is out of range")

    def __str__(self) -> str:
        if isinstance(self.host, ipaddress.IPv6Address):
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


@dataclass
class Options:
    """All tunables consulted while building and running connections."""

    websocket_text_mode: bool = False
    websocket_protocol: Optional[str] = None
    websocket_reply_protocol: Optional[str] = None
    udp_oneshot_mode: bool = False
    unidirectional: bool = False
    unidirectional_reverse: bool = False
    exit_on_eof: bool = False
    oneshot: bool = False
    unlink_unix_socket: bool = False
    exec_args: list[str] = field(default_factory=list)
    ws_c_uri: str = ""
    linemode_strip_newlines: bool = False
    linemode_strict: bool = False
    origin: Optional[str] = None
    custom_headers: list[tuple[str, bytes]] = field(default_factory=list)
    custom_reply_headers: list[tuple[str, bytes]] = field(default_factory=list)
    websocket_version: Optional[str] = None
    websocket_dont_close: bool = False
    one_message: bool = False
    no_auto_linemode: bool = False
    buffer_size: int = 65536
    broadcast_queue_len: int = 16
    read_debt_handling: DebtHandling = DebtHandling.SILENT
    linemode_zero_terminated: bool = False
    restrict_uri: Optional[str] = None
    serve_static_files: list[StaticFile] = field(default_factory=list)
    exec_set_env: bool = False
    reuser_send_zero_msg_on_disconnect: bool = False
    process_zero_sighup: bool = False
    process_exit_sighup: bool = False
    socks_destination: Optional[SocksSocketAddr] = None
    auto_socks5: Optional[tuple[str, int]] = None
    socks5_bind_script: Optional[str] = None
    tls_domain: Optional[str] = None
    pkcs12_der: Optional[bytes] = field(default=None, repr=False)
    pkcs12_passwd: Optional[str] = field(default=None, repr=False)
    tls_insecure: bool = False
    max_parallel_conns: Optional[int] = None
    ws_ping_interval: Optional[int] = None
    ws_ping_timeout: Optional[int] = None