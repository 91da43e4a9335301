"""Command-line parsing: turning arguments into options and endpoint addresses."""

from __future__ import annotations

import argparse
import ipaddress
import re
import sys
from pathlib import Path
from typing import Optional

from .options import DebtHandling, Options, SocksSocketAddr, StaticFile

USAGE = (
    "sockrelay ws://URL | wss://URL               (simple client)\n"
    "    sockrelay -s port                            (simple server)\n"
    "    sockrelay [FLAGS] [OPTIONS] <addr1> <addr2>  (advanced mode)"
)

EPILOG = """
Basic examples:
  Command-line websocket client:
    sockrelay ws://localhost:1234/

  WebSocket server
    sockrelay -s 8080

  WebSocket-to-TCP proxy:
    sockrelay --binary ws-l:127.0.0.1:8080 tcp:127.0.0.1:5678
"""

_DIGITS = re.compile(r"[0-9]+")


def _parse_port(text: str) -> int:
    if not _DIGITS.fullmatch(text):
        raise ValueError(f"invalid port number: {text!r}")
    port = int(text)
    if port > 0xFFFF:
        raise ValueError(f"port {port} is out of range")
    return port


def interpret_custom_header(text: str) -> tuple[str, bytes]:
    """Split ``Name: value`` into the header name and its value bytes.

    A single space after the colon is dropped.
    """
    name, colon, value = text.partition(":")
    if not colon:
        raise ValueError("Argument to --header must contain `:` character")
    if value.startswith(" "):
        value = value[1:]
    return name, value.encode()


def interpret_static_file(text: str) -> StaticFile:
    """Parse ``<URI>:<Content-Type>:<file-path>``."""
    uri, colon1, rest = text.partition(":")
    content_type, colon2, path = rest.partition(":")
    if not colon1 or not colon2:
        raise ValueError("Argument to --static-file must contain two colons (`:`)")
    if not uri or not content_type or not path:
        raise ValueError("Empty URI, content-type or path in --static-file parameter")
    return StaticFile(uri=uri, file=Path(path), content_type=content_type)


def interpret_socks_destination(text: str) -> SocksSocketAddr:
    """Parse ``host:port`` where host is an IPv4, IPv6 address or a name."""
    host, colon, port_text = text.rpartition(":")
    if not colon:
        raise ValueError("Argument to --socks5-destination must contain a `:` character")
    port = _parse_port(port_text)
    parsed_host: object
    try:
        parsed_host = ipaddress.IPv4Address(host)
    except ValueError:
        try:
            parsed_host = ipaddress.IPv6Address(host)
        except ValueError:
            parsed_host = host
    return SocksSocketAddr(host=parsed_host, port=port)


def _interpret_socket_addr(text: str) -> tuple[str, int]:
    """Parse an IP socket address: ``1.2.3.4:5`` or ``[::1]:5``."""
    if text.startswith("["):
        host, sep, port_text = text[1:].partition("]:")
        if not sep:
            raise ValueError(f"invalid socket address: {text!r}")
        ip = ipaddress.IPv6Address(host)
    else:
        host, colon, port_text = text.rpartition(":")
        if not colon:
            raise ValueError(f"invalid socket address: {text!r}")
        ip = ipaddress.IPv4Address(host)
    return str(ip), _parse_port(port_text)


def _read_bytes(path: str) -> bytes:
    return Path(path).read_bytes()


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the command line."""
    parser = argparse.ArgumentParser(
        prog="sockrelay",
        usage=USAGE,
        epilog=EPILOG,
        add_help=False,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add = parser.add_argument
    add("addr1", nargs="?", help="WebSocket URL in simple mode, first address in advanced mode")
    add("addr2", nargs="?", help="Second address in advanced mode")

    add("-u", "--unidirectional", action="store_true",
        help="Inhibit copying data in one direction")
    add("-U", "--unidirectional-reverse", action="store_true",
        help="Inhibit copying data in the other direction")
    add("-E", "--exit-on-eof", action="store_true",
        help="Close a data transfer direction if the other one reached EOF")
    add("-t", "--text", dest="websocket_text_mode", action="store_true",
        help="Send message to WebSockets as text messages")
    add("-b", "--binary", dest="websocket_binary_mode", action="store_true",
        help="Send message to WebSockets as binary messages")
    add("--oneshot", action="store_true", help="Serve only once")
    add("-h", "--help", nargs="?", const="short", default=None,
        help="See the help: short, long or doc")
    add("--dump-spec", dest="dumpspec", action="store_true",
        help="[A] Instead of running, dump the specifiers representation")
    add("--protocol", dest="websocket_protocol",
        help="Specify this Sec-WebSocket-Protocol: header when connecting")
    add("--server-protocol", dest="websocket_reply_protocol",
        help="Force this Sec-WebSocket-Protocol: header when accepting a connection")
    add("--udp-oneshot", dest="udp_oneshot_mode", action="store_true",
        help="[A] udp-listen: replies only one packet per client")
    add("--unlink", dest="unlink_unix_socket", action="store_true",
        help="[A] Unlink listening UNIX socket before binding to it")
    add("--exec-args", nargs=argparse.REMAINDER, default=[],
        help="[A] Arguments for the `exec:` specifier. Must be the last option")
    add("--ws-c-uri", default="ws://0.0.0.0/", help="[A] URI to use for ws-c: overlay")
    add("--linemode-strip-newlines", action="store_true",
        help="[A] Don't include trailing \\n or \\r\\n in WebSocket messages")
    add("--no-line", dest="no_auto_linemode", action="store_true",
        help="[A] Don't automatically insert line-to-message transformation")
    add("--origin", help="Add Origin HTTP header to websocket client request")
    add("-H", "--header", dest="custom_headers", action="append", default=[],
        type=interpret_custom_header,
        help="Add custom HTTP header to websocket client request")
    add("--server-header", dest="custom_reply_headers", action="append", default=[],
        type=interpret_custom_header,
        help="Add custom HTTP header to websocket upgrade reply")
    add("--websocket-version", help="Override the Sec-WebSocket-Version value")
    add("-n", "--no-close", dest="websocket_dont_close", action="store_true",
        help="Don't send Close message to websocket on EOF")
    add("-1", "--one-message", action="store_true",
        help="Send and/or receive only one message")
    add("-s", "--server-mode", action="store_true",
        help="Simple server mode: specify TCP port or addr:port as single argument")
    add("--no-fixups", dest="no_lints", action="store_true",
        help="[A] Don't perform automatic command-line fixups")
    add("-B", "--buffer-size", type=int, default=65536, help="Maximum message size, in bytes")
    add("-v", dest="verbosity", action="count", default=0,
        help="Increase verbosity level to info or further")
    add("-q", dest="quiet", action="store_true",
        help="Suppress all diagnostic messages, except of startup errors")
    add("--queue-len", dest="broadcast_queue_len", type=int, default=16,
        help="[A] Number of pending queued messages for broadcast reuser")
    add("-S", "--strict", dest="strict_mode", action="store_true",
        help="Strict line/message mode: drop too long messages and incomplete lines")
    add("-0", "--null-terminated", dest="linemode_zero_terminated", action="store_true",
        help="Use \\0 instead of \\n for linemode")
    add("--restrict-uri", help="When serving a websocket, only accept the given URI")
    add("-F", "--static-file", dest="serve_static_files", action="append", default=[],
        type=interpret_static_file,
        help="Serve a named static file: <URI>:<Content-Type>:<file-path>")
    add("-e", "--set-environment", dest="exec_set_env", action="store_true",
        help="Set SOCKRELAY_* environment variables when doing exec:/cmd:/sh-c:")
    add("--reuser-send-zero-msg-on-disconnect", action="store_true",
        help="[A] Make reuse-raw: send a zero-length message when a client disconnects")
    add("--exec-sighup-on-zero-msg", dest="process_zero_sighup", action="store_true",
        help="[A] Send SIGHUP to the child on an incoming zero-length message")
    add("--exec-sighup-on-stdin-close", dest="process_exit_sighup", action="store_true",
        help="[A] Send SIGHUP to the child when input is closed")
    add("--jsonrpc", action="store_true",
        help="Format messages you type as JSON RPC 2.0 method calls")
    add("--socks5-destination", dest="socks_destination", type=interpret_socks_destination,
        help="[A] Examples: 1.2.3.4:5678  2600:::80  hostname:5678")
    add("--socks5", dest="auto_socks5", type=_interpret_socket_addr,
        help="Use specified address:port as a SOCKS5 proxy")
    add("--socks5-bind-script", help="[A] Script to run in `socks5-bind:` mode")
    add("--tls-domain", "--ssl-domain", dest="tls_domain",
        help="[A] Domain for SNI or certificate verification")
    add("--pkcs12-der", type=_read_bytes,
        help="Pkcs12 archive needed to accept TLS connections")
    add("--pkcs12-passwd", help="Password for the --pkcs12-der archive")
    add("-k", "--insecure", dest="tls_insecure", action="store_true",
        help="Accept invalid certificates and hostnames while connecting to TLS")
    add("--conncap", dest="max_parallel_conns", type=int,
        help="Maximum number of simultaneous connections for listening mode")
    add("--ping-interval", dest="ws_ping_interval", type=int,
        help="Send WebSocket pings each this number of seconds")
    add("--ping-timeout", dest="ws_ping_timeout", type=int,
        help="Drop WebSocket connection if Pong is not received for this number of seconds")
    return parser


_COPIED_FIELDS = (
    "websocket_protocol",
    "websocket_reply_protocol",
    "udp_oneshot_mode",
    "unidirectional",
    "unidirectional_reverse",
    "exit_on_eof",
    "oneshot",
    "unlink_unix_socket",
    "ws_c_uri",
    "linemode_strip_newlines",
    "origin",
    "websocket_version",
    "websocket_dont_close",
    "one_message",
    "no_auto_linemode",
    "buffer_size",
    "broadcast_queue_len",
    "linemode_zero_terminated",
    "restrict_uri",
    "exec_set_env",
    "reuser_send_zero_msg_on_disconnect",
    "process_zero_sighup",
    "process_exit_sighup",
    "socks_destination",
    "auto_socks5",
    "socks5_bind_script",
    "tls_domain",
    "pkcs12_der",
    "pkcs12_passwd",
    "tls_insecure",
    "max_parallel_conns",
    "ws_ping_interval",
    "ws_ping_timeout",
)


def options_from_args(args: argparse.Namespace) -> Options:
    """Build ``Options`` from parsed arguments.

    Text mode is the default when neither ``--text`` nor ``--binary`` is given.
    """
    if args.websocket_binary_mode and args.websocket_text_mode:
        raise ValueError("--binary and --text are mutually exclusive")
    options = Options(**{name: getattr(args, name) for name in _COPIED_FIELDS})
    options.websocket_text_mode = not args.websocket_binary_mode
    options.exec_args = list(args.exec_args)
    options.custom_headers = list(args.custom_headers)
    options.custom_reply_headers = list(args.custom_reply_headers)
    options.serve_static_files = list(args.serve_static_files)
    if options.websocket_text_mode:
        options.read_debt_handling = DebtHandling.WARN
    if args.strict_mode:
        options.read_debt_handling = DebtHandling.DROP_MESSAGE
        options.linemode_strict = True
    return options


def _notice(args: argparse.Namespace, message: str) -> None:
    if not args.quiet:
        print(message, file=sys.stderr)


def resolve_addresses(args: argparse.Namespace, options: Options) -> tuple[str, str]:
    """Turn the positional arguments into the two endpoint addresses.

    In simple server mode ``options.exit_on_eof`` is switched on.
    """
    addr1: Optional[str] = args.addr1
    addr2: Optional[str] = args.addr2
    if addr1 is None and addr2 is None:
        raise ValueError("No URL specified")
    if addr1 is not None and addr2 is not None:
        if args.jsonrpc:
            raise ValueError(
                "--jsonrpc option is only for simple (single-argument) mode.\n"
                "Use `jsonrpc:` specifier manually if you want it in advanced mode."
            )
        if args.server_mode:
            raise ValueError(
                "--server and two positional arguments are incompatible.\n"
                "Build server command line without -s option, but with `listen` address types"
            )
        return addr1, addr2
    if addr1 is None:
        raise ValueError("Second address given without the first one")

    if args.server_mode:
        options.exit_on_eof = True
        scheme, prefix = ("wss", "wss-l") if options.pkcs12_der is not None else ("ws", "ws-l")
        listen = addr1 if ":" in addr1 else f"127.0.0.1:{addr1}"
        _notice(args, f"Listening on {scheme}://{listen}/")
        return f"{prefix}:{listen}", "-"

    if not (addr1.startswith("ws://") or addr1.startswith("wss://")):
        _notice(args, "Specify ws:// or wss:// URI to connect to a websocket")
        raise ValueError("Invalid command-line parameters")
    return "-", addr1