# sockrelay

Building blocks for moving bytes between two endpoints: TCP and UDP sockets,
files, child processes and in-memory endpoints. On top of those sit filters
that turn a byte stream into messages and back, a JSON-RPC formatter for
manual testing of RPC services, two ways of letting many clients share one
upstream connection, and a small HTTP responder for serving static files.

Everything is plain Python with no third-party dependencies.

## Peers

A **peer** is an active connection with a reading half and a writing half.
`sockrelay.peer.Peer(reader, writer)` exposes `read(size)`, `write(data)`,
`flush()` and `shutdown()`. By convention a reader returns `b""` at end of
stream, raises `BlockingIOError` when nothing is available yet and
`BrokenPipeError` when its source is gone. `Peer.shutdown()` calls the
writer's `shutdown()` if it has one and otherwise flushes it.
`sockrelay.peer.ClientInfo(uri, client_addr)` carries details about an
accepted client from the listening side to the other side.

Peers come from these constructors:

| Module               | Constructors                                                            |
|----------------------|-------------------------------------------------------------------------|
| `sockrelay.net`      | `tcp_connect_peer`, `tcp_listen`, `udp_connect_peer`, `udp_listen_peer` |
| `sockrelay.files`    | `read_file_peer`, `write_file_peer`, `append_file_peer`                 |
| `sockrelay.process`  | `cmd_peer`, `sh_c_peer`, `exec_peer`                                    |
| `sockrelay.mirror`   | `mirror_peer`, `literal_reply_peer`                                     |

Notes on each:

* `tcp_listen(host, port, client_info=None)` returns an iterator of accepted
  connections (a peer each). It can be used as a context manager and stops
  iterating once closed; if `client_info` is given, its `client_addr` is set
  to each new client's `host:port`. Accept errors are logged and retried
  after half a second.
* `UdpPeer` is both halves of a UDP endpoint. `udp_connect_peer` talks to one
  fixed address from a random local port. `udp_listen_peer` replies to the
  sender seen most recently; before any datagram has arrived a write raises
  `BlockingIOError`. With `oneshot=True` only one reply is sent per datagram
  received.
* `read_file_peer` reads a file and discards writes; `write_file_peer`
  truncates and writes; `append_file_peer` appends, creating the file.
* `cmd_peer` runs a command line with `cmd /C` on Windows and `sh -c`
  elsewhere, `sh_c_peer` always with `sh -c`, and `exec_peer(program, args)`
  runs a program directly. The peer reads the child's stdout and writes its
  stdin. Given a `ClientInfo`, the child gets `SOCKRELAY_CLIENT` and
  `SOCKRELAY_URI` in its environment. With `zero_sighup` an empty write sends
  SIGHUP to the child; with `exit_sighup` shutting down does so before stdin
  is closed. `ProcessPeer.close()` (or using it as a context manager) closes
  the pipes and reaps the child.
* `mirror_peer()` reads back every chunk written to it, one message per
  write; a second write before the first is read raises `BlockingIOError`.
  `literal_reply_peer(content)` answers every write with `content`.
  `MirrorReader` splits or drops messages that do not fit the read size,
  according to `sockrelay.options.DebtHandling`.

## Filters

Filters wrap a peer and change what its reading half returns:

* `sockrelay.lines.packet2line_peer(peer, null_terminated)` makes every
  message one line: inner newlines and carriage returns become spaces and a
  single `\n` is appended (in NUL mode, a single zero byte).
* `sockrelay.lines.line2packet_peer(peer, retain_newlines, strict, null_terminated)`
  splits a byte stream into one message per line. Too long lines are split,
  or dropped in strict mode; an incomplete last line is delivered, or thrown
  away in strict mode.
* `sockrelay.jsonrpc.jsonrpc_peer(peer)` turns input such as `abc 1,2` into
  `{"jsonrpc":"2.0","id":1, "method":"abc", "params":[1,2]}` with an id that
  increases per message; `format_jsonrpc(message, request_id)` formats a
  single message. Parameters that already start with `{` or `[` are not
  wrapped in brackets.

## Copying

`sockrelay.copy.copy(reader, writer, options)` moves everything from a reader
to a writer and returns the number of bytes copied. It flushes after every
write, treats `BrokenPipeError` from the reader as end of input and raises
`OSError` if the writer accepts zero bytes. `CopyOptions` sets
`stop_on_reader_zero_read`, `once` (forward only the first read) and
`buffer_size`.

```python
from sockrelay.mirror import mirror_peer

peer = mirror_peer()
peer.write(b"hello")
peer.flush()
print(peer.read(65536))   # b"hello"
```

```python
from sockrelay.copy import CopyOptions, copy
from sockrelay.files import read_file_peer
from sockrelay.net import tcp_connect_peer

source = read_file_peer("payload.bin")
target = tcp_connect_peer("127.0.0.1", 5678)
copy(source, target, CopyOptions(buffer_size=65536))
```

## Sharing one upstream connection

Both reusers take a factory that creates the inner peer, called only for the
first client.

* `sockrelay.reuse.ConnectionReuser(send_zero_msg_on_disconnect)` hands each
  client a handle on the same inner peer; replies reach whichever client
  reads first. Shutting a handle down does not shut the inner peer down, but
  can write an empty message to it.
* `sockrelay.broadcast.BroadcastReuser(buffer_size, queue_len)` sends every
  client's writes to the inner peer and copies each chunk read from the inner
  peer into every client's queue. `pump()` moves what is currently readable
  (client reads call it too) and returns `False` once the inner peer has
  finished. Full queues drop messages, and chunks arriving with no client
  connected are dropped.

```python
from sockrelay.broadcast import BroadcastReuser
from sockrelay.mirror import mirror_peer

hub = BroadcastReuser()
alice = hub.connect(mirror_peer)
bob = hub.connect(mirror_peer)
alice.write(b"hi")
print(bob.read(1024))     # b"hi"
```

## Static files over HTTP

`sockrelay.http_serve.http_serve(writer, request, static_files)` answers a
plain HTTP request, given as `(method, uri)` or `None`, by writing a reply to
`writer` and returning the number of bytes written. Only `GET` of an absolute
path that matches a `StaticFile` is served with `200 OK` and the file's
content; other requests get a 400, 404 or 500 text reply.
`choose_reply(method, uri, static_files)` and
`static_file_header(length, content_type)` expose the pieces.

## Options and argument parsing

`sockrelay.options.Options` collects the settings: text or binary mode,
buffer size (65536 by default), broadcast queue length (16 by default),
line-mode behaviour, static files (`StaticFile`), a SOCKS5 destination
(`SocksSocketAddr`), and `DebtHandling` (`SILENT`, `WARN`, `DROP_MESSAGE`).

`sockrelay.cli` turns command-line style arguments into those settings:
`build_parser()` returns an `argparse` parser, `options_from_args(args)`
builds `Options` (text mode unless `--binary`; `--text` with `--binary` is a
`ValueError`), and `resolve_addresses(args, options)` returns the two address
strings: in simple server mode (`-s 8080`) `("ws-l:127.0.0.1:8080", "-")`, in
simple client mode `("-", url)` for a `ws://` or `wss://` URL. The helpers
`interpret_custom_header`, `interpret_static_file` and
`interpret_socks_destination` parse single option values.

## What this package does not do

* There is no command to run; `sockrelay.cli` only parses arguments.
* Address strings such as `ws-l:127.0.0.1:8080` or `tcp:host:port` are not
  interpreted: nothing turns them into peers. Peers are built by calling the
  constructors above directly.
* There is no WebSocket client or server, no TLS, no SOCKS5 client and no
  UNIX socket support; the options for them are only stored.
* Nothing runs both directions of a relay at once; `copy` moves one
  direction, synchronously.

## Running the tests

Install the package with the `test` extra and run `pytest` from the project
directory.