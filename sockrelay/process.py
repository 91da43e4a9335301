"""Endpoints backed by a child process's standard input and output."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import sys
from typing import Optional, Sequence

from .peer import ClientInfo, Peer

log = logging.getLogger(__name__)

ENV_CLIENT = "SOCKRELAY_CLIENT"
ENV_URI = "SOCKRELAY_URI"


class ProcessPeer:
    """Reads from a child's stdout and writes to its stdin.

    With ``zero_sighup`` an empty write sends SIGHUP to the child; with
    ``exit_sighup`` shutting down sends SIGHUP before closing stdin.
    """

    def __init__(
        self, process: subprocess.Popen, zero_sighup: bool = False, exit_sighup: bool = False
    ) -> None:
        self.process = process
        self.zero_sighup = zero_sighup
        self.exit_sighup = exit_sighup

    def _hangup(self) -> None:
        sighup = getattr(signal, "SIGHUP", None)
        if sighup is not None and self.process.poll() is None:
            self.process.send_signal(sighup)

    def read(self, size: int) -> bytes:
        return self.process.stdout.read(size) or b""

    def write(self, data: bytes) -> int:
        if self.zero_sighup and not data:
            self._hangup()
        written = self.process.stdin.write(data)
        return len(data) if written is None else written

    def flush(self) -> None:
        self.process.stdin.flush()

    def shutdown(self) -> None:
        if self.exit_sighup:
            self._hangup()
        self.process.stdin.close()

    def close(self, timeout: float = 5.0) -> None:
        """Close both pipes and reap the child, killing it if it lingers."""
        for stream in (self.process.stdin, self.process.stdout):
            if stream is not None and not stream.closed:
                try:
                    stream.close()
                except OSError:
                    pass
        try:
            self.process.wait(timeout)
        except subprocess.TimeoutExpired:
            self.process.kill()
            self.process.wait()

    def __enter__(self) -> "ProcessPeer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def _spawn(
    argv: Sequence[str],
    client_info: Optional[ClientInfo],
    zero_sighup: bool,
    exit_sighup: bool,
) -> Peer:
    env = None
    if client_info is not None:
        env = dict(os.environ)
        if client_info.client_addr is not None:
            env[ENV_CLIENT] = client_info.client_addr
        if client_info.uri is not None:
            env[ENV_URI] = client_info.uri
    process = subprocess.Popen(
        list(argv), stdin=subprocess.PIPE, stdout=subprocess.PIPE, env=env, bufsize=0
    )
    handle = ProcessPeer(process, zero_sighup, exit_sighup)
    return Peer(handle, handle)


def cmd_peer(
    command: str,
    client_info: Optional[ClientInfo] = None,
    zero_sighup: bool = False,
    exit_sighup: bool = False,
) -> Peer:
    """Run a command line with ``cmd /C`` on Windows or ``sh -c`` elsewhere."""
    if sys.platform == "win32":
        argv = ["cmd", "/C", command]
    else:
        argv = ["sh", "-c", command]
    return _spawn(argv, client_info, zero_sighup, exit_sighup)


def sh_c_peer(
    command: str,
    client_info: Optional[ClientInfo] = None,
    zero_sighup: bool = False,
    exit_sighup: bool = False,
) -> Peer:
    """Run a command line with ``sh -c`` on every platform."""
    return _spawn(["sh", "-c", command], client_info, zero_sighup, exit_sighup)


def exec_peer(
    program: str,
    args: Sequence[str] = (),
    client_info: Optional[ClientInfo] = None,
    zero_sighup: bool = False,
    exit_sighup: bool = False,
) -> Peer:
    """Run ``program`` directly, without a shell, with the given arguments."""
    return _spawn([program, *args], client_info, zero_sighup, exit_sighup)