"""Connection contract plus a line-oriented TCP implementation."""

from __future__ import annotations

import queue
import socket
import threading
from typing import Any, Dict, Iterator, Optional, Protocol

from linechat.debug_log import DebugLogWriter
from linechat.types import InboundEvent

LINE_TERMINATOR = "\r\n"
WELCOME_REPLY = "001"
NICK_ERROR_REPLIES = frozenset({"431", "432", "433", "436"})


class ChatConnectionError(RuntimeError):
    """Raised when the remote session rejects or loses the connection."""

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self._details: Dict[str, Any] = {}
        for key, value in details.items():
            if value is None:
                continue
            self._details[str(key)] = value

    @property
    def details(self) -> Dict[str, Any]:
        return dict(self._details)


class ConnectionOpenError(ChatConnectionError):
    """Raised when the socket cannot be opened."""


class RegistrationError(ChatConnectionError):
    """Raised when the server refuses the requested nickname."""


class ChatConnection(Protocol):
    def register(self, nick: str) -> None:
        """Raise `ChatConnectionError` when registration fails."""

    def send(self, text: str) -> None:
        ...

    def events(self) -> Iterator[InboundEvent]:
        ...

    def close(self) -> None:
        ...


def _command_and_params(line: str) -> tuple[str, str]:
    """Return (command, params) of one line, skipping an optional `:source` prefix."""
    text = line
    if text.startswith(":"):
        _, _, text = text.partition(" ")
    command, _, params = text.partition(" ")
    return command.upper(), params


class TcpLineConnection:
    """CRLF-framed text lines over TCP, read by one daemon thread."""

    def __init__(
        self,
        host: str,
        port: int,
        debug_log: Optional[DebugLogWriter] = None,
    ) -> None:
        self._host = host
        self._port = int(port)
        self._debug_log = debug_log or DebugLogWriter.disabled()
        self._sock: Optional[socket.socket] = None
        self._reader: Optional[threading.Thread] = None
        self._events: "queue.Queue[Optional[InboundEvent]]" = queue.Queue()
        self._replies: "queue.Queue[Optional[str]]" = queue.Queue()
        self._write_lock = threading.Lock()
        self._closed = False
        self._registering = threading.Event()

    @classmethod
    def from_socket(
        cls,
        sock: socket.socket,
        debug_log: Optional[DebugLogWriter] = None,
    ) -> "TcpLineConnection":
        connection = cls(host="", port=0, debug_log=debug_log)
        connection._attach(sock)
        return connection

    def connect(self) -> None:
        if self._sock is not None:
            return
        try:
            sock = socket.create_connection((self._host, self._port))
        except OSError as exc:
            raise ConnectionOpenError(
                "{0}:{1}: {2}".format(self._host, self._port, exc),
                host=self._host,
                port=self._port,
            ) from exc
        self._attach(sock)

    def register(self, nick: str) -> None:
        if not nick or any(ch.isspace() for ch in nick):
            raise RegistrationError("invalid nickname: {0!r}".format(nick), nick=nick)
        if self._sock is None:
            raise RegistrationError("connection is not open", nick=nick)

        self._drain_replies()
        self._registering.set()
        try:
            self._write_line("NICK {0}".format(nick))
            self._write_line("USER {0} 0 * :{0}".format(nick))
            while True:
                reply = self._replies.get()
                if reply is None:
                    raise RegistrationError("connection closed", nick=nick)
                command, params = _command_and_params(reply)
                if command == WELCOME_REPLY:
                    return
                if command in NICK_ERROR_REPLIES:
                    raise RegistrationError(
                        params.split(":", 1)[-1].strip() or "nickname rejected",
                        nick=nick,
                        code=command,
                    )
        finally:
            self._registering.clear()

    def send(self, text: str) -> None:
        try:
            self._write_line(text)
        except ChatConnectionError as exc:
            self._debug_log.write_entry(
                level="warn",
                component="connection",
                kind="send_failed",
                message=str(exc),
            )

    def events(self) -> Iterator[InboundEvent]:
        while True:
            event = self._events.get()
            if event is None:
                # Leave the sentinel for any later iterator.
                self._events.put(None)
                return
            yield event

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        sock = self._sock
        if sock is None:
            return
        try:
            sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        sock.close()
        if self._reader is not None and self._reader.is_alive():
            self._reader.join(timeout=1)

    def _attach(self, sock: socket.socket) -> None:
        self._sock = sock
        self._reader = threading.Thread(
            target=self._read_loop,
            name="linechat-socket-reader",
            daemon=True,
        )
        self._reader.start()

    def _write_line(self, text: str) -> None:
        sock = self._sock
        if sock is None or self._closed:
            raise ChatConnectionError("connection is not open")
        payload = (text + LINE_TERMINATOR).encode("utf-8")
        with self._write_lock:
            try:
                sock.sendall(payload)
            except OSError as exc:
                raise ChatConnectionError("write failed: {0}".format(exc)) from exc

    def _drain_replies(self) -> None:
        while True:
            try:
                self._replies.get_nowait()
            except queue.Empty:
                return

    def _read_loop(self) -> None:
        sock = self._sock
        if sock is None:
            return
        try:
            with sock.makefile("r", encoding="utf-8", errors="replace", newline="") as reader:
                for raw in reader:
                    line = raw.rstrip("\r\n")
                    if not line:
                        continue
                    self._handle_line(line)
        except (OSError, ValueError) as exc:
            if not self._closed:
                self._debug_log.write_entry(
                    level="warn",
                    component="connection",
                    kind="read_failed",
                    message=str(exc),
                )
        finally:
            self._replies.put(None)
            self._events.put(None)

    def _handle_line(self, line: str) -> None:
        command, params = _command_and_params(line)
        if command == "PING":
            try:
                self._write_line("PONG {0}".format(params))
            except ChatConnectionError as exc:
                self._debug_log.write_entry(
                    level="warn",
                    component="connection",
                    kind="pong_failed",
                    message=str(exc),
                )
        if self._registering.is_set() and (
            command == WELCOME_REPLY or command in NICK_ERROR_REPLIES
        ):
            self._replies.put(line)
        self._events.put(InboundEvent(raw=line))
