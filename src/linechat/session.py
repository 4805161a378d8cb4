"""Session controller: phase state machine, input loop, and command dispatch."""

from __future__ import annotations

import os
import sys
import threading
from typing import Callable, Dict, Optional

from linechat.commands import CommandRegistry, parse_command
from linechat.config import (
    COMMAND_PREFIX,
    PROMPT_CONNECTED,
    PROMPT_DESIRED_NICK,
    PROMPT_DISCONNECTED,
    QUIT_WORD,
)
from linechat.connection import ChatConnection, ChatConnectionError
from linechat.debug_log import DebugLogWriter
from linechat.output import OutputCoordinator
from linechat.types import ConnectionPhase

ReadLine = Callable[[str], Optional[str]]
Terminate = Callable[[int], None]

_PROMPTS: Dict[ConnectionPhase, str] = {
    ConnectionPhase.REGISTRATION: PROMPT_DESIRED_NICK,
    ConnectionPhase.CONNECTED: PROMPT_CONNECTED,
    ConnectionPhase.DISCONNECTED: PROMPT_DISCONNECTED,
}


def prompt_for(phase: ConnectionPhase) -> str:
    return _PROMPTS[phase]


def hard_exit(code: int) -> None:
    """Terminate the whole process now, without unwinding other threads."""
    for stream in (sys.stdout, sys.stderr):
        try:
            stream.flush()
        except (OSError, ValueError):
            pass
    os._exit(code)


def _strip_newline(line: str) -> str:
    return line.rstrip("\n")


class SessionController:
    """Drives one interactive session against a connection.

    Only the thread calling `run`/`run_once` mutates `phase`; other threads
    ask for a transition with `request_disconnect`.
    """

    def __init__(
        self,
        *,
        connection: ChatConnection,
        registry: CommandRegistry,
        output: OutputCoordinator,
        read_line: ReadLine,
        debug_log: Optional[DebugLogWriter] = None,
        terminate: Terminate = hard_exit,
        initial_phase: ConnectionPhase = ConnectionPhase.REGISTRATION,
    ) -> None:
        self._connection = connection
        self._registry = registry
        self._output = output
        self._read_line = read_line
        self._debug_log = debug_log or DebugLogWriter.disabled()
        self._terminate = terminate
        self._phase = initial_phase
        self._disconnect_requested = threading.Event()
        self.current_channel: Optional[str] = None

    @property
    def phase(self) -> ConnectionPhase:
        return self._phase

    @property
    def connection(self) -> ChatConnection:
        return self._connection

    @property
    def output(self) -> OutputCoordinator:
        return self._output

    def current_prompt(self) -> str:
        return prompt_for(self._phase)

    def request_disconnect(self) -> None:
        self._disconnect_requested.set()

    def run(self) -> int:
        while self.run_once():
            pass
        return 0

    def run_once(self) -> bool:
        """Handle one line for the current phase; `False` once input has ended."""
        self._apply_pending_disconnect()
        if self._phase is ConnectionPhase.REGISTRATION:
            return self._run_registration()
        if self._phase is ConnectionPhase.CONNECTED:
            return self._run_connected()
        return self._run_disconnected()

    def _apply_pending_disconnect(self) -> None:
        if not self._disconnect_requested.is_set():
            return
        self._disconnect_requested.clear()
        if self._phase is not ConnectionPhase.DISCONNECTED:
            self._transition(ConnectionPhase.DISCONNECTED)

    def _transition(self, phase: ConnectionPhase) -> None:
        previous = self._phase
        self._phase = phase
        self._debug_log.write_entry(
            component="session",
            kind="phase",
            message="phase {0} -> {1}".format(previous.value, phase.value),
        )

    def _run_registration(self) -> bool:
        line = self._read_line(self.current_prompt())
        if line is None:
            self._output.print_line("nick-read failed, exit")
            return False

        nick = _strip_newline(line)
        try:
            self._connection.register(nick)
        except ChatConnectionError as exc:
            self._debug_log.write_entry(
                level="warn",
                component="session",
                kind="registration_failed",
                message=str(exc),
                data=exc.details,
            )
            self._output.print_line("registration error: {0}".format(exc))
            return True

        self._transition(ConnectionPhase.CONNECTED)
        return True

    def _run_connected(self) -> bool:
        line = self._read_line(self.current_prompt())
        if line is None:
            return False
        cleaned = _strip_newline(line)

        parsed = parse_command(cleaned, COMMAND_PREFIX)
        if parsed is None:
            self._connection.send(cleaned)
            return True

        name, rest = parsed
        descriptor = self._registry.find(name)
        if descriptor is None:
            self._debug_log.write_entry(
                component="session",
                kind="unknown_command",
                message=name,
            )
            self._output.print_line("unknown command: {0}".format(name))
            return True

        self._debug_log.write_entry(
            component="session",
            kind="dispatch",
            message=name,
            data={"argument_text": rest},
        )
        descriptor.dispatch(rest, self)
        return True

    def _run_disconnected(self) -> bool:
        line = self._read_line(self.current_prompt())
        if line is None:
            return False
        if _strip_newline(line) == QUIT_WORD:
            self._debug_log.write_entry(component="session", kind="quit", message="quitting")
            self._terminate(0)
        return True
