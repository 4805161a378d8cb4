from __future__ import annotations

import threading
from pathlib import Path
from typing import Iterator, List, Optional

import pytest

from linechat.config import initialize_config, resolve_config_root
from linechat.connection import RegistrationError
from linechat.output import OutputCoordinator
from linechat.types import InboundEvent, UiMessage


@pytest.fixture
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    workspace = tmp_path / "workspace"
    workspace.mkdir(parents=True, exist_ok=True)

    monkeypatch.chdir(workspace)
    initialize_config(workspace_dir=workspace)

    return {
        "workspace": workspace,
        "config_root": resolve_config_root(workspace),
    }


class FakeConnection:
    """In-memory connection; `refuse` lists nicknames that fail registration."""

    def __init__(self, refuse: Optional[List[str]] = None) -> None:
        self.refuse = list(refuse or [])
        self.registered: List[str] = []
        self.sent: List[str] = []
        self.closed = threading.Event()
        self._hung_up = threading.Event()
        self._incoming: List[InboundEvent] = []

    def push(self, raw: str) -> None:
        self._incoming.append(InboundEvent(raw=raw))

    def register(self, nick: str) -> None:
        self.registered.append(nick)
        if nick in self.refuse:
            raise RegistrationError("Nickname is already in use", nick=nick, code="433")

    def send(self, text: str) -> None:
        self.sent.append(text)

    def events(self) -> Iterator[InboundEvent]:
        for event in list(self._incoming):
            yield event
        self._hung_up.wait()

    def hang_up(self) -> None:
        """End the inbound stream the way a server closing the socket would."""
        self._hung_up.set()

    def close(self) -> None:
        self.closed.set()
        self._hung_up.set()


class ScriptedInput:
    """`read_line` replacement replaying canned lines; `None` means end of input."""

    def __init__(self, *lines: Optional[str]) -> None:
        self._lines = list(lines)
        self.prompts: List[str] = []

    def __call__(self, prompt: str) -> Optional[str]:
        self.prompts.append(prompt)
        if not self._lines:
            return None
        return self._lines.pop(0)


class RecordingOutput(OutputCoordinator):
    """Captures submitted messages instead of rendering them."""

    def __init__(self) -> None:
        super().__init__()
        self.messages: List[UiMessage] = []

    def submit(self, message: UiMessage) -> None:
        self.messages.append(message)


@pytest.fixture
def connection() -> FakeConnection:
    return FakeConnection()


@pytest.fixture
def recording_output() -> RecordingOutput:
    return RecordingOutput()


@pytest.fixture
def scripted_input():
    return ScriptedInput


@pytest.fixture
def connection_factory():
    return FakeConnection
