"""Core typed contracts shared by the controller, output worker, and listener."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum


def now_ms() -> int:
    return int(time.time() * 1000)


class ConnectionPhase(Enum):
    REGISTRATION = "registration"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class UiMessage:
    """One unit of terminal output, consumed exactly once by the output worker."""

    text: str


@dataclass(frozen=True)
class UpdatePrompt(UiMessage):
    pass


@dataclass(frozen=True)
class PrintLine(UiMessage):
    pass


@dataclass(frozen=True)
class InboundEvent:
    raw: str
    ts_ms: int = field(default_factory=now_ms)

    def __str__(self) -> str:
        return self.raw
