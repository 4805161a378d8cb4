"""Background bridge from the connection's inbound events to the terminal."""

from __future__ import annotations

import threading
from typing import Callable, Iterable, Optional

from linechat.debug_log import DebugLogWriter
from linechat.types import InboundEvent

LineSink = Callable[[str], None]
PromptSource = Callable[[], str]


def format_event(event: InboundEvent) -> str:
    return "RX: {0}".format(event)


class EventListener:
    """Drains inbound events on a daemon thread.

    Lines go to `sink` (the output coordinator in the app) so they never
    interleave with prompts. When `prompt_redraw` is given, the prompt is
    redrawn after each event.
    """

    def __init__(
        self,
        events: Iterable[InboundEvent],
        sink: LineSink,
        *,
        prompt_redraw: Optional[LineSink] = None,
        prompt_source: Optional[PromptSource] = None,
        on_closed: Optional[Callable[[], None]] = None,
        debug_log: Optional[DebugLogWriter] = None,
    ) -> None:
        self._events = events
        self._sink = sink
        self._prompt_redraw = prompt_redraw
        self._prompt_source = prompt_source
        self._on_closed = on_closed
        self._debug_log = debug_log or DebugLogWriter.disabled()
        self._thread: Optional[threading.Thread] = None
        self._received = 0

    @property
    def received(self) -> int:
        return self._received

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self.run, name="linechat-listener", daemon=True)
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout=timeout)

    def run(self) -> None:
        try:
            for event in self._events:
                self._received += 1
                self._debug_log.write_entry(
                    component="listener",
                    kind="event",
                    message="rx",
                    data={"raw": event.raw, "event_ts_ms": event.ts_ms},
                )
                self._sink(format_event(event))
                if self._prompt_redraw is not None and self._prompt_source is not None:
                    self._prompt_redraw(self._prompt_source())
        finally:
            self._debug_log.write_entry(
                component="listener",
                kind="closed",
                message="inbound event stream ended",
                data={"received": self._received},
            )
            if self._on_closed is not None:
                self._on_closed()
