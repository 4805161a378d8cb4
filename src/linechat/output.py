"""Single-writer terminal output worker fed by a depth-1 queue."""

from __future__ import annotations

import queue
import sys
import threading
from typing import Optional, TextIO

from linechat.debug_log import DebugLogWriter
from linechat.types import PrintLine, UiMessage, UpdatePrompt

OUTPUT_QUEUE_DEPTH = 1


class OutputCoordinator:
    """Owns the terminal stream; every producer goes through `submit`.

    The queue holds at most one pending message, so a producer blocks until the
    previous message has been taken by the worker. Rendering order is enqueue
    order.
    """

    def __init__(
        self,
        stream: TextIO = sys.stdout,
        debug_log: Optional[DebugLogWriter] = None,
    ) -> None:
        self._stream = stream
        self._debug_log = debug_log or DebugLogWriter.disabled()
        self._queue: "queue.Queue[UiMessage]" = queue.Queue(maxsize=OUTPUT_QUEUE_DEPTH)
        self._worker: Optional[threading.Thread] = None
        self._start_lock = threading.Lock()
        self._write_errors = 0

    @property
    def write_errors(self) -> int:
        return self._write_errors

    def start(self) -> None:
        with self._start_lock:
            if self._worker is not None:
                return
            self._worker = threading.Thread(
                target=self._run,
                name="linechat-output",
                daemon=True,
            )
            self._worker.start()

    def submit(self, message: UiMessage) -> None:
        self._queue.put(message)

    def print_line(self, text: str) -> None:
        self.submit(PrintLine(text))

    def update_prompt(self, text: str) -> None:
        self.submit(UpdatePrompt(text))

    def wait_idle(self) -> None:
        """Block until every submitted message has been rendered."""
        self._queue.join()

    def _run(self) -> None:
        while True:
            message = self._queue.get()
            try:
                self._render(message)
            except Exception as exc:
                # Terminal failures must never stop the only writer.
                self._record_failure(message, exc)
            finally:
                self._queue.task_done()

    def _render(self, message: UiMessage) -> None:
        if isinstance(message, UpdatePrompt):
            self._stream.write("\r{0}".format(message.text))
            self._stream.flush()
        else:
            self._stream.write("\r{0}\n".format(message.text))

    def _record_failure(self, message: UiMessage, exc: Exception) -> None:
        self._write_errors += 1
        self._debug_log.write_entry(
            level="warn",
            component="output",
            kind="write_failed",
            message="terminal write failed: {0}".format(exc),
            data={
                "message_type": type(message).__name__,
                "error_type": type(exc).__name__,
            },
        )
