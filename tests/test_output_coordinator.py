from __future__ import annotations

import threading
from io import StringIO

from linechat.debug_log import DebugLogWriter
from linechat.output import OutputCoordinator
from linechat.types import PrintLine, UpdatePrompt


class FlushCountingStream(StringIO):
    def __init__(self) -> None:
        super().__init__()
        self.flushes = 0

    def flush(self) -> None:
        self.flushes += 1
        super().flush()


class GatedStream(StringIO):
    """Blocks inside `write` until released, so the worker holds one message."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def write(self, text: str) -> int:
        self.entered.set()
        self.release.wait(timeout=5)
        return super().write(text)


class BrokenStream:
    def __init__(self) -> None:
        self.attempts = 0

    def write(self, text: str) -> int:
        self.attempts += 1
        raise OSError("terminal gone")

    def flush(self) -> None:
        raise OSError("terminal gone")


class FailingFlushStream(StringIO):
    """Accepts writes but raises from `flush`."""

    def __init__(self, error: Exception) -> None:
        super().__init__()
        self.error = error

    def flush(self) -> None:
        raise self.error


def test_print_line_is_carriage_return_prefixed():
    stream = StringIO()
    output = OutputCoordinator(stream=stream)
    output.start()

    output.print_line("hello")
    output.wait_idle()

    assert stream.getvalue() == "\rhello\n"


def test_update_prompt_writes_without_newline_and_flushes():
    stream = FlushCountingStream()
    output = OutputCoordinator(stream=stream)
    output.start()

    output.update_prompt("[connected] >>> ")
    output.wait_idle()

    assert stream.getvalue() == "\r[connected] >>> "
    assert stream.flushes == 1


def test_messages_render_in_enqueue_order():
    stream = StringIO()
    output = OutputCoordinator(stream=stream)
    output.start()

    for index in range(20):
        output.submit(PrintLine("line-{0}".format(index)))
    output.submit(UpdatePrompt("> "))
    output.wait_idle()

    expected = "".join("\rline-{0}\n".format(index) for index in range(20)) + "\r> "
    assert stream.getvalue() == expected


def test_queue_holds_at_most_one_pending_message():
    stream = GatedStream()
    output = OutputCoordinator(stream=stream)
    output.start()

    output.print_line("first")
    assert stream.entered.wait(timeout=5)
    # worker is busy with "first"; one slot left in the queue
    output.print_line("second")

    third = threading.Thread(target=output.print_line, args=("third",), daemon=True)
    third.start()
    third.join(timeout=0.2)
    assert third.is_alive()

    stream.release.set()
    third.join(timeout=5)
    assert not third.is_alive()
    output.wait_idle()

    assert stream.getvalue() == "\rfirst\n\rsecond\n\rthird\n"


def test_write_failure_is_logged_and_worker_keeps_running(tmp_path):
    stream = BrokenStream()
    debug_log = DebugLogWriter(logs_dir=tmp_path / "logs", enabled=True)
    output = OutputCoordinator(stream=stream, debug_log=debug_log)
    output.start()

    output.update_prompt("> ")
    output.print_line("still alive")
    output.wait_idle()

    assert stream.attempts == 2
    assert output.write_errors == 2
    log_text = debug_log.active_log_file.read_text(encoding="utf-8")
    assert '"component":"output"' in log_text
    assert "terminal gone" in log_text



def test_flush_failure_is_logged_and_next_line_renders(tmp_path):
    stream = FailingFlushStream(OSError("flush refused"))
    debug_log = DebugLogWriter(logs_dir=tmp_path / "logs", enabled=True)
    output = OutputCoordinator(stream=stream, debug_log=debug_log)
    output.start()

    output.update_prompt("> ")
    output.wait_idle()

    assert stream.getvalue() == "\r> "
    assert output.write_errors == 1
    log_text = debug_log.active_log_file.read_text(encoding="utf-8")
    assert '"component":"output"' in log_text
    assert "flush refused" in log_text

    output.print_line("after")
    output.wait_idle()
    assert stream.getvalue() == "\r> \rafter\n"


def test_unexpected_flush_error_does_not_stop_the_worker():
    stream = FailingFlushStream(RuntimeError("stream detached"))
    output = OutputCoordinator(stream=stream)
    output.start()

    output.update_prompt("> ")
    output.wait_idle()

    def produce():
        output.print_line("a")
        output.print_line("b")

    producer = threading.Thread(target=produce, daemon=True)
    producer.start()
    producer.join(timeout=1)
    assert not producer.is_alive()

    output.wait_idle()
    assert output.write_errors == 1
    assert stream.getvalue() == "\r> \ra\n\rb\n"


def test_start_is_idempotent():
    stream = StringIO()
    output = OutputCoordinator(stream=stream)
    output.start()
    output.start()

    output.print_line("once")
    output.wait_idle()
    assert stream.getvalue() == "\ronce\n"
