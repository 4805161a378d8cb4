"""Interactive chat entrypoint: wires connection, output worker, listener, and controller."""

from __future__ import annotations

import sys
from typing import Optional, TextIO

from linechat.commands import default_registry
from linechat.config import Settings
from linechat.connection import ChatConnection, ConnectionOpenError, TcpLineConnection
from linechat.debug_log import DebugLogWriter
from linechat.input import read_line as default_read_line
from linechat.listener import EventListener
from linechat.output import OutputCoordinator
from linechat.session import ReadLine, SessionController, Terminate, hard_exit
from linechat.ui.render import render_notice

CONNECTION_CLOSED_NOTICE = "connection closed"


def build_debug_log(settings: Settings) -> DebugLogWriter:
    return DebugLogWriter(
        logs_dir=settings.logs_dir,
        enabled=settings.logs_enabled,
        max_file_bytes=settings.logs_max_file_bytes,
        max_files=settings.logs_max_files,
        redaction=settings.logs_redaction,
    )


def start_chat(
    settings: Settings,
    *,
    connection: Optional[ChatConnection] = None,
    read_line: Optional[ReadLine] = None,
    terminate: Terminate = hard_exit,
    stream: TextIO = sys.stdout,
    err_stream: TextIO = sys.stderr,
) -> int:
    debug_log = build_debug_log(settings)

    if connection is None:
        tcp = TcpLineConnection(settings.host, settings.port, debug_log=debug_log)
        try:
            tcp.connect()
        except ConnectionOpenError as exc:
            _echo(err_stream, render_notice("error", "Failed to connect: {0}".format(exc)))
            return 1
        connection = tcp

    debug_log.write_entry(
        component="app",
        kind="start",
        message="session started",
        data={"host": settings.host, "port": settings.port},
    )

    output = OutputCoordinator(stream=stream, debug_log=debug_log)
    output.start()

    controller = SessionController(
        connection=connection,
        registry=default_registry(),
        output=output,
        read_line=read_line or default_read_line,
        debug_log=debug_log,
        terminate=terminate,
    )

    def on_closed() -> None:
        # disconnect is flagged before the notice is queued
        controller.request_disconnect()
        output.print_line(CONNECTION_CLOSED_NOTICE)

    listener = EventListener(
        connection.events(),
        output.print_line,
        prompt_redraw=output.update_prompt,
        prompt_source=controller.current_prompt,
        on_closed=on_closed,
        debug_log=debug_log,
    )
    listener.start()

    try:
        exit_code = controller.run()
    finally:
        output.wait_idle()
        connection.close()
        debug_log.write_entry(component="app", kind="stop", message="session ended")
    return exit_code


def _echo(stream: TextIO, text: str) -> None:
    stream.write(text + "\n")
    stream.flush()
