"""Presentation helpers for linechat CLI output."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, TextIO

from rich import box
from rich.console import Console
from rich.panel import Panel

_NOTICE_PREFIXES = {
    "info": "Info",
    "warn": "Warning",
    "error": "Error",
    "success": "Success",
}


def render_notice(level: str, text: str) -> str:
    prefix = _NOTICE_PREFIXES.get(level, _NOTICE_PREFIXES["info"])
    return "{0}: {1}".format(prefix, text)


def _is_tty(stream: TextIO, forced: Optional[bool]) -> bool:
    if forced is not None:
        return forced
    isatty = getattr(stream, "isatty", None)
    if callable(isatty):
        try:
            return bool(isatty())
        except (OSError, ValueError):
            return False
    return False


def settings_lines(report: Dict[str, Any]) -> List[str]:
    return [
        "server={0}:{1}".format(report.get("host", ""), report.get("port", "")),
        "config_file={0} exists={1}".format(
            report.get("config_file", ""),
            bool(report.get("config_file_exists")),
        ),
        "logs_enabled={0} logs_dir={1}".format(
            bool(report.get("logs_enabled")),
            report.get("logs_dir", ""),
        ),
        "logs_max_file_bytes={0} logs_max_files={1} logs_redaction={2}".format(
            int(report.get("logs_max_file_bytes") or 0),
            int(report.get("logs_max_files") or 0),
            report.get("logs_redaction", ""),
        ),
    ]


def render_settings_text(report: Dict[str, Any]) -> str:
    return "\n".join(["Settings"] + settings_lines(report))


def render_settings(report: Dict[str, Any], stream: TextIO, is_tty: Optional[bool] = None) -> None:
    if _is_tty(stream, is_tty):
        console = Console(file=stream, highlight=False, soft_wrap=True)
        console.print(
            Panel(
                "\n".join(settings_lines(report)),
                title="Settings",
                border_style="cyan",
                box=box.ROUNDED,
            )
        )
        return

    stream.write(render_settings_text(report) + "\n")
    stream.flush()
