"""Blocking line input over `input()`, with GNU readline editing when present."""

from __future__ import annotations

from typing import Optional

try:  # pragma: no cover - platform dependent
    import readline  # noqa: F401  (enables history/cursor editing for input())
except ImportError:  # pragma: no cover - e.g. Windows without pyreadline
    readline = None  # type: ignore[assignment]


def read_line(prompt: str) -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None
