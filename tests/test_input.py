from __future__ import annotations

import builtins

from linechat.input import read_line


def test_read_line_returns_input_text(monkeypatch):
    prompts = []

    def fake_input(prompt):
        prompts.append(prompt)
        return "hello"

    monkeypatch.setattr(builtins, "input", fake_input)
    assert read_line("[connected] >>> ") == "hello"
    assert prompts == ["[connected] >>> "]


def test_read_line_returns_none_at_end_of_input(monkeypatch):
    def closed(_prompt):
        raise EOFError

    monkeypatch.setattr(builtins, "input", closed)
    assert read_line("> ") is None
