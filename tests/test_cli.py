from __future__ import annotations

import json

from typer.testing import CliRunner

import linechat.cli


def test_init_creates_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    runner = CliRunner()

    result = runner.invoke(linechat.cli.app, ["init"])

    assert result.exit_code == 0
    assert "Initialized config at" in result.stdout
    assert (tmp_path / ".linechat_config" / "config.toml").is_file()


def test_init_twice_requires_force(isolated_env):
    runner = CliRunner()

    again = runner.invoke(linechat.cli.app, ["init"])
    assert again.exit_code == 2

    forced = runner.invoke(linechat.cli.app, ["init", "--force"])
    assert forced.exit_code == 0


def test_config_outputs_json(isolated_env):
    runner = CliRunner()
    result = runner.invoke(linechat.cli.app, ["config", "--format", "json", "--port", "7000"])

    assert result.exit_code == 0
    parsed = json.loads(result.stdout)
    assert parsed["host"] == "127.0.0.1"
    assert parsed["port"] == 7000
    assert parsed["config_file_exists"] is True


def test_config_outputs_text(isolated_env):
    runner = CliRunner()
    result = runner.invoke(linechat.cli.app, ["config"])

    assert result.exit_code == 0
    assert "server=127.0.0.1:6667" in result.stdout


def test_config_rejects_unknown_format(isolated_env):
    runner = CliRunner()
    result = runner.invoke(linechat.cli.app, ["config", "--format", "yaml"])
    assert result.exit_code == 2


def test_default_invocation_starts_chat(isolated_env, monkeypatch):
    calls = []

    def fake_start_chat(settings):
        calls.append((settings.host, settings.port))
        return 0

    monkeypatch.setattr(linechat.cli, "start_chat", fake_start_chat)
    runner = CliRunner()
    result = runner.invoke(linechat.cli.app, ["--host", "chat.example.org", "--port", "6697"])

    assert result.exit_code == 0
    assert calls == [("chat.example.org", 6697)]


def test_chat_exit_code_is_propagated(isolated_env, monkeypatch):
    monkeypatch.setattr(linechat.cli, "start_chat", lambda settings: 1)
    runner = CliRunner()
    result = runner.invoke(linechat.cli.app, [])
    assert result.exit_code == 1


def test_keyboard_interrupt_exits_130(isolated_env, monkeypatch):
    def interrupted(settings):
        raise KeyboardInterrupt

    monkeypatch.setattr(linechat.cli, "start_chat", interrupted)
    runner = CliRunner()
    result = runner.invoke(linechat.cli.app, [])
    assert result.exit_code == 130


def test_invalid_config_file_exits_2(isolated_env):
    (isolated_env["config_root"] / "config.toml").write_text("not = [valid", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(linechat.cli.app, ["config"])
    assert result.exit_code == 2
