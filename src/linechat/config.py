"""Configuration loading and directory resolution for linechat."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

try:  # pragma: no cover - exercised on Python 3.11+
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for Python 3.9/3.10
    import tomli as tomllib  # type: ignore[no-redef]

COMMAND_PREFIX = "."
QUIT_WORD = "quit"

PROMPT_DESIRED_NICK = "Please enter your desired nickname: "
PROMPT_CONNECTED = "[connected] >>> "
PROMPT_DISCONNECTED = "[disconnected] !!! "

CONFIG_DIR_NAME = ".linechat_config"
CONFIG_FILE_NAME = "config.toml"
LOGS_DIR_NAME = "logs"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 6667
DEFAULT_LOGS_ENABLED = True
DEFAULT_LOGS_MAX_FILE_BYTES = 10 * 1024 * 1024
DEFAULT_LOGS_MAX_FILES = 5
DEFAULT_LOGS_REDACTION = "default"
ALLOWED_LOG_REDACTION = ("default", "none", "strict")


class ConfigError(RuntimeError):
    """Raised when the config file is invalid or cannot be written."""


@dataclass
class ChatConfig:
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    logs_enabled: bool = DEFAULT_LOGS_ENABLED
    logs_max_file_bytes: int = DEFAULT_LOGS_MAX_FILE_BYTES
    logs_max_files: int = DEFAULT_LOGS_MAX_FILES
    logs_redaction: str = DEFAULT_LOGS_REDACTION


@dataclass
class Settings:
    """Resolved runtime settings for one CLI invocation."""

    project_root: Path
    config_root: Path
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    logs_enabled: bool = DEFAULT_LOGS_ENABLED
    logs_max_file_bytes: int = DEFAULT_LOGS_MAX_FILE_BYTES
    logs_max_files: int = DEFAULT_LOGS_MAX_FILES
    logs_redaction: str = DEFAULT_LOGS_REDACTION

    @property
    def config_file(self) -> Path:
        return self.config_root / CONFIG_FILE_NAME

    @property
    def logs_dir(self) -> Path:
        return self.config_root / LOGS_DIR_NAME

    def as_dict(self) -> Dict[str, object]:
        return {
            "host": self.host,
            "port": self.port,
            "config_file": str(self.config_file),
            "config_file_exists": self.config_file.is_file(),
            "logs_enabled": self.logs_enabled,
            "logs_dir": str(self.logs_dir),
            "logs_max_file_bytes": self.logs_max_file_bytes,
            "logs_max_files": self.logs_max_files,
            "logs_redaction": self.logs_redaction,
        }


def resolve_project_root(workspace_dir: Optional[Path] = None) -> Path:
    return (workspace_dir or Path.cwd()).resolve()


def resolve_config_root(workspace_dir: Optional[Path] = None) -> Path:
    return resolve_project_root(workspace_dir) / CONFIG_DIR_NAME


def config_exists(workspace_dir: Optional[Path] = None) -> bool:
    return (resolve_config_root(workspace_dir) / CONFIG_FILE_NAME).is_file()


def _safe_host(value: object, default: str) -> str:
    text = str(value or "").strip()
    if not text:
        return default
    return text


def _safe_port(value: object, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        converted = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    if converted <= 0 or converted > 65535:
        return default
    return converted


def _safe_positive_int(value: object, default: int) -> int:
    try:
        converted = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return max(1, converted)


def _safe_bool(value: object, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in {"1", "true", "yes", "on"}:
            return True
        if normalized in {"0", "false", "no", "off"}:
            return False
    return default


def _safe_redaction(value: object, default: str) -> str:
    normalized = str(value or default).strip().lower()
    if normalized not in ALLOWED_LOG_REDACTION:
        return default
    return normalized


def _parse_config_data(data: Dict[str, object]) -> ChatConfig:
    server = data.get("server") if isinstance(data.get("server"), dict) else {}
    logs = data.get("logs") if isinstance(data.get("logs"), dict) else {}

    return ChatConfig(
        host=_safe_host(server.get("host"), DEFAULT_HOST),  # type: ignore[union-attr]
        port=_safe_port(server.get("port"), DEFAULT_PORT),  # type: ignore[union-attr]
        logs_enabled=_safe_bool(logs.get("enabled"), DEFAULT_LOGS_ENABLED),  # type: ignore[union-attr]
        logs_max_file_bytes=_safe_positive_int(
            logs.get("max_file_bytes"),  # type: ignore[union-attr]
            DEFAULT_LOGS_MAX_FILE_BYTES,
        ),
        logs_max_files=_safe_positive_int(logs.get("max_files"), DEFAULT_LOGS_MAX_FILES),  # type: ignore[union-attr]
        logs_redaction=_safe_redaction(logs.get("redaction"), DEFAULT_LOGS_REDACTION),  # type: ignore[union-attr]
    )


def _render_config(config: ChatConfig) -> str:
    host = config.host.replace("\\", "\\\\").replace('"', '\\"')
    lines: List[str] = [
        "[server]",
        'host = "{0}"'.format(host),
        "port = {0}".format(int(config.port)),
        "",
        "[logs]",
        "enabled = {0}".format(str(bool(config.logs_enabled)).lower()),
        "max_file_bytes = {0}".format(int(config.logs_max_file_bytes)),
        "max_files = {0}".format(int(config.logs_max_files)),
        'redaction = "{0}"'.format(config.logs_redaction),
        "",
    ]
    return "\n".join(lines)


def initialize_config(workspace_dir: Optional[Path] = None, force: bool = False) -> Path:
    config_root = resolve_config_root(workspace_dir)

    if config_root.exists():
        if not force:
            raise ConfigError("configuration directory already exists: {0}".format(config_root))
        shutil.rmtree(config_root)

    (config_root / LOGS_DIR_NAME).mkdir(parents=True, exist_ok=True)
    (config_root / CONFIG_FILE_NAME).write_text(_render_config(ChatConfig()), encoding="utf-8")
    return config_root


def load_config(config_root: Optional[Path] = None, workspace_dir: Optional[Path] = None) -> ChatConfig:
    """Load the config file; a missing file yields defaults."""

    resolved_root = (config_root or resolve_config_root(workspace_dir)).resolve()
    config_file = resolved_root / CONFIG_FILE_NAME
    if not config_file.is_file():
        return ChatConfig()

    try:
        parsed = tomllib.loads(config_file.read_text(encoding="utf-8"))
    except Exception as exc:
        raise ConfigError("invalid config file: {0}".format(config_file)) from exc

    return _parse_config_data(parsed)


def load_settings(
    host: Optional[str] = None,
    port: Optional[int] = None,
    workspace_dir: Optional[Path] = None,
) -> Settings:
    """Resolve settings from the config file + explicit overrides."""

    project_root = resolve_project_root(workspace_dir)
    config_root = resolve_config_root(project_root)
    config = load_config(config_root=config_root)

    return Settings(
        project_root=project_root,
        config_root=config_root,
        host=_safe_host(host, config.host),
        port=_safe_port(port, config.port) if port is not None else config.port,
        logs_enabled=config.logs_enabled,
        logs_max_file_bytes=config.logs_max_file_bytes,
        logs_max_files=config.logs_max_files,
        logs_redaction=config.logs_redaction,
    )
