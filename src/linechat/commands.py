"""Dot-command registry used by the session controller."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, List, Optional, Tuple

from linechat.config import COMMAND_PREFIX

if TYPE_CHECKING:
    from linechat.session import SessionController

CommandHandler = Callable[[str, "SessionController"], None]


class DuplicateCommandError(ValueError):
    """Raised when a command name is registered twice."""


@dataclass(frozen=True)
class CommandDescriptor:
    """A named, dispatchable command.

    The action is an injectable handler; a descriptor without one dispatches
    as a no-op.
    """

    name: str
    handler: Optional[CommandHandler] = None
    summary: str = ""

    def dispatch(self, argument_text: str, controller: "SessionController") -> None:
        if self.handler is None:
            return
        self.handler(argument_text, controller)


class CommandRegistry:
    def __init__(self) -> None:
        self._descriptors: List[CommandDescriptor] = []

    def register(self, descriptor: CommandDescriptor) -> None:
        if self.find(descriptor.name) is not None:
            raise DuplicateCommandError("command already registered: {0}".format(descriptor.name))
        self._descriptors.append(descriptor)

    def find(self, name: str) -> Optional[CommandDescriptor]:
        for descriptor in self._descriptors:
            if descriptor.name == name:
                return descriptor
        return None

    def names(self) -> List[str]:
        return [descriptor.name for descriptor in self._descriptors]

    def __len__(self) -> int:
        return len(self._descriptors)


def default_registry() -> CommandRegistry:
    registry = CommandRegistry()
    registry.register(CommandDescriptor(name="names", summary="list users in the current channel"))
    registry.register(CommandDescriptor(name="join", summary="join a channel"))
    registry.register(CommandDescriptor(name="swch", summary="switch the current channel"))
    return registry


def parse_command(line: str, prefix: str = COMMAND_PREFIX) -> Optional[Tuple[str, str]]:
    """Split `.name rest` on the first space; `None` when the line is chat text."""

    if not line.startswith(prefix):
        return None
    body = line[len(prefix):]
    name, separator, rest = body.partition(" ")
    if not separator:
        return body, ""
    return name, rest
