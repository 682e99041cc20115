"""Command definitions for the daemon's HTTP command API.

A command invocation is the shape of one remote call:
- `command` names the daemon command (e.g. "ping")
- `arg` is the optional primary argument (e.g. a peer id)
- `options` are ordered `key=value` strings

The transport turns an invocation into a wire request; this layer only
shapes it.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class CommandName(str, Enum):
    """Daemon commands issued by the client."""

    ID = "id"
    PING = "ping"
    RESOLVE = "resolve"
    SHUTDOWN = "shutdown"
    VERSION = "version"


def format_option_value(value: Any) -> str:
    """Render an option value as locale-independent text.

    Booleans become ``true``/``false``. Numbers use Python's own decimal
    formatting, which never consults the process locale.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return format(value, "d")
    if isinstance(value, float):
        return repr(value)
    if isinstance(value, str):
        return value
    raise TypeError(f"Unsupported option value type: {type(value).__name__}")


def format_option(key: str, value: Any) -> str:
    """Build a ``key=value`` option string."""
    return f"{key}={format_option_value(value)}"


class CommandInvocation(BaseModel):
    """One remote command call.

    Example:
        CommandInvocation(command="ping", arg="QmPeer", options=("count=10",))

    Invocations are immutable and created fresh for every call. Duplicate
    option keys are passed through untouched.
    """

    model_config = ConfigDict(frozen=True)

    command: str
    arg: str | None = None
    options: tuple[str, ...] = ()

    def option_pairs(self) -> list[tuple[str, str]]:
        """Split options into ``(key, value)`` pairs, keeping order."""
        pairs = []
        for option in self.options:
            key, _, value = option.partition("=")
            pairs.append((key, value))
        return pairs

    @classmethod
    def create(
        cls,
        command: str | CommandName,
        arg: Any = None,
        *options: str,
    ) -> CommandInvocation:
        """Factory method for creating invocations."""
        return cls(
            command=command.value if isinstance(command, CommandName) else command,
            arg=None if arg is None else str(arg),
            options=tuple(options),
        )

    # Convenience factories for the commands the client issues
    @classmethod
    def identify(cls, peer: Any = None) -> CommandInvocation:
        """Create an id command, optionally for a remote peer."""
        return cls.create(CommandName.ID, peer)

    @classmethod
    def ping(cls, target: Any, count: int) -> CommandInvocation:
        """Create a ping command for a peer id or multiaddress."""
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ValueError(f"count must be a positive integer, got {count!r}")
        return cls.create(CommandName.PING, target, format_option("count", count))

    @classmethod
    def resolve(cls, name: str, recursive: bool) -> CommandInvocation:
        """Create a resolve command."""
        return cls.create(CommandName.RESOLVE, name, format_option("recursive", recursive))

    @classmethod
    def shutdown(cls) -> CommandInvocation:
        """Create a shutdown command."""
        return cls.create(CommandName.SHUTDOWN)

    @classmethod
    def version(cls) -> CommandInvocation:
        """Create a version command."""
        return cls.create(CommandName.VERSION)
