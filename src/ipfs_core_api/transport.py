"""Command transport abstraction for the IPFS core API client.

The client never talks to the wire itself. Every operation is shaped into a
CommandInvocation and handed to a CommandTransport, which owns the connection
and returns the response in one of three shapes:
- text: the full response body
- typed: the body decoded into a requested type
- stream: an open ResponseStream, read incrementally by the caller

Architecture:
- CommandTransport is the PROTOCOL (interface) injected into the client
- BaseCommandTransport supplies typed decoding on top of text responses
- MockCommandTransport is an in-memory implementation for tests
"""

from __future__ import annotations

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from typing import Any, Protocol, TypeVar, runtime_checkable

from pydantic import TypeAdapter, ValidationError

from .cancellation import run_cancellable
from .commands import CommandInvocation
from .errors import DecodeError, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@runtime_checkable
class ResponseStream(Protocol):
    """An open, sequentially read response body.

    Whoever holds the stream is responsible for closing it.
    """

    async def readline(self) -> bytes:
        """Read one line including its terminator; empty bytes at end of stream."""
        ...

    async def aclose(self) -> None:
        """Release the stream and its underlying connection."""
        ...


@runtime_checkable
class CommandTransport(Protocol):
    """Protocol for command transports.

    All transports must implement:
    - execute_text: Run a command and return the body as text
    - execute_typed: Run a command and decode the body into a type
    - execute_stream: Run a command and return the body as an open stream

    Every call accepts an optional cancellation signal. When it fires before
    the call completes, the call raises asyncio.CancelledError.

    Implementations must be safe to call from many tasks at once.
    """

    async def execute_text(
        self,
        invocation: CommandInvocation,
        cancel: asyncio.Event | None = None,
    ) -> str:
        """Run a command and return the full response body.

        Raises:
            TransportError: On network or protocol failure
            asyncio.CancelledError: If cancelled before completion
        """
        ...

    async def execute_typed(
        self,
        invocation: CommandInvocation,
        response_type: type[T],
        cancel: asyncio.Event | None = None,
    ) -> T:
        """Run a command and decode the body into `response_type`.

        Raises:
            TransportError: On network or protocol failure
            DecodeError: If the body does not fit `response_type`
            asyncio.CancelledError: If cancelled before completion
        """
        ...

    async def execute_stream(
        self,
        invocation: CommandInvocation,
        cancel: asyncio.Event | None = None,
    ) -> ResponseStream:
        """Run a command and return the body as an open stream.

        The stream is returned as soon as the response starts, before the
        whole body has necessarily arrived.

        Raises:
            TransportError: On network or protocol failure
            asyncio.CancelledError: If cancelled before the response starts
        """
        ...


class BaseCommandTransport(ABC):
    """Base class for command transports.

    Provides typed decoding on top of execute_text. Subclasses implement
    the text and stream paths.
    """

    async def execute_typed(
        self,
        invocation: CommandInvocation,
        response_type: type[T],
        cancel: asyncio.Event | None = None,
    ) -> T:
        """Run a command and decode the JSON body into `response_type`."""
        body = await self.execute_text(invocation, cancel)
        try:
            return TypeAdapter(response_type).validate_json(body)
        except ValidationError as e:
            raise DecodeError(f"Invalid '{invocation.command}' response: {e}") from e

    @abstractmethod
    async def execute_text(
        self,
        invocation: CommandInvocation,
        cancel: asyncio.Event | None = None,
    ) -> str:
        """Implementation-specific text request."""
        ...

    @abstractmethod
    async def execute_stream(
        self,
        invocation: CommandInvocation,
        cancel: asyncio.Event | None = None,
    ) -> ResponseStream:
        """Implementation-specific streaming request."""
        ...


class MemoryResponseStream:
    """In-memory ResponseStream over a byte buffer.

    Records how many lines were read and whether it was closed, so tests can
    check the reader's resource handling.
    """

    def __init__(self, data: bytes, delay: float = 0.0) -> None:
        """Initialize the stream.

        Args:
            data: Full response body
            delay: Seconds to wait before each read, to simulate a live stream
        """
        self._data = data
        self._delay = delay
        self._position = 0
        self._lines_read = 0
        self._closed = False

    @classmethod
    def from_lines(cls, lines: list[Any], delay: float = 0.0) -> MemoryResponseStream:
        """Build a newline-delimited body from lines.

        Dicts are serialized as JSON, strings are encoded as UTF-8 and bytes
        are used as-is.
        """
        encoded = []
        for line in lines:
            if isinstance(line, bytes):
                encoded.append(line)
            elif isinstance(line, str):
                encoded.append(line.encode("utf-8"))
            else:
                encoded.append(json.dumps(line).encode("utf-8"))
        body = b"".join(chunk + b"\n" for chunk in encoded)
        return cls(body, delay=delay)

    @property
    def closed(self) -> bool:
        """Whether aclose() has been called."""
        return self._closed

    @property
    def lines_read(self) -> int:
        """Number of non-empty reads served so far."""
        return self._lines_read

    async def readline(self) -> bytes:
        """Return the next line, or empty bytes at end of stream."""
        if self._closed:
            raise TransportError("Response stream is closed")

        await asyncio.sleep(self._delay)

        if self._position >= len(self._data):
            return b""

        end = self._data.find(b"\n", self._position)
        end = len(self._data) if end == -1 else end + 1
        line = self._data[self._position : end]
        self._position = end
        self._lines_read += 1
        return line

    async def aclose(self) -> None:
        """Mark the stream closed."""
        self._closed = True


class MockCommandTransport(BaseCommandTransport):
    """Mock transport for testing.

    Allows injecting canned responses and recording invocations.
    No actual I/O - everything is in-memory.

    Usage:
        transport = MockCommandTransport()
        transport.set_response("resolve", {"Path": "/ipfs/QmHash"})

        client = CoreApiClient(transport)
        path = await client.resolve("alice")

        assert transport.recorded_commands[0].command == "resolve"
    """

    def __init__(self, latency: float = 0.0) -> None:
        """Initialize the mock.

        Args:
            latency: Seconds each call waits before answering
        """
        self._latency = latency
        self._responses: dict[str, str] = {}
        self._streams: dict[str, tuple[list[Any], float]] = {}
        self._errors: dict[str, BaseException] = {}
        self._recorded_commands: list[CommandInvocation] = []
        self._opened_streams: list[MemoryResponseStream] = []

    @property
    def recorded_commands(self) -> list[CommandInvocation]:
        """Get all invocations sent through this transport."""
        return self._recorded_commands.copy()

    @property
    def opened_streams(self) -> list[MemoryResponseStream]:
        """Get every stream handed out by execute_stream."""
        return self._opened_streams.copy()

    def set_response(self, command: str, body: Any) -> None:
        """Set the canned body for a command.

        Args:
            command: The command name (e.g., "resolve")
            body: Response body; non-string values are serialized as JSON
        """
        self._responses[command] = body if isinstance(body, str) else json.dumps(body)

    def set_stream(self, command: str, lines: list[Any], delay: float = 0.0) -> None:
        """Set canned stream lines for a command.

        Each execute_stream call gets a fresh stream over the same lines.
        """
        self._streams[command] = (list(lines), delay)

    def set_error(self, command: str, error: BaseException) -> None:
        """Make every call to `command` raise `error`."""
        self._errors[command] = error

    def clear(self) -> None:
        """Clear recorded invocations, canned responses and streams."""
        self._recorded_commands.clear()
        self._opened_streams.clear()
        self._responses.clear()
        self._streams.clear()
        self._errors.clear()

    async def execute_text(
        self,
        invocation: CommandInvocation,
        cancel: asyncio.Event | None = None,
    ) -> str:
        """Record the invocation and return the canned body."""
        return await run_cancellable(self._answer_text(invocation), cancel)

    async def execute_stream(
        self,
        invocation: CommandInvocation,
        cancel: asyncio.Event | None = None,
    ) -> MemoryResponseStream:
        """Record the invocation and open a stream over the canned lines."""
        return await run_cancellable(self._answer_stream(invocation), cancel)

    async def _answer_text(self, invocation: CommandInvocation) -> str:
        await self._dispatch(invocation)
        return self._responses.get(invocation.command, "{}")

    async def _answer_stream(self, invocation: CommandInvocation) -> MemoryResponseStream:
        await self._dispatch(invocation)
        lines, delay = self._streams.get(invocation.command, ([], 0.0))
        stream = MemoryResponseStream.from_lines(lines, delay=delay)
        self._opened_streams.append(stream)
        return stream

    async def _dispatch(self, invocation: CommandInvocation) -> None:
        self._recorded_commands.append(invocation)
        logger.debug(f"Mock dispatch: {invocation.command} {invocation.arg or ''}")

        await asyncio.sleep(self._latency)

        error = self._errors.get(invocation.command)
        if error is not None:
            raise error


# Factory functions


def create_mock_transport(latency: float = 0.0) -> MockCommandTransport:
    """Create a mock transport for testing.

    Returns:
        MockCommandTransport for testing
    """
    return MockCommandTransport(latency=latency)
