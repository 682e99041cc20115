"""IPFS core API client.

Thin orchestration over a CommandTransport: each operation shapes one
command invocation, dispatches it, and decodes the result.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass, field

from .commands import CommandInvocation
from .config import ClientConfig
from .errors import DecodeError
from .streaming import PingResultStream
from .transport import CommandTransport, MockCommandTransport, create_mock_transport
from .types import MultiAddress, MultiHash, Peer

logger = logging.getLogger(__name__)


def path_from_resolve_response(body: str) -> str:
    """Extract the Path field from a resolve response body.

    Raises:
        DecodeError: If the body is not a JSON object with a string Path
    """
    try:
        data = json.loads(body)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON in resolve response: {e}") from e

    if not isinstance(data, dict):
        raise DecodeError("Resolve response is not a JSON object")

    path = data.get("Path")
    if not isinstance(path, str):
        raise DecodeError("Resolve response has no string 'Path' field")
    return path


@dataclass
class CoreApiClient:
    """Client for the daemon's core commands.

    Works with any CommandTransport implementation. The client keeps no
    per-call state, so one instance can serve many tasks at once.

    Usage:
        client = CoreApiClient(transport)

        path = await client.resolve("/ipns/example.com")

        async with client.ping("QmPeer", count=3) as results:
            async for result in results:
                print(result.success, result.time)

        # Testing
        transport = create_mock_transport()
        transport.set_response("version", {"Version": "0.4.5"})
        client = CoreApiClient(transport)
    """

    _transport: CommandTransport
    config: ClientConfig = field(default_factory=ClientConfig)
    log: logging.Logger = field(default=logger)

    @property
    def transport(self) -> CommandTransport:
        """Access the underlying transport."""
        return self._transport

    async def id(
        self,
        peer: MultiHash | str | None = None,
        cancel: asyncio.Event | None = None,
    ) -> Peer:
        """Get identity information about a peer.

        Args:
            peer: Peer to look up; the local node when omitted
            cancel: Optional cancellation signal
        """
        target = None if peer is None else MultiHash(peer)
        return await self._transport.execute_typed(CommandInvocation.identify(target), Peer, cancel)

    def ping(
        self,
        peer: MultiHash | str,
        count: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> AbstractAsyncContextManager[PingResultStream]:
        """Ping a peer by id.

        Arguments are validated immediately; the command is issued when the
        returned context is entered, and the response stream is released
        when it exits.

        Args:
            peer: Peer id to ping
            count: Number of echo requests (default from config, normally 10)
            cancel: Optional cancellation signal, also honoured while reading

        Returns:
            Async context manager yielding a lazy PingResultStream
        """
        invocation = CommandInvocation.ping(MultiHash(peer), self._ping_count(count))
        return self._ping(invocation, cancel)

    def ping_address(
        self,
        address: MultiAddress | str,
        count: int | None = None,
        cancel: asyncio.Event | None = None,
    ) -> AbstractAsyncContextManager[PingResultStream]:
        """Ping a peer at a multiaddress.

        See ping() for arguments and result handling.
        """
        invocation = CommandInvocation.ping(MultiAddress(address), self._ping_count(count))
        return self._ping(invocation, cancel)

    def _ping_count(self, count: int | None) -> int:
        return self.config.ping_count if count is None else count

    @asynccontextmanager
    async def _ping(
        self,
        invocation: CommandInvocation,
        cancel: asyncio.Event | None,
    ) -> AsyncIterator[PingResultStream]:
        stream = await self._transport.execute_stream(invocation, cancel)
        results = PingResultStream(
            stream,
            cancel=cancel,
            log=self.log,
            log_responses=self.config.log_responses,
        )
        try:
            yield results
        finally:
            await results.aclose()

    async def resolve(
        self,
        name: str,
        recursive: bool | None = None,
        cancel: asyncio.Event | None = None,
    ) -> str:
        """Resolve a name to a path.

        Args:
            name: IPNS name, DNS link or path to resolve
            recursive: Resolve until the result is not a name
                (default from config, normally True)
            cancel: Optional cancellation signal
        """
        if recursive is None:
            recursive = self.config.resolve_recursive
        body = await self._transport.execute_text(
            CommandInvocation.resolve(name, recursive), cancel
        )
        return path_from_resolve_response(body)

    async def shutdown(self, cancel: asyncio.Event | None = None) -> None:
        """Ask the daemon to shut down."""
        await self._transport.execute_text(CommandInvocation.shutdown(), cancel)

    async def version(self, cancel: asyncio.Event | None = None) -> dict[str, str]:
        """Get the daemon's version information."""
        return await self._transport.execute_typed(
            CommandInvocation.version(), dict[str, str], cancel
        )


# Factory functions


def create_test_client(
    transport: MockCommandTransport | None = None,
    config: ClientConfig | None = None,
) -> CoreApiClient:
    """Create a client for testing.

    Args:
        transport: Pre-configured mock transport (creates new if None)
        config: Client configuration (defaults if None)

    Returns:
        CoreApiClient with MockCommandTransport
    """
    return CoreApiClient(
        transport or create_mock_transport(),
        config=config or ClientConfig(),
    )
