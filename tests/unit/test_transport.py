"""Unit tests for the transport layer: base typed decoding and the mock."""

from __future__ import annotations

import asyncio

import pytest

from ipfs_core_api.commands import CommandInvocation
from ipfs_core_api.errors import DecodeError, TransportError
from ipfs_core_api.transport import (
    BaseCommandTransport,
    CommandTransport,
    MemoryResponseStream,
    MockCommandTransport,
    ResponseStream,
)
from ipfs_core_api.types import Peer


class StaticTextTransport(BaseCommandTransport):
    """Minimal transport answering every command with one body."""

    def __init__(self, body: str) -> None:
        self.body = body

    async def execute_text(self, invocation, cancel=None) -> str:
        return self.body

    async def execute_stream(self, invocation, cancel=None) -> MemoryResponseStream:
        return MemoryResponseStream(self.body.encode("utf-8"))


class TestProtocolConformance:
    def test_mock_is_command_transport(self):
        assert isinstance(MockCommandTransport(), CommandTransport)

    def test_base_subclass_is_command_transport(self):
        assert isinstance(StaticTextTransport("{}"), CommandTransport)

    def test_memory_stream_is_response_stream(self):
        assert isinstance(MemoryResponseStream(b""), ResponseStream)


class TestTypedDecoding:
    """BaseCommandTransport decodes JSON bodies into requested types."""

    @pytest.mark.asyncio
    async def test_decodes_mapping(self):
        transport = StaticTextTransport('{"Version": "0.4.5", "Commit": "abc123"}')

        result = await transport.execute_typed(
            CommandInvocation.version(), dict[str, str]
        )

        assert result == {"Version": "0.4.5", "Commit": "abc123"}

    @pytest.mark.asyncio
    async def test_decodes_model(self):
        transport = StaticTextTransport('{"ID": "QmPeer", "Addresses": []}')

        peer = await transport.execute_typed(CommandInvocation.identify(), Peer)

        assert peer.id == "QmPeer"

    @pytest.mark.asyncio
    async def test_invalid_json_is_decode_error(self):
        transport = StaticTextTransport("<html>oops</html>")

        with pytest.raises(DecodeError):
            await transport.execute_typed(CommandInvocation.version(), dict[str, str])

    @pytest.mark.asyncio
    async def test_wrong_shape_is_decode_error(self):
        transport = StaticTextTransport('{"Version": 5}')

        with pytest.raises(DecodeError):
            await transport.execute_typed(CommandInvocation.version(), dict[str, str])


class TestMemoryResponseStream:
    @pytest.mark.asyncio
    async def test_reads_lines_then_eof(self):
        stream = MemoryResponseStream(b"a\nb\n")

        assert await stream.readline() == b"a\n"
        assert await stream.readline() == b"b\n"
        assert await stream.readline() == b""
        assert stream.lines_read == 2

    @pytest.mark.asyncio
    async def test_from_lines_serializes_dicts(self):
        stream = MemoryResponseStream.from_lines([{"a": 1}, "raw", b"bytes"])

        assert await stream.readline() == b'{"a": 1}\n'
        assert await stream.readline() == b"raw\n"
        assert await stream.readline() == b"bytes\n"

    @pytest.mark.asyncio
    async def test_read_after_close_fails(self):
        stream = MemoryResponseStream(b"a\n")
        await stream.aclose()

        with pytest.raises(TransportError):
            await stream.readline()


class TestMockCommandTransport:
    """Tests for MockCommandTransport recording and canned responses."""

    @pytest.mark.asyncio
    async def test_records_invocations(self):
        transport = MockCommandTransport()
        invocation = CommandInvocation.resolve("alice", True)

        await transport.execute_text(invocation)

        assert transport.recorded_commands == [invocation]

    @pytest.mark.asyncio
    async def test_canned_response_serialized(self):
        transport = MockCommandTransport()
        transport.set_response("resolve", {"Path": "/ipfs/QmHash"})

        body = await transport.execute_text(CommandInvocation.resolve("alice", True))

        assert body == '{"Path": "/ipfs/QmHash"}'

    @pytest.mark.asyncio
    async def test_default_response(self):
        transport = MockCommandTransport()

        assert await transport.execute_text(CommandInvocation.shutdown()) == "{}"

    @pytest.mark.asyncio
    async def test_canned_error(self):
        transport = MockCommandTransport()
        transport.set_error("version", TransportError("connection refused", command="version"))

        with pytest.raises(TransportError) as exc_info:
            await transport.execute_text(CommandInvocation.version())

        assert exc_info.value.command == "version"
        assert len(transport.recorded_commands) == 1

    @pytest.mark.asyncio
    async def test_each_stream_call_opens_fresh_stream(self):
        transport = MockCommandTransport()
        transport.set_stream("ping", ["one", "two"])
        invocation = CommandInvocation.ping("QmPeer", 2)

        first = await transport.execute_stream(invocation)
        second = await transport.execute_stream(invocation)

        assert first is not second
        assert await first.readline() == b"one\n"
        assert await second.readline() == b"one\n"
        assert transport.opened_streams == [first, second]

    @pytest.mark.asyncio
    async def test_cancel_before_call(self):
        transport = MockCommandTransport()
        cancel = asyncio.Event()
        cancel.set()

        with pytest.raises(asyncio.CancelledError):
            await transport.execute_text(CommandInvocation.version(), cancel)

        assert transport.recorded_commands == []

    @pytest.mark.asyncio
    async def test_cancel_during_call(self):
        transport = MockCommandTransport(latency=10.0)
        cancel = asyncio.Event()
        loop = asyncio.get_running_loop()
        loop.call_later(0.01, cancel.set)

        with pytest.raises(asyncio.CancelledError):
            await transport.execute_text(CommandInvocation.version(), cancel)

    @pytest.mark.asyncio
    async def test_stream_delay_is_per_command(self):
        transport = MockCommandTransport()
        transport.set_stream("ping", ["a"], delay=0.5)
        transport.set_stream("log", ["b"])

        slow = await transport.execute_stream(CommandInvocation.ping("QmPeer", 1))
        fast = await transport.execute_stream(CommandInvocation.create("log"))

        assert slow._delay == 0.5
        assert fast._delay == 0.0

    @pytest.mark.asyncio
    async def test_clear_resets_streams(self):
        transport = MockCommandTransport()
        transport.set_stream("ping", ["a"], delay=0.5)

        transport.clear()
        stream = await transport.execute_stream(CommandInvocation.ping("QmPeer", 1))

        assert await stream.readline() == b""
        assert stream._delay == 0.0

    def test_clear(self):
        transport = MockCommandTransport()
        transport.set_response("version", {"Version": "1"})
        transport.set_stream("ping", ["x"])

        transport.clear()

        assert transport.recorded_commands == []
        assert transport.opened_streams == []
