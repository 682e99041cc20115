"""IPFS core API - typed async client over the daemon's command API.

The client shapes commands and decodes responses; a CommandTransport
injected by the caller does the actual I/O.
"""

from .cancellation import run_cancellable
from .client import CoreApiClient, create_test_client, path_from_resolve_response
from .commands import CommandInvocation, CommandName, format_option, format_option_value
from .config import ClientConfig
from .errors import DecodeError, IpfsApiError, TransportError
from .streaming import PingResultStream, decode_ping_line
from .transport import (
    BaseCommandTransport,
    CommandTransport,
    MemoryResponseStream,
    MockCommandTransport,
    ResponseStream,
    create_mock_transport,
)
from .types import MultiAddress, MultiHash, Peer, PingResult

__all__ = [
    # Client
    "CoreApiClient",
    "ClientConfig",
    "create_test_client",
    "path_from_resolve_response",
    # Commands
    "CommandInvocation",
    "CommandName",
    "format_option",
    "format_option_value",
    # Transport Protocol & Base
    "CommandTransport",
    "BaseCommandTransport",
    "ResponseStream",
    "run_cancellable",
    # Transport Implementations
    "MockCommandTransport",
    "MemoryResponseStream",
    "create_mock_transport",
    # Streaming
    "PingResultStream",
    "decode_ping_line",
    # Types
    "MultiHash",
    "MultiAddress",
    "Peer",
    "PingResult",
    # Errors
    "IpfsApiError",
    "TransportError",
    "DecodeError",
]
