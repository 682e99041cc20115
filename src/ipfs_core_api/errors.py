"""Exceptions raised by the IPFS core API client.

Cancellation is not represented here: a cancelled call raises
``asyncio.CancelledError`` unchanged.
"""

from __future__ import annotations


class IpfsApiError(Exception):
    """Base class for errors raised by this package."""

    pass


class TransportError(IpfsApiError):
    """Network or protocol failure at the transport boundary."""

    def __init__(self, message: str, command: str | None = None) -> None:
        super().__init__(message)
        self.command = command


class DecodeError(IpfsApiError):
    """A response body could not be decoded into the expected shape."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        super().__init__(message)
        self.line_number = line_number
