"""Streaming decoder for newline-delimited ping responses.

The daemon answers a ping with one JSON object per line, written as each
echo request completes:

    {"Success": true, "Text": "Looking up peer QmPeer", "Time": 0}
    {"Success": true, "Text": "", "Time": 1532000}

PingResultStream reads and decodes one line per step, so results reach the
caller while the ping is still running.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from pydantic import ValidationError

from .cancellation import raise_if_cancelled
from .errors import DecodeError
from .transport import ResponseStream
from .types import PingResult

logger = logging.getLogger(__name__)


def decode_ping_line(line: str, line_number: int | None = None) -> PingResult:
    """Decode one ping stream line.

    Raises:
        DecodeError: If the line is not a JSON object with valid
            Success, Text and Time fields
    """
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON in ping response: {e}", line_number) from e

    if not isinstance(data, dict):
        raise DecodeError("Ping response line is not a JSON object", line_number)

    try:
        return PingResult.model_validate(data)
    except ValidationError as e:
        raise DecodeError(f"Invalid ping result: {e}", line_number) from e


class PingResultStream:
    """Lazy, single-pass sequence of ping results.

    Takes ownership of the response stream and closes it when iteration
    ends for any reason: exhaustion, a decode error, a read error,
    cancellation, or the caller calling aclose() / leaving `async with`.

    Usage:
        async with client.ping(peer, count=3) as results:
            async for result in results:
                print(result.time)

    Once finished the sequence stays finished; pinging again requires a new
    call.
    """

    def __init__(
        self,
        stream: ResponseStream,
        cancel: asyncio.Event | None = None,
        log: logging.Logger | None = None,
        log_responses: bool = True,
    ) -> None:
        """Initialize the decoder.

        Args:
            stream: Open response stream; ownership moves to this object
            cancel: Optional cancellation signal, checked before each read
            log: Logger for raw response lines
            log_responses: Whether to log each raw line at DEBUG
        """
        self._stream = stream
        self._cancel = cancel
        self._log = log or logger
        self._log_responses = log_responses
        self._line_number = 0
        self._finished = False

    @property
    def finished(self) -> bool:
        """Whether the sequence has ended and the stream is released."""
        return self._finished

    def __aiter__(self) -> PingResultStream:
        return self

    async def __anext__(self) -> PingResult:
        if self._finished:
            raise StopAsyncIteration

        try:
            raise_if_cancelled(self._cancel)
            raw = await self._stream.readline()
            # The signal may have fired while the read was pending
            raise_if_cancelled(self._cancel)

            if raw:
                self._line_number += 1
                line = self._decode_text(raw)

                if self._log_responses and self._log.isEnabledFor(logging.DEBUG):
                    self._log.debug(f"RSP {line}")

                return decode_ping_line(line, self._line_number)
        except BaseException:
            await self.aclose()
            raise

        await self.aclose()
        raise StopAsyncIteration

    def _decode_text(self, raw: bytes) -> str:
        try:
            return raw.decode("utf-8").strip()
        except UnicodeDecodeError as e:
            raise DecodeError(
                f"Ping response line is not valid UTF-8: {e}", self._line_number
            ) from e

    async def aclose(self) -> None:
        """Stop reading and release the stream. Safe to call repeatedly."""
        if self._finished:
            return
        self._finished = True
        await self._stream.aclose()

    async def collect(self) -> list[PingResult]:
        """Read every remaining result into a list."""
        return [result async for result in self]

    async def __aenter__(self) -> PingResultStream:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()
