"""Type definitions for values exchanged with the daemon."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

NANOSECONDS_PER_MICROSECOND = 1000


class MultiHash(str):
    """A content or peer identifier, kept in its canonical string form."""

    def __new__(cls, value: str) -> MultiHash:
        text = str(value)
        if not text or "/" in text or any(c.isspace() for c in text):
            raise ValueError(f"Invalid multihash: {value!r}")
        return super().__new__(cls, text)


class MultiAddress(str):
    """A self-describing network address such as ``/ip4/1.2.3.4/tcp/4001``."""

    def __new__(cls, value: str) -> MultiAddress:
        text = str(value)
        if not text.startswith("/") or any(c.isspace() for c in text):
            raise ValueError(f"Invalid multiaddress: {value!r}")
        return super().__new__(cls, text)


def nanoseconds_to_timedelta(nanoseconds: int) -> timedelta:
    """Convert a nanosecond count to a timedelta.

    timedelta resolves microseconds; anything finer is truncated toward zero.
    """
    microseconds = abs(nanoseconds) // NANOSECONDS_PER_MICROSECOND
    return timedelta(microseconds=-microseconds if nanoseconds < 0 else microseconds)


class PingResult(BaseModel):
    """One line of a ping stream.

    Wire form: {"Success": true, "Text": "", "Time": 1234567}
    where Time is the round trip in nanoseconds.
    """

    model_config = ConfigDict(frozen=True, strict=True, populate_by_name=True)

    success: bool = Field(alias="Success")
    text: str = Field(alias="Text")
    time: timedelta = Field(alias="Time")

    @field_validator("time", mode="before")
    @classmethod
    def _time_from_nanoseconds(cls, value: Any) -> Any:
        if isinstance(value, timedelta):
            return value
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("Time must be an integer count of nanoseconds")
        try:
            return nanoseconds_to_timedelta(value)
        except OverflowError as e:
            raise ValueError(f"Time out of range: {value}") from e


class Peer(BaseModel):
    """Identity information returned by the id command."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(alias="ID")
    public_key: str | None = Field(default=None, alias="PublicKey")
    addresses: list[str] = Field(default_factory=list, alias="Addresses")
    agent_version: str | None = Field(default=None, alias="AgentVersion")
    protocol_version: str | None = Field(default=None, alias="ProtocolVersion")
    protocols: list[str] = Field(default_factory=list, alias="Protocols")

    @field_validator("addresses", "protocols", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        # The daemon sends null for peers without known addresses
        return [] if value is None else value
