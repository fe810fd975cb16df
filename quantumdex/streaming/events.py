"""Change notifications emitted by the stream ledger."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from quantumdex.chain.events import Event


@dataclass(frozen=True)
class StreamCreated(Event):
    indexed: ClassVar[tuple[str, ...]] = ("stream_id", "sender", "recipient")

    stream_id: int
    sender: str
    recipient: str
    token: str
    amount: int


@dataclass(frozen=True)
class StreamRefueled(Event):
    indexed: ClassVar[tuple[str, ...]] = ("stream_id",)

    stream_id: int
    amount: int


@dataclass(frozen=True)
class TokensWithdrawn(Event):
    indexed: ClassVar[tuple[str, ...]] = ("stream_id", "recipient")

    stream_id: int
    recipient: str
    amount: int


@dataclass(frozen=True)
class StreamRefunded(Event):
    indexed: ClassVar[tuple[str, ...]] = ("stream_id", "sender")

    stream_id: int
    sender: str
    amount: int


@dataclass(frozen=True)
class StreamUpdated(Event):
    """New terms after a signed renegotiation."""

    indexed: ClassVar[tuple[str, ...]] = ("stream_id",)

    stream_id: int
    payment_per_block: int
    start_block: int
    end_block: int
