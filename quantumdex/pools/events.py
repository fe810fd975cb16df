"""Change notifications emitted by the pool registry."""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from quantumdex.chain.events import Event


@dataclass(frozen=True)
class PoolCreated(Event):
    indexed: ClassVar[tuple[str, ...]] = ("pool_id", "token0", "token1")

    pool_id: str
    token0: str
    token1: str
    fee_bps: int


@dataclass(frozen=True)
class PoolUpdated(Event):
    """Reserves and share supply after any pool mutation."""

    indexed: ClassVar[tuple[str, ...]] = ("pool_id", "token0", "token1")

    pool_id: str
    token0: str
    token1: str
    reserve0: int
    reserve1: int
    total_supply: int


@dataclass(frozen=True)
class PriceUpdate(Event):
    """Spot prices scaled by 1e18: price0 is token0 in token1 units, price1 the inverse."""

    indexed: ClassVar[tuple[str, ...]] = ("pool_id",)

    pool_id: str
    price0: int
    price1: int


@dataclass(frozen=True)
class LiquidityAdded(Event):
    indexed: ClassVar[tuple[str, ...]] = ("pool_id", "provider")

    pool_id: str
    provider: str
    amount0: int
    amount1: int
    liquidity: int


@dataclass(frozen=True)
class LiquidityRemoved(Event):
    indexed: ClassVar[tuple[str, ...]] = ("pool_id", "provider")

    pool_id: str
    provider: str
    amount0: int
    amount1: int
    liquidity: int


@dataclass(frozen=True)
class Swap(Event):
    indexed: ClassVar[tuple[str, ...]] = ("pool_id", "sender", "recipient")

    pool_id: str
    sender: str
    token_in: str
    token_out: str
    amount_in: int
    amount_out: int
    recipient: str


@dataclass(frozen=True)
class MultiHopSwap(Event):
    indexed: ClassVar[tuple[str, ...]] = ("sender", "recipient")

    sender: str
    recipient: str
    token_in: str
    token_out: str
    amount_in: int
    amount_out: int
    pool_ids: tuple[str, ...]


@dataclass(frozen=True)
class FlashLoan(Event):
    indexed: ClassVar[tuple[str, ...]] = ("pool_id", "token", "borrower")

    pool_id: str
    token: str
    borrower: str
    amount: int
    fee: int


@dataclass(frozen=True)
class DefaultFeeUpdated(Event):
    old_fee_bps: int
    new_fee_bps: int


@dataclass(frozen=True)
class FlashLoanFeeUpdated(Event):
    old_fee_bps: int
    new_fee_bps: int


@dataclass(frozen=True)
class MinimumLiquidityUpdated(Event):
    old_amount: int
    new_amount: int


@dataclass(frozen=True)
class RegistryPaused(Event):
    indexed: ClassVar[tuple[str, ...]] = ("account",)

    account: str


@dataclass(frozen=True)
class RegistryUnpaused(Event):
    indexed: ClassVar[tuple[str, ...]] = ("account",)

    account: str


@dataclass(frozen=True)
class OwnershipTransferred(Event):
    indexed: ClassVar[tuple[str, ...]] = ("previous_owner", "new_owner")

    previous_owner: str
    new_owner: str
