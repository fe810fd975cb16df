"""Pydantic response and request models for the read-only HTTP API.

Amounts are serialized as decimal strings (uint256 range) and field names
use camelCase aliases, as block explorers and wallets expect.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from quantumdex.chain.events import LogEntry
from quantumdex.models.types import Address, Bytes32, Uint256
from quantumdex.pools.pool import Pool
from quantumdex.routing.types import RoutingResult
from quantumdex.streaming.stream import Stream


class PoolView(BaseModel):
    """Current state of one pool."""

    pool_id: Bytes32 = Field(alias="poolId")
    token0: Address
    token1: Address
    reserve0: Uint256
    reserve1: Uint256
    fee_bps: int = Field(alias="feeBps")
    total_supply: Uint256 = Field(alias="totalSupply")
    locked_liquidity: Uint256 = Field(alias="lockedLiquidity")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_pool(cls, pool: Pool) -> PoolView:
        return cls(
            pool_id=pool.pool_id,
            token0=pool.token0,
            token1=pool.token1,
            reserve0=pool.reserve0,
            reserve1=pool.reserve1,
            fee_bps=pool.fee_bps,
            total_supply=pool.total_supply,
            locked_liquidity=pool.locked_liquidity,
        )


class PoolListResponse(BaseModel):
    pool_ids: list[Bytes32] = Field(alias="poolIds")

    model_config = {"populate_by_name": True}


class PoolIdResponse(BaseModel):
    pool_id: Bytes32 = Field(alias="poolId")
    exists: bool = Field(description="Whether a pool with this id has been created")

    model_config = {"populate_by_name": True}


class LpBalanceResponse(BaseModel):
    pool_id: Bytes32 = Field(alias="poolId")
    holder: Address
    balance: Uint256

    model_config = {"populate_by_name": True}


class QuoteResponse(BaseModel):
    pool_id: Bytes32 = Field(alias="poolId")
    token_in: Address = Field(alias="tokenIn")
    amount_in: Uint256 = Field(alias="amountIn")
    amount_out: Uint256 = Field(alias="amountOut")

    model_config = {"populate_by_name": True}


class MultiHopQuoteRequest(BaseModel):
    """Route to price: one pool id per hop along the token path."""

    path: list[Address] = Field(min_length=2)
    pool_ids: list[Bytes32] = Field(alias="poolIds", min_length=1)
    amount_in: Uint256 = Field(alias="amountIn")

    model_config = {"populate_by_name": True}


class HopView(BaseModel):
    pool_id: Bytes32 = Field(alias="poolId")
    token_in: Address = Field(alias="tokenIn")
    token_out: Address = Field(alias="tokenOut")
    amount_in: Uint256 = Field(alias="amountIn")
    amount_out: Uint256 = Field(alias="amountOut")

    model_config = {"populate_by_name": True}


class MultiHopQuoteResponse(BaseModel):
    path: list[Address]
    amount_in: Uint256 = Field(alias="amountIn")
    amount_out: Uint256 = Field(alias="amountOut")
    hops: list[HopView]

    model_config = {"populate_by_name": True}

    @classmethod
    def from_result(cls, result: RoutingResult) -> MultiHopQuoteResponse:
        return cls(
            path=result.path,
            amount_in=result.amount_in,
            amount_out=result.amount_out,
            hops=[
                HopView(
                    pool_id=hop.pool_id,
                    token_in=hop.token_in,
                    token_out=hop.token_out,
                    amount_in=hop.amount_in,
                    amount_out=hop.amount_out,
                )
                for hop in result.hops
            ],
        )


class StreamView(BaseModel):
    """Current state of one stream."""

    stream_id: int = Field(alias="streamId")
    sender: Address
    recipient: Address
    token: Address
    balance: Uint256
    start_block: int = Field(alias="startBlock")
    end_block: int = Field(alias="endBlock")
    payment_per_block: Uint256 = Field(alias="paymentPerBlock")
    withdrawn_amount: Uint256 = Field(alias="withdrawnAmount")
    settled_amount: Uint256 = Field(alias="settledAmount")
    is_active: bool = Field(alias="isActive")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_stream(cls, stream: Stream) -> StreamView:
        return cls(
            stream_id=stream.stream_id,
            sender=stream.sender,
            recipient=stream.recipient,
            token=stream.token,
            balance=stream.balance,
            start_block=stream.timeframe.start_block,
            end_block=stream.timeframe.end_block,
            payment_per_block=stream.payment_per_block,
            withdrawn_amount=stream.withdrawn_amount,
            settled_amount=stream.settled_amount,
            is_active=stream.is_active,
        )


class WithdrawableResponse(BaseModel):
    stream_id: int = Field(alias="streamId")
    account: Address
    amount: Uint256
    block_number: int = Field(alias="blockNumber")

    model_config = {"populate_by_name": True}


class StreamHashResponse(BaseModel):
    stream_id: int = Field(alias="streamId")
    hash: Bytes32

    model_config = {"populate_by_name": True}


class LogView(BaseModel):
    """One emitted event with its position in the log."""

    block_number: int = Field(alias="blockNumber")
    tx_index: int = Field(alias="txIndex")
    log_index: int = Field(alias="logIndex")
    address: Address
    name: str
    args: dict[str, Any]

    model_config = {"populate_by_name": True}

    @classmethod
    def from_entry(cls, entry: LogEntry) -> LogView:
        return cls(
            block_number=entry.block_number,
            tx_index=entry.tx_index,
            log_index=entry.log_index,
            address=entry.address,
            name=entry.name,
            args={key: _json_value(value) for key, value in entry.event.to_dict().items()},
        )


class EventsResponse(BaseModel):
    events: list[LogView]


def _json_value(value: Any) -> Any:
    # Integers go out as decimal strings so uint256 values survive JSON clients
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, tuple | list):
        return [_json_value(item) for item in value]
    return value
