"""Read-only API endpoints over a ledger deployment."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi import Path as PathParam

from quantumdex.api.schemas import (
    EventsResponse,
    LogView,
    LpBalanceResponse,
    MultiHopQuoteRequest,
    MultiHopQuoteResponse,
    PoolIdResponse,
    PoolListResponse,
    PoolView,
    QuoteResponse,
    StreamHashResponse,
    StreamView,
    WithdrawableResponse,
)
from quantumdex.constants import MAX_FEE_BPS, MIN_FEE_BPS
from quantumdex.deployment import Deployment, get_default_deployment
from quantumdex.errors import LedgerError, PoolNotFound, StreamNotFound
from quantumdex.models.types import ADDRESS_PATTERN, BYTES32_PATTERN, normalize_address

logger = structlog.get_logger()

router = APIRouter()

# Most recent events returned when no block range is given
DEFAULT_EVENT_LIMIT = 200


def get_deployment() -> Deployment:
    """Dependency provider for the deployment being served.

    Override this in tests to serve a prepared deployment:
        app.dependency_overrides[get_deployment] = lambda: deployment

    Returns:
        The deployment whose state the API reads.
    """
    return get_default_deployment()


def _ledger_error(err: LedgerError) -> HTTPException:
    """Map a ledger error raised by a read to an HTTP error."""
    if isinstance(err, PoolNotFound | StreamNotFound):
        return HTTPException(status_code=404, detail=str(err))
    return HTTPException(status_code=422, detail=f"{type(err).__name__}: {err}")


# --- Pools ---


@router.get("/pools")
async def list_pools(deployment: Deployment = Depends(get_deployment)) -> PoolListResponse:
    return PoolListResponse(pool_ids=deployment.pools.pool_ids())


@router.get("/pool-id")
async def pool_id(
    token_a: str = Query(alias="tokenA", pattern=ADDRESS_PATTERN),
    token_b: str = Query(alias="tokenB", pattern=ADDRESS_PATTERN),
    fee_bps: int | None = Query(default=None, alias="feeBps", ge=MIN_FEE_BPS, le=MAX_FEE_BPS),
    deployment: Deployment = Depends(get_deployment),
) -> PoolIdResponse:
    """Derive the id a pool for this pair and fee has (or would have).

    feeBps defaults to the registry's current default fee.
    """
    derived = deployment.pools.get_pool_id(token_a, token_b, fee_bps)
    return PoolIdResponse(pool_id=derived, exists=derived in deployment.pools.pools)


@router.get("/pools/{pool_id}")
async def get_pool(
    pool_id: str = PathParam(pattern=BYTES32_PATTERN),
    deployment: Deployment = Depends(get_deployment),
) -> PoolView:
    try:
        pool = deployment.pools.get_pool(pool_id)
    except LedgerError as err:
        raise _ledger_error(err) from err
    return PoolView.from_pool(pool)


@router.get("/pools/{pool_id}/lp-balances/{holder}")
async def get_lp_balance(
    pool_id: str = PathParam(pattern=BYTES32_PATTERN),
    holder: str = PathParam(pattern=ADDRESS_PATTERN),
    deployment: Deployment = Depends(get_deployment),
) -> LpBalanceResponse:
    try:
        balance = deployment.pools.get_lp_balance(pool_id, holder)
    except LedgerError as err:
        raise _ledger_error(err) from err
    return LpBalanceResponse(
        pool_id=pool_id.lower(), holder=normalize_address(holder), balance=balance
    )


@router.get("/pools/{pool_id}/quote")
async def quote(
    pool_id: str = PathParam(pattern=BYTES32_PATTERN),
    token_in: str = Query(alias="tokenIn", pattern=ADDRESS_PATTERN),
    amount_in: int = Query(alias="amountIn", ge=0),
    deployment: Deployment = Depends(get_deployment),
) -> QuoteResponse:
    """Exact-input quote against the pool's current reserves."""
    try:
        amount_out = deployment.pools.quote(pool_id, token_in, amount_in)
    except LedgerError as err:
        raise _ledger_error(err) from err
    return QuoteResponse(
        pool_id=pool_id.lower(),
        token_in=normalize_address(token_in),
        amount_in=amount_in,
        amount_out=amount_out,
    )


@router.post("/quote/multi-hop")
async def quote_multi_hop(
    request: MultiHopQuoteRequest,
    deployment: Deployment = Depends(get_deployment),
) -> MultiHopQuoteResponse:
    """Simulate a multi-hop swap without changing any pool."""
    try:
        result = deployment.pools.quote_multi_hop(
            request.path, request.pool_ids, int(request.amount_in)
        )
    except LedgerError as err:
        raise _ledger_error(err) from err

    logger.debug(
        "multi_hop_quoted",
        hops=len(result.hops),
        amount_in=result.amount_in,
        amount_out=result.amount_out,
    )
    return MultiHopQuoteResponse.from_result(result)


# --- Streams ---


@router.get("/streams/{stream_id}")
async def get_stream(
    stream_id: int = PathParam(ge=1),
    deployment: Deployment = Depends(get_deployment),
) -> StreamView:
    try:
        stream = deployment.streams.get_stream(stream_id)
    except LedgerError as err:
        raise _ledger_error(err) from err
    return StreamView.from_stream(stream)


@router.get("/streams/{stream_id}/withdrawable/{account}")
async def get_withdrawable_balance(
    stream_id: int = PathParam(ge=1),
    account: str = PathParam(pattern=ADDRESS_PATTERN),
    deployment: Deployment = Depends(get_deployment),
) -> WithdrawableResponse:
    try:
        amount = deployment.streams.get_withdrawable_balance(stream_id, account)
    except LedgerError as err:
        raise _ledger_error(err) from err
    return WithdrawableResponse(
        stream_id=stream_id,
        account=normalize_address(account),
        amount=amount,
        block_number=deployment.chain.block_number,
    )


@router.get("/streams/{stream_id}/update-hash")
async def get_stream_update_hash(
    stream_id: int = PathParam(ge=1),
    payment_per_block: int = Query(alias="paymentPerBlock", ge=1),
    start_block: int = Query(alias="startBlock", ge=0),
    end_block: int = Query(alias="endBlock", ge=0),
    deployment: Deployment = Depends(get_deployment),
) -> StreamHashResponse:
    """Digest the counterparty signs to approve new stream terms."""
    digest = deployment.streams.hash_stream(stream_id, payment_per_block, (start_block, end_block))
    return StreamHashResponse(stream_id=stream_id, hash="0x" + digest.hex())


# --- Events ---


@router.get("/events")
async def list_events(
    name: str | None = Query(default=None, description="Event name, e.g. Swap"),
    address: str | None = Query(default=None, pattern=ADDRESS_PATTERN),
    from_block: int | None = Query(default=None, alias="fromBlock", ge=0),
    to_block: int | None = Query(default=None, alias="toBlock", ge=0),
    deployment: Deployment = Depends(get_deployment),
) -> EventsResponse:
    """Query the event log.

    Without a block range only the most recent DEFAULT_EVENT_LIMIT matches
    are returned.
    """
    entries = deployment.chain.events.query(
        name,
        address=address,
        from_block=from_block,
        to_block=to_block,
    )
    if from_block is None and to_block is None:
        entries = entries[-DEFAULT_EVENT_LIMIT:]
    return EventsResponse(events=[LogView.from_entry(entry) for entry in entries])
