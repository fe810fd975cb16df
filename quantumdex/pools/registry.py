"""Pool registry: the constant-product exchange contract.

One PoolRegistry holds every pool and escrows every pool's assets under its
own address. Pools are keyed by a deterministic id derived from the sorted
pair and the fee tier, so a pair may have one pool per fee tier.

Every mutating entry point validates, updates pool bookkeeping, moves assets
and then emits notifications. Routing along multi-pool paths is delegated to
MultihopRouter (quantumdex.routing.multihop).
"""

from __future__ import annotations

import copy
from collections.abc import Sequence

import structlog

from quantumdex.amm.constant_product import ConstantProduct, constant_product
from quantumdex.chain.chain import Chain
from quantumdex.chain.contract import Contract, checked_address, entrypoint
from quantumdex.chain.transfer import AssetTransfer, is_native
from quantumdex.config import DEFAULT_LEDGER_CONFIG, LedgerConfig
from quantumdex.constants import MAX_FEE_BPS, MIN_FEE_BPS, NULL_ADDRESS
from quantumdex.errors import (
    BothETH,
    FeeTooHigh,
    FlashLoanNotRepaid,
    IdenticalAssets,
    InsufficientLiquidity,
    InsufficientLiquidityBurned,
    InsufficientLiquidityForFlashLoan,
    InsufficientLiquidityMinted,
    InsufficientLpBalance,
    InvalidAddress,
    InvalidAmount,
    InvalidBorrower,
    InvalidFee,
    InvalidToken,
    Paused,
    PoolAlreadyExists,
    PoolNotFound,
    SlippageExceeded,
    Unauthorized,
    ZeroAmount,
    ZeroInput,
    ZeroRecipient,
)
from quantumdex.models.types import sort_tokens
from quantumdex.pools.events import (
    DefaultFeeUpdated,
    FlashLoan,
    FlashLoanFeeUpdated,
    LiquidityAdded,
    LiquidityRemoved,
    MinimumLiquidityUpdated,
    MultiHopSwap,
    OwnershipTransferred,
    PoolCreated,
    PoolUpdated,
    PriceUpdate,
    RegistryPaused,
    RegistryUnpaused,
    Swap,
)
from quantumdex.pools.flash import FlashBorrower
from quantumdex.pools.pool import Pool, compute_pool_id
from quantumdex.routing.multihop import MultihopRouter
from quantumdex.routing.types import HopResult, RoutingResult

logger = structlog.get_logger()


class PoolRegistry(Contract):
    """Registry and router for constant-product pools.

    Administrative parameters (default fee, flash-loan fee, liquidity floor,
    pause flag) start from a LedgerConfig and are owner-controlled afterwards.
    A fee change only affects pools created later; each pool keeps the fee
    and liquidity floor it was created with.
    """

    _storage = (
        "pools",
        "owner",
        "default_fee_bps",
        "flash_loan_fee_bps",
        "minimum_liquidity",
        "paused",
    )

    def __init__(
        self,
        chain: Chain,
        owner: str,
        config: LedgerConfig = DEFAULT_LEDGER_CONFIG,
        amm: ConstantProduct = constant_product,
        deployer: str | None = None,
    ) -> None:
        """Deploy a registry.

        Args:
            chain: Chain to deploy on
            owner: Account allowed to call the administrative setters
            config: Initial protocol parameters
            amm: Pool math
            deployer: Deploying account (defaults to owner)
        """
        owner = checked_address(owner)
        super().__init__(chain, deployer or owner)
        self.owner = owner
        self.default_fee_bps = config.default_fee_bps
        self.flash_loan_fee_bps = config.flash_loan_fee_bps
        self.minimum_liquidity = config.minimum_liquidity
        self.paused = False
        self.pools: dict[str, Pool] = {}

        self.amm = amm
        self.router = MultihopRouter(amm, max_hops=config.max_hops)
        self._assets = AssetTransfer(self)

    # --- Pool lifecycle ---

    @entrypoint(payable=True)
    def create_pool(
        self,
        token_a: str,
        token_b: str,
        amount_a: int,
        amount_b: int,
        min_liquidity: int = 0,
        *,
        caller: str,
        value: int = 0,
    ) -> str:
        """Create a pool at the current default fee and seed it.

        The first sqrt(amount_a * amount_b) shares are minted, of which the
        liquidity floor is locked to the null address and the rest go to the
        caller.

        Args:
            token_a: One pool asset (NATIVE_ASSET for the native asset)
            token_b: The other pool asset
            amount_a: Initial deposit of token_a
            amount_b: Initial deposit of token_b
            min_liquidity: Minimum shares the caller must receive
            caller: Transaction sender
            value: Attached native value (must equal the native leg, if any)

        Returns:
            The new pool's id
        """
        self._require_not_paused()
        token_a = checked_address(token_a)
        token_b = checked_address(token_b)
        if is_native(token_a) and is_native(token_b):
            raise BothETH("A pool cannot hold the native asset on both sides")
        if token_a == token_b:
            raise IdenticalAssets(f"Both pool assets are {token_a}")
        if amount_a <= 0 or amount_b <= 0:
            raise ZeroAmount(f"Initial amounts must be positive: {amount_a}, {amount_b}")
        self._assets.check_value([(token_a, amount_a), (token_b, amount_b)], value)
        for asset in (token_a, token_b):
            if not is_native(asset):
                self._assets.token(asset)

        token0, token1 = sort_tokens(token_a, token_b)
        amount0, amount1 = (amount_a, amount_b) if token0 == token_a else (amount_b, amount_a)
        fee_bps = self.default_fee_bps
        pool_id = compute_pool_id(token0, token1, fee_bps)
        if pool_id in self.pools:
            raise PoolAlreadyExists(f"Pool {pool_id} already exists")

        liquidity = self.amm.initial_liquidity(amount0, amount1)
        floor = self.minimum_liquidity
        if liquidity <= floor:
            raise InsufficientLiquidity(
                f"Initial liquidity {liquidity} does not exceed the floor {floor}"
            )
        minted = liquidity - floor
        if minted < min_liquidity:
            raise SlippageExceeded(f"Minted {minted} shares, minimum {min_liquidity}")

        pool = Pool(
            pool_id=pool_id,
            token0=token0,
            token1=token1,
            fee_bps=fee_bps,
            locked_liquidity=floor,
        )
        pool.set_reserves(amount0, amount1)
        pool.mint(NULL_ADDRESS, floor)
        pool.mint(caller, minted)
        self.pools[pool_id] = pool

        self._assets.pull(token0, caller, amount0)
        self._assets.pull(token1, caller, amount1)

        self._emit(PoolCreated(pool_id=pool_id, token0=token0, token1=token1, fee_bps=fee_bps))
        self._emit(
            LiquidityAdded(
                pool_id=pool_id,
                provider=caller,
                amount0=amount0,
                amount1=amount1,
                liquidity=minted,
            )
        )
        self._publish(pool)

        logger.info(
            "pool_created",
            pool_id=pool_id[:10],
            token0=token0[-8:],
            token1=token1[-8:],
            fee_bps=fee_bps,
            liquidity=minted,
        )
        return pool_id

    @entrypoint(payable=True)
    def add_liquidity(
        self,
        pool_id: str,
        amount0_desired: int,
        amount1_desired: int,
        *,
        caller: str,
        value: int = 0,
    ) -> int:
        """Deposit into an existing pool at its current ratio.

        Shares minted are the smaller of the two pro-rata amounts; only the
        assets that back those shares are pulled. A native leg must attach
        amount0_desired and gets the unused remainder back.

        Returns:
            Shares minted to the caller
        """
        self._require_not_paused()
        pool = self._get_pool(pool_id)
        if amount0_desired <= 0 or amount1_desired <= 0:
            raise ZeroAmount(
                f"Desired amounts must be positive: {amount0_desired}, {amount1_desired}"
            )
        self._assets.check_value(
            [(pool.token0, amount0_desired), (pool.token1, amount1_desired)], value
        )

        minted = self.amm.liquidity_for_deposit(
            amount0_desired,
            amount1_desired,
            pool.reserve0,
            pool.reserve1,
            pool.total_supply,
        )
        if minted == 0:
            raise InsufficientLiquidityMinted(
                f"Pool {pool.pool_id}: deposit of {amount0_desired}/{amount1_desired} mints no shares"
            )
        amount0, amount1 = self.amm.deposit_amounts(
            minted, pool.reserve0, pool.reserve1, pool.total_supply
        )

        pool.set_reserves(pool.reserve0 + amount0, pool.reserve1 + amount1)
        pool.mint(caller, minted)

        legs = (
            (pool.token0, amount0, amount0_desired),
            (pool.token1, amount1, amount1_desired),
        )
        for asset, used, desired in legs:
            self._assets.pull(asset, caller, used)
            if is_native(asset) and used < desired:
                self._assets.push(asset, caller, desired - used)

        self._emit(
            LiquidityAdded(
                pool_id=pool.pool_id,
                provider=caller,
                amount0=amount0,
                amount1=amount1,
                liquidity=minted,
            )
        )
        self._publish(pool)

        logger.info(
            "liquidity_added",
            pool_id=pool.pool_id[:10],
            provider=caller[-8:],
            amount0=amount0,
            amount1=amount1,
            liquidity=minted,
        )
        return minted

    @entrypoint()
    def remove_liquidity(self, pool_id: str, liquidity: int, *, caller: str) -> tuple[int, int]:
        """Burn shares for a pro-rata share of both reserves.

        Allowed while the registry is paused.

        Returns:
            (amount0, amount1) paid to the caller
        """
        if liquidity <= 0:
            raise ZeroAmount("Liquidity to remove must be positive")
        pool = self._get_pool(pool_id)
        held = pool.lp_balance(caller)
        if held < liquidity:
            raise InsufficientLpBalance(
                f"Pool {pool.pool_id}: {caller} holds {held} shares, removing {liquidity}"
            )
        if pool.total_supply - liquidity < pool.locked_liquidity:
            raise InsufficientLiquidity(
                f"Pool {pool.pool_id}: removal would leave fewer than "
                f"{pool.locked_liquidity} shares"
            )

        amount0, amount1 = self.amm.withdrawal_amounts(
            liquidity, pool.reserve0, pool.reserve1, pool.total_supply
        )
        if amount0 == 0 and amount1 == 0:
            raise InsufficientLiquidityBurned(
                f"Pool {pool.pool_id}: burning {liquidity} shares returns nothing"
            )

        pool.burn(caller, liquidity)
        pool.set_reserves(pool.reserve0 - amount0, pool.reserve1 - amount1)

        self._assets.push(pool.token0, caller, amount0)
        self._assets.push(pool.token1, caller, amount1)

        self._emit(
            LiquidityRemoved(
                pool_id=pool.pool_id,
                provider=caller,
                amount0=amount0,
                amount1=amount1,
                liquidity=liquidity,
            )
        )
        self._publish(pool)

        logger.info(
            "liquidity_removed",
            pool_id=pool.pool_id[:10],
            provider=caller[-8:],
            amount0=amount0,
            amount1=amount1,
            liquidity=liquidity,
        )
        return amount0, amount1

    # --- Swaps ---

    @entrypoint(payable=True)
    def swap(
        self,
        pool_id: str,
        token_in: str,
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        *,
        caller: str,
        value: int = 0,
    ) -> int:
        """Exact-input swap through one pool.

        Returns:
            Output amount paid to recipient
        """
        self._require_not_paused()
        pool = self._get_pool(pool_id)
        token_in = checked_address(token_in)
        if not pool.has_token(token_in):
            raise InvalidToken(f"Token {token_in} not in pool {pool.pool_id}")
        if amount_in <= 0:
            raise ZeroAmount("Swap input must be positive")
        recipient = self._checked_recipient(recipient)
        self._assets.check_value([(token_in, amount_in)], value)

        hop = self.router.execute_hop(pool, token_in, amount_in)
        if hop.amount_out < min_amount_out:
            raise SlippageExceeded(f"Output {hop.amount_out} below minimum {min_amount_out}")

        self._assets.pull(token_in, caller, amount_in)
        self._assets.push(hop.token_out, recipient, hop.amount_out)

        self._emit_swap(pool, hop, caller, recipient)

        logger.debug(
            "swap_executed",
            pool_id=pool.pool_id[:10],
            token_in=hop.token_in[-8:],
            token_out=hop.token_out[-8:],
            amount_in=amount_in,
            amount_out=hop.amount_out,
        )
        return hop.amount_out

    @entrypoint(payable=True)
    def swap_multi_hop(
        self,
        path: Sequence[str],
        pool_ids: Sequence[str],
        amount_in: int,
        min_amount_out: int,
        recipient: str,
        *,
        caller: str,
        value: int = 0,
    ) -> int:
        """Exact-input swap along path, one pool per hop.

        Intermediate amounts never leave the registry; only the first asset is
        pulled from the caller and only the last is paid to recipient. The
        slippage check applies to the final output.

        Returns:
            Final output amount paid to recipient
        """
        self._require_not_paused()
        self.router.check_lengths(path, pool_ids)
        if amount_in <= 0:
            raise ZeroInput("Multi-hop input must be positive")
        recipient = self._checked_recipient(recipient)
        path = [checked_address(token) for token in path]
        route = self.router.resolve_pools(path, pool_ids, self.pools)
        self._assets.check_value([(path[0], amount_in)], value)

        last_hop = len(route) - 1
        hops_done: list[HopResult] = []

        def emit_hop(pool: Pool, hop: HopResult) -> None:
            # Intermediate outputs stay in the registry
            hop_recipient = recipient if len(hops_done) == last_hop else self.address
            self._emit_swap(pool, hop, caller, hop_recipient)
            hops_done.append(hop)

        result = self.router.swap_exact_input(route, path, amount_in, on_hop=emit_hop)
        if result.amount_out < min_amount_out:
            raise SlippageExceeded(f"Output {result.amount_out} below minimum {min_amount_out}")

        self._assets.pull(path[0], caller, amount_in)
        self._assets.push(path[-1], recipient, result.amount_out)

        self._emit(
            MultiHopSwap(
                sender=caller,
                recipient=recipient,
                token_in=path[0],
                token_out=path[-1],
                amount_in=amount_in,
                amount_out=result.amount_out,
                pool_ids=tuple(result.pool_ids),
            )
        )

        logger.info(
            "multi_hop_swap_executed",
            hops=len(route),
            token_in=path[0][-8:],
            token_out=path[-1][-8:],
            amount_in=amount_in,
            amount_out=result.amount_out,
        )
        return result.amount_out

    # --- Flash loans ---

    @entrypoint()
    def flash_loan(
        self,
        pool_id: str,
        token: str,
        amount: int,
        data: bytes = b"",
        *,
        caller: str,
    ) -> int:
        """Lend `amount` of one pool asset to the calling contract for one call.

        The caller must be a deployed FlashBorrower. After its on_flash_loan
        callback returns, the registry's balance of `token` must have grown by
        at least the fee relative to before the loan went out. The fee is
        added to the pool's reserve.

        Returns:
            The fee charged
        """
        self._require_not_paused()
        if amount <= 0:
            raise ZeroAmount("Flash loan amount must be positive")
        pool = self._get_pool(pool_id)
        token = checked_address(token)
        if not pool.has_token(token):
            raise InvalidToken(f"Token {token} not in pool {pool.pool_id}")
        reserve = pool.reserve_of(token)
        if amount > reserve:
            raise InsufficientLiquidityForFlashLoan(
                f"Pool {pool.pool_id}: borrowing {amount}, reserve is {reserve}"
            )
        borrower = self.chain.contract_at(caller)
        if not isinstance(borrower, FlashBorrower):
            raise InvalidBorrower(f"{caller} does not implement on_flash_loan")

        fee = self.amm.flash_fee(amount, self.flash_loan_fee_bps)
        balance_before = self._assets.balance_of(token)

        self._assets.push(token, caller, amount)
        borrower.on_flash_loan(token, amount, fee, data)

        balance_after = self._assets.balance_of(token)
        if balance_after < balance_before + fee:
            raise FlashLoanNotRepaid(
                f"Pool {pool.pool_id}: expected {amount + fee} back, "
                f"got {balance_after - balance_before + amount}"
            )
        pool.credit_reserve(token, fee)

        self._emit(
            FlashLoan(pool_id=pool.pool_id, token=token, borrower=caller, amount=amount, fee=fee)
        )
        self._publish(pool)

        logger.info(
            "flash_loan_executed",
            pool_id=pool.pool_id[:10],
            token=token[-8:],
            borrower=caller[-8:],
            amount=amount,
            fee=fee,
        )
        return fee

    # --- Administration ---

    @entrypoint()
    def set_default_fee_bps(self, fee_bps: int, *, caller: str) -> None:
        """Set the fee tier for pools created from now on."""
        self._only_owner(caller)
        if fee_bps < MIN_FEE_BPS:
            raise InvalidFee(f"Fee {fee_bps} bps below minimum {MIN_FEE_BPS}")
        if fee_bps > MAX_FEE_BPS:
            raise FeeTooHigh(f"Fee {fee_bps} bps above maximum {MAX_FEE_BPS}")
        old = self.default_fee_bps
        self.default_fee_bps = fee_bps
        self._emit(DefaultFeeUpdated(old_fee_bps=old, new_fee_bps=fee_bps))
        logger.info("default_fee_updated", old_fee_bps=old, new_fee_bps=fee_bps)

    @entrypoint()
    def set_flash_loan_fee_bps(self, fee_bps: int, *, caller: str) -> None:
        self._only_owner(caller)
        if fee_bps < 0:
            raise InvalidFee(f"Flash loan fee cannot be negative: {fee_bps}")
        if fee_bps > MAX_FEE_BPS:
            raise FeeTooHigh(f"Flash loan fee {fee_bps} bps above maximum {MAX_FEE_BPS}")
        old = self.flash_loan_fee_bps
        self.flash_loan_fee_bps = fee_bps
        self._emit(FlashLoanFeeUpdated(old_fee_bps=old, new_fee_bps=fee_bps))
        logger.info("flash_loan_fee_updated", old_fee_bps=old, new_fee_bps=fee_bps)

    @entrypoint()
    def set_minimum_liquidity(self, amount: int, *, caller: str) -> None:
        """Set the floor locked by pools created from now on."""
        self._only_owner(caller)
        if amount <= 0:
            raise InvalidAmount("Minimum liquidity must be positive")
        old = self.minimum_liquidity
        self.minimum_liquidity = amount
        self._emit(MinimumLiquidityUpdated(old_amount=old, new_amount=amount))
        logger.info("minimum_liquidity_updated", old_amount=old, new_amount=amount)

    @entrypoint()
    def pause(self, *, caller: str) -> None:
        self._only_owner(caller)
        self.paused = True
        self._emit(RegistryPaused(account=caller))
        logger.warning("registry_paused", account=caller[-8:])

    @entrypoint()
    def unpause(self, *, caller: str) -> None:
        self._only_owner(caller)
        self.paused = False
        self._emit(RegistryUnpaused(account=caller))
        logger.info("registry_unpaused", account=caller[-8:])

    @entrypoint()
    def transfer_ownership(self, new_owner: str, *, caller: str) -> None:
        self._only_owner(caller)
        new_owner = checked_address(new_owner)
        if new_owner == NULL_ADDRESS:
            raise InvalidAddress("New owner cannot be the null address")
        previous = self.owner
        self.owner = new_owner
        self._emit(OwnershipTransferred(previous_owner=previous, new_owner=new_owner))
        logger.info("ownership_transferred", previous_owner=previous, new_owner=new_owner)

    # --- Read-only ---

    def get_pool(self, pool_id: str) -> Pool:
        """Get a copy of a pool's state.

        Raises:
            PoolNotFound: If no pool has this id
        """
        return copy.deepcopy(self._get_pool(pool_id))

    def get_pool_id(self, token_a: str, token_b: str, fee_bps: int | None = None) -> str:
        """Derive a pool id without looking it up (fee defaults to the current default)."""
        if fee_bps is None:
            fee_bps = self.default_fee_bps
        return compute_pool_id(checked_address(token_a), checked_address(token_b), fee_bps)

    def get_lp_balance(self, pool_id: str, holder: str) -> int:
        return self._get_pool(pool_id).lp_balance(checked_address(holder))

    def pool_ids(self) -> list[str]:
        """Ids of all pools, in creation order."""
        return list(self.pools)

    def quote(self, pool_id: str, token_in: str, amount_in: int) -> int:
        """Output a swap of amount_in would produce right now (0 for zero input)."""
        pool = self._get_pool(pool_id)
        reserve_in, reserve_out = pool.get_reserves(checked_address(token_in))
        return self.amm.get_amount_out(amount_in, reserve_in, reserve_out, pool.fee_bps)

    def quote_multi_hop(
        self,
        path: Sequence[str],
        pool_ids: Sequence[str],
        amount_in: int,
    ) -> RoutingResult:
        """Simulate swap_multi_hop against copies of the pools.

        Raises the same validation errors swap_multi_hop would.
        """
        self.router.check_lengths(path, pool_ids)
        if amount_in <= 0:
            raise ZeroInput("Multi-hop input must be positive")
        path = [checked_address(token) for token in path]
        # Copy the route as a whole so a pool used twice stays one object
        route = copy.deepcopy(self.router.resolve_pools(path, pool_ids, self.pools))
        return self.router.swap_exact_input(route, path, amount_in)

    # --- Internals ---

    def _get_pool(self, pool_id: str) -> Pool:
        pool = self.pools.get(str(pool_id).lower())
        if pool is None:
            raise PoolNotFound(f"No pool with id {pool_id}")
        return pool

    def _require_not_paused(self) -> None:
        if self.paused:
            raise Paused("Pool registry is paused")

    def _only_owner(self, caller: str) -> None:
        if caller != self.owner:
            raise Unauthorized(f"{caller} is not the registry owner")

    def _checked_recipient(self, recipient: str) -> str:
        recipient = checked_address(recipient)
        if recipient == NULL_ADDRESS:
            raise ZeroRecipient("Recipient cannot be the null address")
        return recipient

    def _emit_swap(self, pool: Pool, hop: HopResult, sender: str, recipient: str) -> None:
        self._emit(
            Swap(
                pool_id=pool.pool_id,
                sender=sender,
                token_in=hop.token_in,
                token_out=hop.token_out,
                amount_in=hop.amount_in,
                amount_out=hop.amount_out,
                recipient=recipient,
            )
        )
        self._publish(pool)

    def _publish(self, pool: Pool) -> None:
        """Emit the pool's post-mutation reserves and spot prices."""
        self._emit(
            PoolUpdated(
                pool_id=pool.pool_id,
                token0=pool.token0,
                token1=pool.token1,
                reserve0=pool.reserve0,
                reserve1=pool.reserve1,
                total_supply=pool.total_supply,
            )
        )
        self._emit(
            PriceUpdate(
                pool_id=pool.pool_id,
                price0=self.amm.spot_price(pool.reserve0, pool.reserve1),
                price1=self.amm.spot_price(pool.reserve1, pool.reserve0),
            )
        )


__all__ = ["PoolRegistry"]
