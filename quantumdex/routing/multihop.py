"""Multi-hop routing through multiple pools."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING

from quantumdex.amm.constant_product import ConstantProduct, constant_product
from quantumdex.constants import MAX_HOPS, MIN_PATH_LENGTH
from quantumdex.errors import (
    InsufficientOutputAmount,
    InvalidPath,
    InvalidPathLength,
    InvalidPool,
)
from quantumdex.models.types import normalize_address
from quantumdex.routing.types import HopResult, RoutingResult

if TYPE_CHECKING:
    from quantumdex.pools.pool import Pool


class MultihopRouter:
    """Prices and applies exact-input swaps along a token path.

    A route is a token path [t0, t1, ..., tn] plus one pool id per hop, where
    pool i must hold exactly {t_i, t_i+1}. Hops execute in order and each
    hop's output is the next hop's input. The same pool may appear more than
    once; later hops see the reserves left by earlier ones.
    """

    def __init__(self, amm: ConstantProduct = constant_product, max_hops: int = MAX_HOPS) -> None:
        """Initialize the multi-hop router.

        Args:
            amm: Constant-product math used to price each hop
            max_hops: Longest route accepted, in pools
        """
        self.amm = amm
        self.max_hops = max_hops

    def check_lengths(self, path: Sequence[str], pool_ids: Sequence[str]) -> None:
        """Validate route shape before anything else is looked at.

        Raises:
            InvalidPathLength: If the path has fewer than two assets, more than
                max_hops hops, or pool_ids does not have one entry per hop
        """
        if len(path) < MIN_PATH_LENGTH:
            raise InvalidPathLength(f"Path needs at least {MIN_PATH_LENGTH} assets, got {len(path)}")
        hops = len(path) - 1
        if len(pool_ids) != hops:
            raise InvalidPathLength(f"Path has {hops} hops but {len(pool_ids)} pool ids given")
        if hops > self.max_hops:
            raise InvalidPathLength(f"Route has {hops} hops, maximum is {self.max_hops}")

    def resolve_pools(
        self,
        path: Sequence[str],
        pool_ids: Sequence[str],
        pools: Mapping[str, Pool],
    ) -> list[Pool]:
        """Look up and check the pool for every hop.

        Raises:
            InvalidPool: If a pool id is unknown
            InvalidPath: If a pool does not hold the hop's two assets
        """
        resolved: list[Pool] = []
        for i, pool_id in enumerate(pool_ids):
            pool = pools.get(pool_id.lower())
            if pool is None:
                raise InvalidPool(f"Hop {i}: unknown pool {pool_id}")
            if not pool.connects(path[i], path[i + 1]):
                raise InvalidPath(
                    f"Hop {i}: pool {pool_id} does not connect {path[i]} -> {path[i + 1]}"
                )
            resolved.append(pool)
        return resolved

    def execute_hop(self, pool: Pool, token_in: str, amount_in: int) -> HopResult:
        """Price one hop and apply it to the pool's reserves.

        Raises:
            InsufficientOutputAmount: If the hop produces nothing
        """
        reserve_in, reserve_out = pool.get_reserves(token_in)
        amount_out = self.amm.get_amount_out(amount_in, reserve_in, reserve_out, pool.fee_bps)
        if amount_out == 0:
            raise InsufficientOutputAmount(
                f"Pool {pool.pool_id}: {amount_in} in produces no output"
            )
        pool.apply_swap(token_in, amount_in, amount_out)
        return HopResult(
            pool_id=pool.pool_id,
            token_in=normalize_address(token_in),
            token_out=pool.get_token_out(token_in),
            amount_in=amount_in,
            amount_out=amount_out,
        )

    def swap_exact_input(
        self,
        pools: Sequence[Pool],
        path: Sequence[str],
        amount_in: int,
        on_hop: Callable[[Pool, HopResult], None] | None = None,
    ) -> RoutingResult:
        """Run amount_in through every hop, mutating the given pools.

        Callers that only want a quote pass copies of the pools.

        Args:
            pools: One pool per hop, as returned by resolve_pools
            path: Token path, one entry longer than pools
            amount_in: Exact input for the first hop
            on_hop: Called after each hop with the pool in its post-hop state
        """
        hops: list[HopResult] = []
        current_amount = amount_in
        for i, pool in enumerate(pools):
            hop = self.execute_hop(pool, path[i], current_amount)
            if on_hop is not None:
                on_hop(pool, hop)
            hops.append(hop)
            current_amount = hop.amount_out

        return RoutingResult(
            path=[normalize_address(token) for token in path],
            amount_in=amount_in,
            amount_out=current_amount,
            hops=hops,
        )


__all__ = ["MultihopRouter"]
