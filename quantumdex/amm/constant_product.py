"""Constant-product pool math.

Pools hold two reserves whose product k = x * y may only grow: swaps charge
a fee on the input amount, and liquidity is minted and burned pro rata. All
rounding favors the pool.
"""

from __future__ import annotations

from quantumdex.constants import BPS_DENOMINATOR, PRICE_SCALE
from quantumdex.safe_int import S


class ConstantProduct:
    """Constant-product AMM math.

    Formula: amount_out = (in * (10000 - fee) * res_out) / (res_in * 10000 + in * (10000 - fee))
    """

    def get_amount_out(
        self,
        amount_in: int,
        reserve_in: int,
        reserve_out: int,
        fee_bps: int,
    ) -> int:
        """Calculate output amount for an exact input.

        The fee is applied to the input without intermediate rounding, so a
        30 bps pool multiplies by 9970 and divides once.

        Args:
            amount_in: Input token amount
            reserve_in: Reserve of input token in pool
            reserve_out: Reserve of output token in pool
            fee_bps: Pool fee in basis points

        Returns:
            Output token amount (0 for empty input or reserves)
        """
        if amount_in <= 0:
            return 0
        if reserve_in <= 0 or reserve_out <= 0:
            return 0

        amount_in_with_fee = S(amount_in) * (BPS_DENOMINATOR - fee_bps)
        numerator = amount_in_with_fee * reserve_out
        denominator = S(reserve_in) * BPS_DENOMINATOR + amount_in_with_fee

        return (numerator // denominator).value

    def initial_liquidity(self, amount0: int, amount1: int) -> int:
        """Shares minted for the first deposit: floor(sqrt(amount0 * amount1))."""
        return (S(amount0) * amount1).sqrt().value

    def liquidity_for_deposit(
        self,
        amount0: int,
        amount1: int,
        reserve0: int,
        reserve1: int,
        total_supply: int,
    ) -> int:
        """Shares minted for a deposit into an existing pool.

        The smaller of the two pro-rata share counts, so an unbalanced deposit
        never mints more than its scarcer leg justifies.
        """
        share0 = S(amount0) * total_supply // reserve0
        share1 = S(amount1) * total_supply // reserve1
        return share0.min(share1).value

    def deposit_amounts(
        self,
        liquidity: int,
        reserve0: int,
        reserve1: int,
        total_supply: int,
    ) -> tuple[int, int]:
        """Assets required to mint `liquidity` shares at the current ratio (rounded up)."""
        amount0 = (S(liquidity) * reserve0).ceiling_div(total_supply)
        amount1 = (S(liquidity) * reserve1).ceiling_div(total_supply)
        return amount0.value, amount1.value

    def withdrawal_amounts(
        self,
        liquidity: int,
        reserve0: int,
        reserve1: int,
        total_supply: int,
    ) -> tuple[int, int]:
        """Assets returned for burning `liquidity` shares (rounded down)."""
        amount0 = S(liquidity) * reserve0 // total_supply
        amount1 = S(liquidity) * reserve1 // total_supply
        return amount0.value, amount1.value

    def flash_fee(self, amount: int, fee_bps: int) -> int:
        """Flash-loan fee: amount * fee_bps / 10000, rounded down."""
        return (S(amount) * fee_bps // BPS_DENOMINATOR).value

    def spot_price(self, reserve_base: int, reserve_quote: int) -> int:
        """Price of one base unit in quote units, scaled by PRICE_SCALE (0 if empty)."""
        if reserve_base == 0:
            return 0
        return (S(reserve_quote) * PRICE_SCALE // reserve_base).value


# Singleton instance
constant_product = ConstantProduct()


__all__ = ["ConstantProduct", "constant_product"]
