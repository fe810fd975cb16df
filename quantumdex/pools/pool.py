"""Constant-product pool state."""

from __future__ import annotations

from dataclasses import dataclass, field

from eth_abi import encode  # type: ignore[attr-defined]
from eth_utils import keccak

from quantumdex.constants import RESERVE_BITS
from quantumdex.errors import InsufficientLpBalance, InvalidToken, ReserveOverflow
from quantumdex.models.types import address_to_bytes, normalize_address, sort_tokens
from quantumdex.safe_int import S, UintOverflow


def compute_pool_id(token_a: str, token_b: str, fee_bps: int) -> str:
    """Deterministic pool identifier: keccak256(abi.encode(token0, token1, uint16 fee)).

    The pair is sorted first, so argument order does not matter.

    Returns:
        0x-prefixed 32-byte hex string
    """
    token0, token1 = sort_tokens(token_a, token_b)
    encoded = encode(
        ["address", "address", "uint16"],
        [address_to_bytes(token0), address_to_bytes(token1), fee_bps],
    )
    return "0x" + keccak(encoded).hex()


@dataclass
class Pool:
    """A two-asset constant-product pool and its share ledger.

    Invariants maintained by the mutators below:
    - total_supply == sum(lp_balances.values())
    - both reserves fit in 112 bits
    """

    pool_id: str
    token0: str
    token1: str
    # Fee in basis points (30 = 0.3%), fixed at creation
    fee_bps: int
    reserve0: int = 0
    reserve1: int = 0
    total_supply: int = 0
    # Shares locked to the null address at creation
    locked_liquidity: int = 0
    lp_balances: dict[str, int] = field(default_factory=dict)

    @property
    def k(self) -> int:
        return self.reserve0 * self.reserve1

    def has_token(self, token: str) -> bool:
        return normalize_address(token) in (self.token0, self.token1)

    def connects(self, token_a: str, token_b: str) -> bool:
        """True if the pool's pair is {token_a, token_b}, in either order."""
        pair = {normalize_address(token_a), normalize_address(token_b)}
        return pair == {self.token0, self.token1}

    def reserve_of(self, token: str) -> int:
        token = normalize_address(token)
        if token == self.token0:
            return self.reserve0
        if token == self.token1:
            return self.reserve1
        raise InvalidToken(f"Token {token} not in pool {self.pool_id}")

    def get_reserves(self, token_in: str) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out)."""
        token_in = normalize_address(token_in)
        if token_in == self.token0:
            return self.reserve0, self.reserve1
        if token_in == self.token1:
            return self.reserve1, self.reserve0
        raise InvalidToken(f"Token {token_in} not in pool {self.pool_id}")

    def get_token_out(self, token_in: str) -> str:
        """Get the output token for a given input token."""
        token_in = normalize_address(token_in)
        if token_in == self.token0:
            return self.token1
        if token_in == self.token1:
            return self.token0
        raise InvalidToken(f"Token {token_in} not in pool {self.pool_id}")

    def lp_balance(self, holder: str) -> int:
        return self.lp_balances.get(normalize_address(holder), 0)

    # --- Mutators ---

    def set_reserves(self, reserve0: int, reserve1: int) -> None:
        """Replace both reserves.

        Raises:
            ReserveOverflow: If either reserve does not fit in 112 bits
        """
        for name, reserve in (("reserve0", reserve0), ("reserve1", reserve1)):
            try:
                S(reserve).to_uint(RESERVE_BITS)
            except UintOverflow as e:
                raise ReserveOverflow(
                    f"Pool {self.pool_id}: {name} {reserve} exceeds uint{RESERVE_BITS}"
                ) from e
        self.reserve0 = reserve0
        self.reserve1 = reserve1

    def apply_swap(self, token_in: str, amount_in: int, amount_out: int) -> None:
        """Add amount_in to the input reserve and take amount_out from the other."""
        if normalize_address(token_in) == self.token0:
            self.set_reserves(
                (S(self.reserve0) + amount_in).value, (S(self.reserve1) - amount_out).value
            )
        else:
            self.set_reserves(
                (S(self.reserve0) - amount_out).value, (S(self.reserve1) + amount_in).value
            )

    def credit_reserve(self, token: str, amount: int) -> None:
        """Grow one reserve without touching the other (flash-loan fee)."""
        if normalize_address(token) == self.token0:
            self.set_reserves(self.reserve0 + amount, self.reserve1)
        else:
            self.set_reserves(self.reserve0, self.reserve1 + amount)

    def mint(self, to: str, liquidity: int) -> None:
        to = normalize_address(to)
        self.lp_balances[to] = self.lp_balances.get(to, 0) + liquidity
        self.total_supply += liquidity

    def burn(self, holder: str, liquidity: int) -> None:
        """Burn shares held by holder.

        Raises:
            InsufficientLpBalance: If holder has fewer than `liquidity` shares
        """
        holder = normalize_address(holder)
        held = self.lp_balances.get(holder, 0)
        if held < liquidity:
            raise InsufficientLpBalance(
                f"Pool {self.pool_id}: {holder} holds {held} shares, burning {liquidity}"
            )
        remaining = held - liquidity
        if remaining:
            self.lp_balances[holder] = remaining
        else:
            del self.lp_balances[holder]
        self.total_supply -= liquidity
