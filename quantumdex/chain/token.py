"""Fungible token contract for non-native assets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar

from quantumdex.chain.contract import Contract, entrypoint
from quantumdex.chain.events import Event
from quantumdex.constants import NULL_ADDRESS, UINT256_MAX
from quantumdex.errors import InsufficientAllowance, InsufficientTokenBalance, InvalidAddress
from quantumdex.models.types import normalize_address

if TYPE_CHECKING:
    from quantumdex.chain.chain import Chain


@dataclass(frozen=True)
class Transfer(Event):
    indexed: ClassVar[tuple[str, ...]] = ("sender", "to")

    sender: str
    to: str
    amount: int


@dataclass(frozen=True)
class Approval(Event):
    indexed: ClassVar[tuple[str, ...]] = ("owner", "spender")

    owner: str
    spender: str
    amount: int


class Token(Contract):
    """Standard fungible token with open minting.

    An allowance of UINT256_MAX is treated as unlimited and is never
    decremented.
    """

    _storage = ("balances", "allowances", "total_supply")

    def __init__(
        self,
        chain: Chain,
        name: str,
        symbol: str,
        decimals: int = 18,
        deployer: str = NULL_ADDRESS,
    ) -> None:
        super().__init__(chain, deployer)
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.balances: dict[str, int] = {}
        self.allowances: dict[tuple[str, str], int] = {}
        self.total_supply = 0

    def balance_of(self, holder: str) -> int:
        return self.balances.get(normalize_address(holder), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    @entrypoint(guarded=False)
    def mint(self, to: str, amount: int, *, caller: str) -> None:
        to = normalize_address(to)
        if to == NULL_ADDRESS:
            raise InvalidAddress("Cannot mint to the null address")
        self.balances[to] = self.balances.get(to, 0) + amount
        self.total_supply += amount
        self._emit(Transfer(sender=NULL_ADDRESS, to=to, amount=amount))

    @entrypoint(guarded=False)
    def approve(self, spender: str, amount: int, *, caller: str) -> bool:
        spender = normalize_address(spender)
        self.allowances[(caller, spender)] = amount
        self._emit(Approval(owner=caller, spender=spender, amount=amount))
        return True

    @entrypoint(guarded=False)
    def transfer(self, to: str, amount: int, *, caller: str) -> bool:
        self._move(caller, normalize_address(to), amount)
        return True

    @entrypoint(guarded=False)
    def transfer_from(self, owner: str, to: str, amount: int, *, caller: str) -> bool:
        owner = normalize_address(owner)
        current = self.allowances.get((owner, caller), 0)
        if current < amount:
            raise InsufficientAllowance(
                f"{self.symbol}: allowance {current} for {caller} on {owner}, needs {amount}"
            )
        if current != UINT256_MAX:
            self.allowances[(owner, caller)] = current - amount
        self._move(owner, normalize_address(to), amount)
        return True

    def _move(self, sender: str, to: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Transfer amount cannot be negative: {amount}")
        if to == NULL_ADDRESS:
            raise InvalidAddress(f"{self.symbol}: transfer to the null address")
        available = self.balances.get(sender, 0)
        if available < amount:
            raise InsufficientTokenBalance(
                f"{self.symbol}: {sender} holds {available}, needs {amount}"
            )
        self.balances[sender] = available - amount
        self.balances[to] = self.balances.get(to, 0) + amount
        self._emit(Transfer(sender=sender, to=to, amount=amount))
