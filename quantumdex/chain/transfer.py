"""Asset movement on behalf of a contract.

Both engines escrow assets the same way: the native asset arrives as value
attached to the transaction and leaves as a direct native transfer, while
tokens are pulled with transfer_from (the payer must have approved the
contract) and pushed with transfer.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from quantumdex.chain.token import Token
from quantumdex.constants import NATIVE_ASSET
from quantumdex.errors import ETHAmountMismatch, InvalidToken, UnexpectedETH
from quantumdex.models.types import normalize_address

if TYPE_CHECKING:
    from quantumdex.chain.contract import Contract


def is_native(asset: str) -> bool:
    return normalize_address(asset) == NATIVE_ASSET


class AssetTransfer:
    """Escrow-in / escrow-out helper bound to one holding contract."""

    def __init__(self, holder: Contract) -> None:
        self._holder = holder

    @property
    def holder(self) -> str:
        return self._holder.address

    def check_value(self, legs: Iterable[tuple[str, int]], value: int) -> None:
        """Validate attached native value against the declared asset legs.

        Args:
            legs: (asset, amount) pairs the call will escrow
            value: Native value attached to the call

        Raises:
            UnexpectedETH: If value is attached but no leg is native
            ETHAmountMismatch: If value differs from the native leg's amount
        """
        native_legs = [amount for asset, amount in legs if is_native(asset)]
        if not native_legs:
            if value:
                raise UnexpectedETH(f"No native leg but {value} native units attached")
            return
        expected = sum(native_legs)
        if value != expected:
            raise ETHAmountMismatch(f"Attached {value} native units, declared {expected}")

    def token(self, asset: str) -> Token:
        contract = self._holder.chain.contract_at(asset)
        if not isinstance(contract, Token):
            raise InvalidToken(f"No token contract at {asset}")
        return contract

    def balance_of(self, asset: str) -> int:
        """Amount of asset held by the holding contract."""
        if is_native(asset):
            return self._holder.chain.balance_of(self.holder)
        return self.token(asset).balance_of(self.holder)

    def pull(self, asset: str, payer: str, amount: int) -> None:
        """Escrow amount of asset from payer into the holder.

        Native value has already been credited on transaction entry, so only
        tokens move here.
        """
        if amount == 0 or is_native(asset):
            return
        self.token(asset).transfer_from(payer, self.holder, amount, caller=self.holder)

    def push(self, asset: str, to: str, amount: int) -> None:
        """Pay amount of asset out of the holder."""
        if amount == 0:
            return
        if is_native(asset):
            self._holder.chain.transfer_native(self.holder, to, amount)
        else:
            self.token(asset).transfer(to, amount, caller=self.holder)
