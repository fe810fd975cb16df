"""Flash-loan borrower interface."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class FlashBorrower(Protocol):
    """Contract that can receive a flash loan.

    The registry sends `amount` of `token` to the borrower, calls
    on_flash_loan within the same transaction, and then requires its own
    balance of `token` to have grown back by `amount + fee`. Repaying is a
    plain transfer to the registry's address (a token transfer, or a native
    transfer for the native asset).
    """

    address: str

    def on_flash_loan(self, token: str, amount: int, fee: int, data: bytes) -> None:
        """Use the borrowed funds and repay them before returning.

        Args:
            token: Borrowed asset
            amount: Principal received
            fee: Fee owed on top of the principal
            data: Opaque payload passed through from the flash_loan call
        """
        ...
