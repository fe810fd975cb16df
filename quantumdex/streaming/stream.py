"""Stream state and accrual math."""

from __future__ import annotations

from dataclasses import dataclass

from quantumdex.safe_int import S


@dataclass(frozen=True)
class Timeframe:
    """Half-open block window [start_block, end_block)."""

    start_block: int
    end_block: int

    @property
    def duration(self) -> int:
        return self.end_block - self.start_block

    @classmethod
    def of(cls, value: Timeframe | tuple[int, int]) -> Timeframe:
        """Accept either a Timeframe or a (start_block, end_block) pair."""
        if isinstance(value, Timeframe):
            return value
        start_block, end_block = value
        return cls(start_block=start_block, end_block=end_block)


@dataclass
class Stream:
    """A block-metered payment from sender to recipient.

    Payment accrues at payment_per_block for every block inside the
    timeframe. settled_amount holds what accrued under earlier terms when the
    parties renegotiated rate or window.
    """

    stream_id: int
    sender: str
    recipient: str
    token: str
    # Escrowed and not yet paid out
    balance: int
    timeframe: Timeframe
    payment_per_block: int
    withdrawn_amount: int = 0
    settled_amount: int = 0
    is_active: bool = True

    def accrued(self, block_number: int) -> int:
        """Amount accrued under the current terms as of block_number."""
        start = self.timeframe.start_block
        if block_number <= start:
            return 0
        elapsed = min(block_number, self.timeframe.end_block) - start
        return (S(self.payment_per_block) * elapsed).value

    def total_due(self, block_number: int) -> int:
        """Everything owed to the recipient since creation, paid or not."""
        return self.settled_amount + self.accrued(block_number)

    def owed(self, block_number: int) -> int:
        """Accrued but not yet withdrawn (may exceed balance if underfunded)."""
        return S(self.total_due(block_number)).saturating_sub(self.withdrawn_amount).value

    def withdrawable(self, block_number: int) -> int:
        return min(self.balance, self.owed(block_number))

    def refundable(self, block_number: int) -> int:
        """Escrow the sender could reclaim: balance minus what is owed."""
        return self.balance - self.withdrawable(block_number)

    def has_ended(self, block_number: int) -> bool:
        return block_number >= self.timeframe.end_block
