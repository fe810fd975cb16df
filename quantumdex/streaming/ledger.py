"""Stream ledger: block-metered payment streams.

A sender escrows an asset for a recipient, who can withdraw whatever has
accrued so far at a fixed amount per block. After the window closes the
sender can reclaim any escrow not owed. Either party can change rate and
window with the other party's signature over the new terms; what accrued
under the old terms is checkpointed into settled_amount first.

Accrual is evaluated at the current block height. A transaction executes in
the block it mines, so a withdrawal pays one block more than a read-only
get_withdrawable_balance made just before it.
"""

from __future__ import annotations

import copy

import structlog

from quantumdex.chain.chain import Chain
from quantumdex.chain.contract import Contract, checked_address, entrypoint
from quantumdex.chain.transfer import AssetTransfer, is_native
from quantumdex.constants import NULL_ADDRESS
from quantumdex.errors import (
    InsufficientBalance,
    InvalidAddress,
    InvalidAmount,
    InvalidSignature,
    InvalidTimeframe,
    StreamAlreadyEnded,
    StreamNotActive,
    StreamNotEnded,
    StreamNotFound,
    Unauthorized,
)
from quantumdex.streaming.events import (
    StreamCreated,
    StreamRefueled,
    StreamRefunded,
    StreamUpdated,
    TokensWithdrawn,
)
from quantumdex.streaming.signing import hash_stream_update, recover_signer
from quantumdex.streaming.stream import Stream, Timeframe

logger = structlog.get_logger()


class StreamLedger(Contract):
    """Escrow and accounting for every payment stream."""

    _storage = ("streams", "stream_count")

    def __init__(self, chain: Chain, deployer: str = NULL_ADDRESS) -> None:
        super().__init__(chain, deployer)
        self.streams: dict[int, Stream] = {}
        # Last id handed out; ids start at 1
        self.stream_count = 0
        self._assets = AssetTransfer(self)

    @entrypoint(payable=True)
    def create_stream(
        self,
        recipient: str,
        token: str,
        initial_balance: int,
        timeframe: Timeframe | tuple[int, int],
        payment_per_block: int,
        *,
        caller: str,
        value: int = 0,
    ) -> int:
        """Open a stream funded by the caller.

        Args:
            recipient: Account paid by the stream
            token: Streamed asset (NATIVE_ASSET for the native asset)
            initial_balance: Amount escrowed now
            timeframe: (start_block, end_block) accrual window
            payment_per_block: Accrual rate
            caller: Transaction sender, who becomes the stream's sender
            value: Attached native value (must equal initial_balance for native streams)

        Returns:
            The new stream's id
        """
        recipient = checked_address(recipient)
        if recipient == NULL_ADDRESS:
            raise InvalidAddress("Stream recipient cannot be the null address")
        token = checked_address(token)
        if initial_balance <= 0:
            raise InvalidAmount("Initial balance must be positive")
        if payment_per_block <= 0:
            raise InvalidAmount("Payment per block must be positive")
        timeframe = Timeframe.of(timeframe)
        if timeframe.start_block >= timeframe.end_block:
            raise InvalidTimeframe(
                f"Start block {timeframe.start_block} is not before end block {timeframe.end_block}"
            )
        self._assets.check_value([(token, initial_balance)], value)
        if not is_native(token):
            self._assets.token(token)

        self.stream_count += 1
        stream_id = self.stream_count
        self.streams[stream_id] = Stream(
            stream_id=stream_id,
            sender=caller,
            recipient=recipient,
            token=token,
            balance=initial_balance,
            timeframe=timeframe,
            payment_per_block=payment_per_block,
        )

        self._assets.pull(token, caller, initial_balance)

        self._emit(
            StreamCreated(
                stream_id=stream_id,
                sender=caller,
                recipient=recipient,
                token=token,
                amount=initial_balance,
            )
        )
        logger.info(
            "stream_created",
            stream_id=stream_id,
            sender=caller[-8:],
            recipient=recipient[-8:],
            token=token[-8:],
            amount=initial_balance,
            start_block=timeframe.start_block,
            end_block=timeframe.end_block,
        )
        return stream_id

    @entrypoint(payable=True)
    def refuel(self, stream_id: int, amount: int, *, caller: str, value: int = 0) -> None:
        """Add escrow to a stream. Sender only."""
        stream = self._get_stream(stream_id)
        self._only(stream.sender, caller, "sender")
        # Streams are never deactivated today; kept for a future cancel path
        if not stream.is_active:
            raise StreamNotActive(f"Stream {stream_id} is not active")
        if amount <= 0:
            raise InvalidAmount("Refuel amount must be positive")
        self._assets.check_value([(stream.token, amount)], value)

        stream.balance += amount
        self._assets.pull(stream.token, caller, amount)

        self._emit(StreamRefueled(stream_id=stream_id, amount=amount))
        logger.info("stream_refueled", stream_id=stream_id, amount=amount, balance=stream.balance)

    @entrypoint()
    def withdraw(self, stream_id: int, *, caller: str) -> int:
        """Pay the recipient everything accrued and not yet withdrawn.

        Returns:
            Amount paid
        """
        stream = self._get_stream(stream_id)
        self._only(stream.recipient, caller, "recipient")
        amount = stream.withdrawable(self.chain.block_number)
        if amount == 0:
            raise InsufficientBalance(f"Stream {stream_id}: nothing to withdraw")

        stream.balance -= amount
        stream.withdrawn_amount += amount
        self._assets.push(stream.token, caller, amount)

        self._emit(TokensWithdrawn(stream_id=stream_id, recipient=caller, amount=amount))
        logger.info(
            "stream_withdrawn",
            stream_id=stream_id,
            amount=amount,
            withdrawn=stream.withdrawn_amount,
            block=self.chain.block_number,
        )
        return amount

    @entrypoint()
    def refund(self, stream_id: int, *, caller: str) -> int:
        """Return unowed escrow to the sender once the window has closed.

        Returns:
            Amount refunded
        """
        stream = self._get_stream(stream_id)
        self._only(stream.sender, caller, "sender")
        block = self.chain.block_number
        if not stream.has_ended(block):
            raise StreamNotEnded(
                f"Stream {stream_id} ends at block {stream.timeframe.end_block}, now {block}"
            )
        amount = stream.refundable(block)
        if amount == 0:
            raise InsufficientBalance(f"Stream {stream_id}: nothing to refund")

        stream.balance -= amount
        self._assets.push(stream.token, caller, amount)

        self._emit(StreamRefunded(stream_id=stream_id, sender=caller, amount=amount))
        logger.info("stream_refunded", stream_id=stream_id, amount=amount)
        return amount

    @entrypoint()
    def update_stream_details(
        self,
        stream_id: int,
        new_payment_per_block: int,
        new_timeframe: Timeframe | tuple[int, int],
        signature: bytes | str,
        *,
        caller: str,
    ) -> None:
        """Replace rate and window with the counterparty's consent.

        The caller is one party; `signature` must be the other party's
        personal-message signature over hash_stream(stream_id,
        new_payment_per_block, new_timeframe).
        """
        stream = self._get_stream(stream_id)
        if caller == stream.sender:
            counterparty = stream.recipient
        elif caller == stream.recipient:
            counterparty = stream.sender
        else:
            raise Unauthorized(f"{caller} is not a party to stream {stream_id}")

        new_timeframe = Timeframe.of(new_timeframe)
        digest = self.hash_stream(stream_id, new_payment_per_block, new_timeframe)
        signer = recover_signer(digest, signature)
        if signer != counterparty:
            raise InvalidSignature(
                f"Stream {stream_id}: signed by {signer}, expected {counterparty}"
            )

        block = self.chain.block_number
        if stream.has_ended(block):
            raise StreamAlreadyEnded(
                f"Stream {stream_id} ended at block {stream.timeframe.end_block}"
            )
        if new_timeframe.start_block < block:
            raise InvalidTimeframe(
                f"New start block {new_timeframe.start_block} is before current block {block}"
            )
        if new_timeframe.start_block >= new_timeframe.end_block:
            raise InvalidTimeframe(
                f"New start block {new_timeframe.start_block} is not before "
                f"end block {new_timeframe.end_block}"
            )
        if new_payment_per_block <= 0:
            raise InvalidAmount("Payment per block must be positive")

        stream.settled_amount = stream.total_due(block)
        stream.timeframe = new_timeframe
        stream.payment_per_block = new_payment_per_block

        self._emit(
            StreamUpdated(
                stream_id=stream_id,
                payment_per_block=new_payment_per_block,
                start_block=new_timeframe.start_block,
                end_block=new_timeframe.end_block,
            )
        )
        logger.info(
            "stream_updated",
            stream_id=stream_id,
            payment_per_block=new_payment_per_block,
            start_block=new_timeframe.start_block,
            end_block=new_timeframe.end_block,
            settled=stream.settled_amount,
        )

    # --- Read-only ---

    def get_stream(self, stream_id: int) -> Stream:
        """Get a copy of a stream's state.

        Raises:
            StreamNotFound: If no stream has this id
        """
        return copy.deepcopy(self._get_stream(stream_id))

    def get_withdrawable_balance(self, stream_id: int, account: str) -> int:
        """What `account` could take out of the stream at the current height.

        The recipient sees the withdrawable accrual, the sender sees the escrow
        not owed to the recipient, and anyone else sees 0.
        """
        stream = self._get_stream(stream_id)
        account = checked_address(account)
        block = self.chain.block_number
        if account == stream.recipient:
            return stream.withdrawable(block)
        if account == stream.sender:
            return stream.refundable(block)
        return 0

    def hash_stream(
        self,
        stream_id: int,
        new_payment_per_block: int,
        new_timeframe: Timeframe | tuple[int, int],
    ) -> bytes:
        """Digest the counterparty signs to approve new stream terms."""
        return hash_stream_update(self.address, stream_id, new_payment_per_block, new_timeframe)

    def _get_stream(self, stream_id: int) -> Stream:
        stream = self.streams.get(stream_id)
        if stream is None:
            raise StreamNotFound(f"No stream with id {stream_id}")
        return stream

    def _only(self, expected: str, caller: str, role: str) -> None:
        if caller != expected:
            raise Unauthorized(f"Only the stream {role} may call this, not {caller}")


__all__ = ["StreamLedger"]
