"""Tests for StreamLedger: create, withdraw, refund, refuel and renegotiation."""

import pytest

from quantumdex.errors import (
    ETHAmountMismatch,
    InsufficientBalance,
    InvalidAddress,
    InvalidAmount,
    InvalidSignature,
    InvalidTimeframe,
    InvalidToken,
    StreamAlreadyEnded,
    StreamNotEnded,
    StreamNotFound,
    UnexpectedETH,
    Unauthorized,
)
from quantumdex.streaming import Timeframe, hash_stream_update, sign_stream_update
from quantumdex.streaming.events import (
    StreamCreated,
    StreamRefueled,
    StreamRefunded,
    StreamUpdated,
    TokensWithdrawn,
)
from tests.helpers import (
    ALICE,
    ALICE_KEY,
    BOB,
    BOB_KEY,
    CAROL,
    CAROL_KEY,
    FUNDED_AMOUNT,
    NATIVE_ASSET,
    NATIVE_FUNDING,
    NULL_ADDRESS,
    timeframe_from_now,
)


@pytest.fixture
def window(chain, ledger, token_a) -> Timeframe:
    """Accrual window opening 5 blocks after ledger and token setup, lasting 100 blocks."""
    return timeframe_from_now(chain, start_offset=5, duration=100)


@pytest.fixture
def stream_id(ledger, token_a, window) -> int:
    """ALICE streams 1000 TKA to BOB at 1 per block."""
    return ledger.create_stream(BOB, token_a.address, 1000, window, 1, caller=ALICE)


class TestCreateStream:
    """Tests for opening streams."""

    def test_escrow_and_state(self, ledger, token_a, window, stream_id):
        stream = ledger.get_stream(stream_id)

        assert stream_id == 1
        assert (stream.sender, stream.recipient, stream.token) == (ALICE, BOB, token_a.address)
        assert stream.balance == 1000
        assert stream.timeframe == window
        assert stream.payment_per_block == 1
        assert stream.withdrawn_amount == stream.settled_amount == 0
        assert stream.is_active
        assert token_a.balance_of(ledger.address) == 1000
        assert token_a.balance_of(ALICE) == FUNDED_AMOUNT - 1000

    def test_window_opens_after_setup(self, window, chain, stream_id):
        """The window is measured from the block reached once every fixture is deployed."""
        assert window.start_block > chain.block_number
        chain.advance_to(window.start_block + 3)
        assert chain.block_number == window.start_block + 3

    def test_ids_increase(self, ledger, token_a, window, stream_id):
        second = ledger.create_stream(CAROL, token_a.address, 10, window, 1, caller=ALICE)
        assert second == stream_id + 1
        assert ledger.stream_count == 2

    def test_accepts_block_pair(self, ledger, token_a, chain):
        start = chain.block_number + 2
        stream_id = ledger.create_stream(BOB, token_a.address, 10, (start, start + 5), 2, caller=ALICE)
        assert ledger.get_stream(stream_id).timeframe == Timeframe(start, start + 5)

    def test_event(self, ledger, chain, token_a, stream_id):
        entries = chain.events.query(StreamCreated, stream_id=stream_id, sender=ALICE, recipient=BOB)
        assert len(entries) == 1
        assert entries[0].event.amount == 1000
        assert entries[0].event.token == token_a.address

    def test_null_recipient(self, ledger, token_a, window):
        with pytest.raises(InvalidAddress):
            ledger.create_stream(NULL_ADDRESS, token_a.address, 1000, window, 1, caller=ALICE)

    @pytest.mark.parametrize("balance, rate", [(0, 1), (1000, 0)])
    def test_zero_amounts(self, ledger, token_a, window, balance, rate):
        with pytest.raises(InvalidAmount):
            ledger.create_stream(BOB, token_a.address, balance, window, rate, caller=ALICE)

    def test_empty_window(self, ledger, token_a, chain):
        start = chain.block_number + 5
        with pytest.raises(InvalidTimeframe):
            ledger.create_stream(BOB, token_a.address, 1000, (start, start), 1, caller=ALICE)
        with pytest.raises(InvalidTimeframe):
            ledger.create_stream(BOB, token_a.address, 1000, (start, start - 1), 1, caller=ALICE)

    def test_unknown_token(self, ledger, window):
        with pytest.raises(InvalidToken):
            ledger.create_stream(BOB, "0x" + "22" * 20, 1000, window, 1, caller=ALICE)

    def test_native_stream(self, ledger, chain, window):
        stream_id = ledger.create_stream(BOB, NATIVE_ASSET, 500, window, 1, caller=ALICE, value=500)
        assert ledger.get_stream(stream_id).token == NATIVE_ASSET
        assert chain.balance_of(ledger.address) == 500
        assert chain.balance_of(ALICE) == NATIVE_FUNDING - 500

    def test_native_stream_value_mismatch(self, ledger, chain, window):
        with pytest.raises(ETHAmountMismatch):
            ledger.create_stream(BOB, NATIVE_ASSET, 500, window, 1, caller=ALICE, value=499)
        assert chain.balance_of(ALICE) == NATIVE_FUNDING
        assert ledger.stream_count == 0

    def test_unknown_stream(self, ledger):
        with pytest.raises(StreamNotFound):
            ledger.get_stream(99)

    def test_get_stream_returns_copy(self, ledger, stream_id):
        ledger.get_stream(stream_id).balance = 0
        assert ledger.get_stream(stream_id).balance == 1000


class TestWithdraw:
    """Tests for the recipient's withdrawals."""

    def test_nothing_before_start(self, ledger, stream_id):
        assert ledger.get_withdrawable_balance(stream_id, BOB) == 0
        with pytest.raises(InsufficientBalance):
            ledger.withdraw(stream_id, caller=BOB)

    def test_withdraw_pays_through_tx_block(self, ledger, chain, token_a, window, stream_id):
        """A read at start+10 sees 10; the withdrawal mines start+11 and pays 11."""
        chain.advance_to(window.start_block + 10)
        assert ledger.get_withdrawable_balance(stream_id, BOB) == 10

        assert ledger.withdraw(stream_id, caller=BOB) == 11

        stream = ledger.get_stream(stream_id)
        assert stream.withdrawn_amount == 11
        assert stream.balance == 989
        assert token_a.balance_of(BOB) == FUNDED_AMOUNT + 11
        assert ledger.get_withdrawable_balance(stream_id, BOB) == 0

    def test_withdrawable_by_role(self, ledger, chain, window, stream_id):
        chain.advance_to(window.start_block + 10)
        assert ledger.get_withdrawable_balance(stream_id, BOB) == 10
        assert ledger.get_withdrawable_balance(stream_id, ALICE) == 990
        assert ledger.get_withdrawable_balance(stream_id, CAROL) == 0

    def test_accrual_stops_at_end(self, ledger, chain, window, stream_id):
        chain.advance_to(window.end_block + 50)
        assert ledger.withdraw(stream_id, caller=BOB) == 100

    def test_underfunded_stream_pays_balance(self, ledger, chain, token_a, window):
        stream_id = ledger.create_stream(BOB, token_a.address, 40, window, 1, caller=ALICE)
        chain.advance_to(window.end_block)
        assert ledger.withdraw(stream_id, caller=BOB) == 40
        assert ledger.get_stream(stream_id).balance == 0

    def test_only_recipient(self, ledger, chain, window, stream_id):
        chain.advance_to(window.start_block + 10)
        with pytest.raises(Unauthorized):
            ledger.withdraw(stream_id, caller=ALICE)

    def test_event(self, ledger, chain, window, stream_id):
        chain.advance_to(window.start_block + 3)
        amount = ledger.withdraw(stream_id, caller=BOB)
        entries = chain.events.query(TokensWithdrawn, stream_id=stream_id, recipient=BOB)
        assert [entry.event.amount for entry in entries] == [amount]

    def test_native_withdrawal(self, ledger, chain, window):
        stream_id = ledger.create_stream(BOB, NATIVE_ASSET, 500, window, 2, caller=ALICE, value=500)
        chain.advance_to(window.start_block + 4)
        assert ledger.withdraw(stream_id, caller=BOB) == 10
        assert chain.balance_of(BOB) == NATIVE_FUNDING + 10


class TestRefund:
    """Tests for reclaiming unowed escrow after the window."""

    def test_refund_after_end(self, ledger, chain, token_a, window, stream_id):
        chain.advance_to(window.end_block)
        assert ledger.refund(stream_id, caller=ALICE) == 900

        assert token_a.balance_of(ALICE) == FUNDED_AMOUNT - 100
        # The recipient's accrual is untouched
        assert ledger.withdraw(stream_id, caller=BOB) == 100
        assert ledger.get_stream(stream_id).balance == 0

    def test_refund_in_last_block_of_window(self, ledger, chain, window, stream_id):
        """The refund transaction itself mines end_block."""
        chain.advance_to(window.end_block - 1)
        assert ledger.refund(stream_id, caller=ALICE) == 900

    def test_before_end(self, ledger, chain, window, stream_id):
        chain.advance_to(window.end_block - 2)
        with pytest.raises(StreamNotEnded):
            ledger.refund(stream_id, caller=ALICE)

    def test_nothing_left_to_refund(self, ledger, chain, window, stream_id):
        chain.advance_to(window.end_block)
        ledger.refund(stream_id, caller=ALICE)
        with pytest.raises(InsufficientBalance):
            ledger.refund(stream_id, caller=ALICE)

    def test_fully_owed_stream(self, ledger, chain, token_a, window):
        stream_id = ledger.create_stream(BOB, token_a.address, 100, window, 1, caller=ALICE)
        chain.advance_to(window.end_block)
        with pytest.raises(InsufficientBalance):
            ledger.refund(stream_id, caller=ALICE)

    def test_only_sender(self, ledger, chain, window, stream_id):
        chain.advance_to(window.end_block)
        with pytest.raises(Unauthorized):
            ledger.refund(stream_id, caller=BOB)

    def test_event(self, ledger, chain, window, stream_id):
        chain.advance_to(window.end_block)
        ledger.refund(stream_id, caller=ALICE)
        event = chain.events.query(StreamRefunded, stream_id=stream_id, sender=ALICE)[-1].event
        assert event.amount == 900


class TestRefuel:
    """Tests for topping up escrow."""

    def test_refuel(self, ledger, chain, token_a, stream_id):
        ledger.refuel(stream_id, 500, caller=ALICE)
        assert ledger.get_stream(stream_id).balance == 1500
        assert token_a.balance_of(ledger.address) == 1500
        assert chain.events.query(StreamRefueled, stream_id=stream_id)[-1].event.amount == 500

    def test_only_sender(self, ledger, stream_id):
        with pytest.raises(Unauthorized):
            ledger.refuel(stream_id, 500, caller=BOB)

    def test_zero_amount(self, ledger, stream_id):
        with pytest.raises(InvalidAmount):
            ledger.refuel(stream_id, 0, caller=ALICE)

    def test_value_on_token_stream(self, ledger, stream_id):
        with pytest.raises(UnexpectedETH):
            ledger.refuel(stream_id, 500, caller=ALICE, value=500)

    def test_native_refuel(self, ledger, chain, window):
        stream_id = ledger.create_stream(BOB, NATIVE_ASSET, 500, window, 1, caller=ALICE, value=500)
        ledger.refuel(stream_id, 250, caller=ALICE, value=250)
        assert ledger.get_stream(stream_id).balance == 750
        assert chain.balance_of(ledger.address) == 750

    def test_refuel_extends_underfunded_stream(self, ledger, chain, token_a, window):
        stream_id = ledger.create_stream(BOB, token_a.address, 40, window, 1, caller=ALICE)
        ledger.refuel(stream_id, 60, caller=ALICE)
        chain.advance_to(window.end_block)
        assert ledger.withdraw(stream_id, caller=BOB) == 100


class TestUpdateStreamDetails:
    """Tests for renegotiating rate and window."""

    def test_settles_old_terms(self, ledger, chain, window, stream_id):
        """Accrual up to the update block is kept; new terms apply after."""
        chain.advance_to(window.start_block + 10)
        new_window = timeframe_from_now(chain, start_offset=5, duration=50)
        signature = sign_stream_update(BOB_KEY, ledger.address, stream_id, 3, new_window)

        ledger.update_stream_details(stream_id, 3, new_window, signature, caller=ALICE)

        stream = ledger.get_stream(stream_id)
        # The update mined start+11
        assert stream.settled_amount == 11
        assert stream.payment_per_block == 3
        assert stream.timeframe == new_window

        chain.advance_to(new_window.start_block + 4)
        assert ledger.get_withdrawable_balance(stream_id, BOB) == 11 + 12

    def test_recipient_can_propose(self, ledger, chain, stream_id):
        new_window = timeframe_from_now(chain, start_offset=1, duration=10)
        signature = sign_stream_update(ALICE_KEY, ledger.address, stream_id, 2, new_window)
        ledger.update_stream_details(stream_id, 2, new_window, signature, caller=BOB)
        assert ledger.get_stream(stream_id).payment_per_block == 2

    def test_start_at_update_block(self, ledger, chain, stream_id):
        """A window may open in the block that carries the update."""
        new_window = timeframe_from_now(chain, start_offset=1, duration=10)
        signature = sign_stream_update(BOB_KEY, ledger.address, stream_id, 2, new_window)
        ledger.update_stream_details(stream_id, 2, new_window, signature, caller=ALICE)
        assert ledger.get_stream(stream_id).timeframe.start_block == chain.block_number

    def test_hex_signature(self, ledger, chain, stream_id):
        new_window = timeframe_from_now(chain, start_offset=3, duration=10)
        signature = sign_stream_update(BOB_KEY, ledger.address, stream_id, 2, new_window)
        ledger.update_stream_details(stream_id, 2, new_window, "0x" + signature.hex(), caller=ALICE)

    def test_event(self, ledger, chain, stream_id):
        new_window = timeframe_from_now(chain, start_offset=3, duration=10)
        signature = sign_stream_update(BOB_KEY, ledger.address, stream_id, 2, new_window)
        ledger.update_stream_details(stream_id, 2, new_window, signature, caller=ALICE)

        event = chain.events.query(StreamUpdated, stream_id=stream_id)[-1].event
        assert (event.payment_per_block, event.start_block, event.end_block) == (
            2,
            new_window.start_block,
            new_window.end_block,
        )

    def test_third_party(self, ledger, chain, stream_id):
        new_window = timeframe_from_now(chain, start_offset=3, duration=10)
        signature = sign_stream_update(BOB_KEY, ledger.address, stream_id, 2, new_window)
        with pytest.raises(Unauthorized):
            ledger.update_stream_details(stream_id, 2, new_window, signature, caller=CAROL)

    @pytest.mark.parametrize("key", [CAROL_KEY, ALICE_KEY])
    def test_wrong_signer(self, ledger, chain, stream_id, key):
        """Only the counterparty's signature counts, not the caller's own."""
        new_window = timeframe_from_now(chain, start_offset=3, duration=10)
        signature = sign_stream_update(key, ledger.address, stream_id, 2, new_window)
        with pytest.raises(InvalidSignature):
            ledger.update_stream_details(stream_id, 2, new_window, signature, caller=ALICE)

    def test_signature_bound_to_terms(self, ledger, chain, stream_id):
        new_window = timeframe_from_now(chain, start_offset=3, duration=10)
        signature = sign_stream_update(BOB_KEY, ledger.address, stream_id, 2, new_window)
        with pytest.raises(InvalidSignature):
            ledger.update_stream_details(stream_id, 5, new_window, signature, caller=ALICE)

    def test_malformed_signature(self, ledger, chain, stream_id):
        new_window = timeframe_from_now(chain, start_offset=3, duration=10)
        with pytest.raises(InvalidSignature):
            ledger.update_stream_details(stream_id, 2, new_window, b"bad-signature", caller=ALICE)

    def test_ended_stream(self, ledger, chain, window, stream_id):
        chain.advance_to(window.end_block)
        new_window = timeframe_from_now(chain, start_offset=3, duration=10)
        signature = sign_stream_update(BOB_KEY, ledger.address, stream_id, 2, new_window)
        with pytest.raises(StreamAlreadyEnded):
            ledger.update_stream_details(stream_id, 2, new_window, signature, caller=ALICE)

    def test_window_in_the_past(self, ledger, chain, stream_id):
        new_window = timeframe_from_now(chain, start_offset=0, duration=10)
        signature = sign_stream_update(BOB_KEY, ledger.address, stream_id, 2, new_window)
        with pytest.raises(InvalidTimeframe):
            ledger.update_stream_details(stream_id, 2, new_window, signature, caller=ALICE)

    def test_empty_window(self, ledger, chain, stream_id):
        start = chain.block_number + 5
        signature = sign_stream_update(BOB_KEY, ledger.address, stream_id, 2, (start, start))
        with pytest.raises(InvalidTimeframe):
            ledger.update_stream_details(stream_id, 2, (start, start), signature, caller=ALICE)

    def test_zero_rate(self, ledger, chain, stream_id):
        new_window = timeframe_from_now(chain, start_offset=3, duration=10)
        signature = sign_stream_update(BOB_KEY, ledger.address, stream_id, 0, new_window)
        with pytest.raises(InvalidAmount):
            ledger.update_stream_details(stream_id, 0, new_window, signature, caller=ALICE)

    def test_hash_stream_matches_signed_digest(self, ledger, stream_id):
        assert ledger.hash_stream(stream_id, 2, (10, 20)) == hash_stream_update(
            ledger.address, stream_id, 2, Timeframe(10, 20)
        )
