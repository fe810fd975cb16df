"""Tests for the host chain: blocks, native balances, transactions and rollback."""

import pytest

from quantumdex.chain import Chain, Contract, Token, entrypoint
from quantumdex.chain.events import Event
from quantumdex.errors import (
    InsufficientAllowance,
    InsufficientFunds,
    InsufficientTokenBalance,
    InvalidAddress,
    ReentrantCall,
    UnexpectedETH,
)
from tests.helpers import ALICE, BOB, OWNER


class _Counter(Contract):
    """Minimal contract exercising storage rollback and the entrypoint decorator."""

    _storage = ("count", "history")

    def __init__(self, chain: Chain) -> None:
        super().__init__(chain, OWNER)
        self.count = 0
        self.history: list[int] = []

    @entrypoint()
    def increment(self, fail: bool = False, *, caller: str) -> int:
        self.count += 1
        self.history.append(self.chain.block_number)
        if fail:
            raise RuntimeError("boom")
        return self.count

    @entrypoint(payable=True)
    def deposit(self, *, caller: str, value: int = 0) -> int:
        return value

    @entrypoint()
    def reenter(self, *, caller: str) -> None:
        self.increment(caller=caller)


@pytest.fixture
def bare_chain() -> Chain:
    chain = Chain()
    chain.set_balance(ALICE, 1000)
    return chain


class TestBlocks:
    """Tests for block production."""

    def test_mine_and_advance(self, bare_chain):
        assert bare_chain.mine(5) == 5
        assert bare_chain.advance_to(20) == 20

    def test_cannot_go_backwards(self, bare_chain):
        bare_chain.advance_to(10)
        with pytest.raises(ValueError):
            bare_chain.advance_to(9)
        with pytest.raises(ValueError):
            bare_chain.mine(-1)

    def test_deployment_mines_a_block(self, bare_chain):
        _Counter(bare_chain)
        assert bare_chain.block_number == 1
        assert bare_chain.tx_count == 1

    def test_transaction_executes_in_next_block(self, bare_chain):
        counter = _Counter(bare_chain)
        before = bare_chain.block_number
        counter.increment(caller=ALICE)
        assert counter.history == [before + 1]
        assert bare_chain.block_number == before + 1

    def test_deployment_addresses_are_deterministic(self):
        first = _Counter(Chain()).address
        second = _Counter(Chain()).address
        assert first == second
        assert len(first) == 42


class TestNativeBalances:
    """Tests for native-asset accounting."""

    def test_transfer_native(self, bare_chain):
        bare_chain.transfer_native(ALICE, BOB, 400)
        assert bare_chain.balance_of(ALICE) == 600
        assert bare_chain.balance_of(BOB) == 400

    def test_transfer_native_insufficient(self, bare_chain):
        with pytest.raises(InsufficientFunds):
            bare_chain.transfer_native(ALICE, BOB, 1001)

    def test_attached_value_moves_to_contract(self, bare_chain):
        counter = _Counter(bare_chain)
        assert counter.deposit(caller=ALICE, value=300) == 300
        assert bare_chain.balance_of(counter.address) == 300
        assert bare_chain.balance_of(ALICE) == 700

    def test_value_on_non_payable_reverts(self, bare_chain):
        counter = _Counter(bare_chain)
        with pytest.raises(UnexpectedETH):
            counter.increment(caller=ALICE, value=1)
        assert bare_chain.balance_of(ALICE) == 1000
        assert counter.count == 0


class TestRollback:
    """Tests for transaction atomicity."""

    def test_failed_transaction_restores_storage(self, bare_chain):
        counter = _Counter(bare_chain)
        counter.increment(caller=ALICE)
        with pytest.raises(RuntimeError):
            counter.increment(fail=True, caller=ALICE)
        assert counter.count == 1
        assert len(counter.history) == 1

    def test_failed_transaction_still_consumes_block(self, bare_chain):
        counter = _Counter(bare_chain)
        before = bare_chain.block_number
        with pytest.raises(RuntimeError):
            counter.increment(fail=True, caller=ALICE)
        assert bare_chain.block_number == before + 1

    def test_failed_transaction_drops_its_events(self, bare_chain):
        token = Token(bare_chain, "Token", "TKN", deployer=OWNER)
        token.mint(ALICE, 100, caller=OWNER)
        logged = len(bare_chain.events)
        with pytest.raises(InsufficientTokenBalance):
            token.transfer(BOB, 101, caller=ALICE)
        assert len(bare_chain.events) == logged

    def test_reentry_into_guarded_entrypoint(self, bare_chain):
        counter = _Counter(bare_chain)
        with pytest.raises(ReentrantCall):
            counter.reenter(caller=ALICE)
        assert counter.count == 0

    def test_invalid_caller(self, bare_chain):
        counter = _Counter(bare_chain)
        with pytest.raises(InvalidAddress):
            counter.increment(caller="not-an-address")


class TestToken:
    """Tests for the fungible token contract."""

    @pytest.fixture
    def token(self, bare_chain) -> Token:
        token = Token(bare_chain, "Token", "TKN", deployer=OWNER)
        token.mint(ALICE, 1000, caller=OWNER)
        return token

    def test_transfer(self, token):
        token.transfer(BOB, 250, caller=ALICE)
        assert token.balance_of(ALICE) == 750
        assert token.balance_of(BOB) == 250
        assert token.total_supply == 1000

    def test_transfer_to_null_reverts(self, token):
        with pytest.raises(InvalidAddress):
            token.transfer("0x" + "00" * 20, 1, caller=ALICE)

    def test_transfer_from_consumes_allowance(self, token):
        token.approve(BOB, 300, caller=ALICE)
        token.transfer_from(ALICE, BOB, 200, caller=BOB)
        assert token.allowance(ALICE, BOB) == 100
        with pytest.raises(InsufficientAllowance):
            token.transfer_from(ALICE, BOB, 101, caller=BOB)

    def test_unlimited_allowance_not_decremented(self, token):
        token.approve(BOB, 2**256 - 1, caller=ALICE)
        token.transfer_from(ALICE, BOB, 500, caller=BOB)
        assert token.allowance(ALICE, BOB) == 2**256 - 1

    def test_transfer_events(self, token, bare_chain):
        token.transfer(BOB, 5, caller=ALICE)
        entries = bare_chain.events.query("Transfer", address=token.address, sender=ALICE)
        assert [entry.event.amount for entry in entries] == [5]


class TestEventLog:
    """Tests for event queries."""

    def test_query_by_type_and_topic(self, bare_chain):
        from quantumdex.chain.token import Transfer

        token = Token(bare_chain, "Token", "TKN", deployer=OWNER)
        token.mint(ALICE, 10, caller=OWNER)
        token.mint(BOB, 20, caller=OWNER)

        to_bob = bare_chain.events.query(Transfer, to=BOB.upper().replace("0X", "0x"))
        assert len(to_bob) == 1
        assert to_bob[0].event.amount == 20

    def test_query_unknown_topic_raises(self, bare_chain):
        from quantumdex.chain.token import Transfer

        with pytest.raises(ValueError):
            bare_chain.events.query(Transfer, amount=10)

    def test_query_block_range(self, bare_chain):
        token = Token(bare_chain, "Token", "TKN", deployer=OWNER)
        token.mint(ALICE, 10, caller=OWNER)
        first_block = bare_chain.block_number
        token.mint(ALICE, 10, caller=OWNER)
        assert len(bare_chain.events.query(from_block=first_block + 1)) == 1
        assert len(bare_chain.events.query(to_block=first_block)) == 1

    def test_event_helpers(self):
        from quantumdex.chain.token import Transfer

        event = Transfer(sender=ALICE, to=BOB, amount=1)
        assert event.name == "Transfer"
        assert event.topics() == {"sender": ALICE, "to": BOB}
        assert event.to_dict() == {"sender": ALICE, "to": BOB, "amount": 1}
        assert Transfer.field_names() == ("sender", "to", "amount")
        assert isinstance(event, Event)
