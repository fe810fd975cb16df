"""Host execution environment for ledger contracts.

The Chain totally orders transactions. Each top-level entry-point call mines
one block and executes in it (automine), so reads made between transactions
see the height of the last mined block while the next transaction sees one
more. A transaction either commits every mutation it made or, if an exception
escapes, rolls back contract storage, native balances and the event log to
the state before it started.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog
from eth_abi import encode  # type: ignore[attr-defined]
from eth_utils import keccak

from quantumdex.chain.events import Event, EventLog, LogEntry
from quantumdex.constants import NULL_ADDRESS
from quantumdex.errors import InsufficientFunds
from quantumdex.models.types import address_to_bytes, normalize_address

if TYPE_CHECKING:
    from quantumdex.chain.contract import Contract

logger = structlog.get_logger()


@dataclass(frozen=True)
class _Snapshot:
    storage: dict[str, dict[str, Any]]
    native: dict[str, int]
    log_length: int


class Chain:
    """Block height, native balances, deployed contracts and the event log."""

    def __init__(self, block_number: int = 0, chain_id: int = 31337) -> None:
        self.block_number = block_number
        self.chain_id = chain_id
        self.events = EventLog()
        self._native: dict[str, int] = {}
        self._contracts: dict[str, Contract] = {}
        self._nonces: dict[str, int] = {}
        self._depth = 0
        self._tx_count = 0
        self._log_index = 0

    # --- Blocks ---

    def mine(self, blocks: int = 1) -> int:
        """Mine empty blocks and return the new height."""
        if blocks < 0:
            raise ValueError(f"Cannot mine a negative number of blocks: {blocks}")
        self.block_number += blocks
        return self.block_number

    def advance_to(self, block_number: int) -> int:
        """Mine empty blocks until the height equals block_number."""
        if block_number < self.block_number:
            raise ValueError(
                f"Cannot move back from block {self.block_number} to {block_number}"
            )
        self.block_number = block_number
        return self.block_number

    @property
    def tx_count(self) -> int:
        """Index of the most recent transaction (0 before the first one)."""
        return self._tx_count

    # --- Native asset ---

    def balance_of(self, address: str) -> int:
        return self._native.get(normalize_address(address), 0)

    def set_balance(self, address: str, amount: int) -> None:
        """Overwrite an account's native balance (test and tooling helper)."""
        if amount < 0:
            raise ValueError(f"Balance cannot be negative: {amount}")
        self._native[normalize_address(address)] = amount

    def transfer_native(self, sender: str, to: str, amount: int) -> None:
        """Move native asset between accounts.

        Raises:
            InsufficientFunds: If sender holds less than amount
        """
        sender = normalize_address(sender)
        to = normalize_address(to)
        available = self._native.get(sender, 0)
        if amount > available:
            raise InsufficientFunds(
                f"{sender} holds {available} native units, needs {amount}"
            )
        self._native[sender] = available - amount
        self._native[to] = self._native.get(to, 0) + amount

    # --- Contracts ---

    def register(self, contract: Contract, deployer: str = NULL_ADDRESS) -> str:
        """Assign an address to a newly deployed contract.

        The address is the last 20 bytes of keccak(abi.encode(deployer, nonce)),
        so deployments replay to the same addresses. Deployment counts as a
        transaction and mines a block.
        """
        deployer = normalize_address(deployer, validate=True)
        nonce = self._nonces.get(deployer, 0)
        self._nonces[deployer] = nonce + 1

        digest = keccak(encode(["address", "uint256"], [address_to_bytes(deployer), nonce]))
        address = "0x" + digest[-20:].hex()

        self.block_number += 1
        self._tx_count += 1
        self._log_index = 0
        self._contracts[address] = contract

        logger.debug(
            "contract_deployed",
            contract=type(contract).__name__,
            address=address,
            deployer=deployer,
            block=self.block_number,
        )
        return address

    def contract_at(self, address: str) -> Contract | None:
        return self._contracts.get(normalize_address(address))

    # --- Events ---

    def emit(self, address: str, event: Event) -> LogEntry:
        entry = LogEntry(
            block_number=self.block_number,
            tx_index=self._tx_count,
            log_index=self._log_index,
            address=address,
            event=event,
        )
        self._log_index += 1
        self.events.append(entry)
        return entry

    # --- Transactions ---

    @contextmanager
    def transaction(self, caller: str, to: str, value: int = 0) -> Iterator[None]:
        """Run a call as (part of) a transaction.

        The outermost call mines a block and snapshots state; nested calls join
        it. Attached native value moves from caller to the callee before the
        call body runs.
        """
        outermost = self._depth == 0
        snapshot: _Snapshot | None = None
        if outermost:
            self.block_number += 1
            self._tx_count += 1
            self._log_index = 0
            snapshot = self._snapshot()

        self._depth += 1
        try:
            if value:
                self.transfer_native(caller, to, value)
            yield
        except Exception as exc:
            if snapshot is not None:
                self._restore(snapshot)
                logger.warning(
                    "transaction_reverted",
                    caller=caller,
                    to=to,
                    block=self.block_number,
                    error=type(exc).__name__,
                    reason=str(exc),
                )
            raise
        finally:
            self._depth -= 1

    def _snapshot(self) -> _Snapshot:
        return _Snapshot(
            storage={
                address: contract.snapshot_storage()
                for address, contract in self._contracts.items()
            },
            native=dict(self._native),
            log_length=len(self.events),
        )

    def _restore(self, snapshot: _Snapshot) -> None:
        for address, storage in snapshot.storage.items():
            self._contracts[address].restore_storage(storage)
        self._native = snapshot.native
        self.events.truncate(snapshot.log_length)
