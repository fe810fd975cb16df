"""Host execution environment.

Module structure:
- chain.py: Chain (blocks, native balances, transactions with rollback)
- contract.py: Contract base class and the entrypoint decorator
- token.py: fungible Token contract
- transfer.py: AssetTransfer escrow helper with native-asset handling
- events.py: Event, LogEntry and the queryable EventLog
"""

from quantumdex.chain.chain import Chain
from quantumdex.chain.contract import Contract, checked_address, entrypoint
from quantumdex.chain.events import Event, EventLog, LogEntry
from quantumdex.chain.token import Approval, Token, Transfer
from quantumdex.chain.transfer import AssetTransfer, is_native

__all__ = [
    "Approval",
    "AssetTransfer",
    "Chain",
    "Contract",
    "Event",
    "EventLog",
    "LogEntry",
    "Token",
    "Transfer",
    "checked_address",
    "entrypoint",
    "is_native",
]
