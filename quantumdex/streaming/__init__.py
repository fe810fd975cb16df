"""Block-metered payment streams.

Module structure:
- stream.py: Stream and Timeframe state, accrual math
- events.py: notifications emitted by the ledger
- signing.py: update digest, signing and signer recovery
- ledger.py: StreamLedger contract
"""

from quantumdex.streaming.ledger import StreamLedger
from quantumdex.streaming.signing import (
    account_address,
    hash_stream_update,
    recover_signer,
    sign_stream_update,
)
from quantumdex.streaming.stream import Stream, Timeframe

__all__ = [
    "Stream",
    "StreamLedger",
    "Timeframe",
    "account_address",
    "hash_stream_update",
    "recover_signer",
    "sign_stream_update",
]
