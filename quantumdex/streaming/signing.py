"""Counterparty signatures for stream renegotiation.

The signed payload is keccak256 over the tightly packed tuple
(ledger address, stream id, rate, start block, end block), each number as a
uint256. Signatures use the personal-message scheme: the 32-byte digest is
prefixed with "\\x19Ethereum Signed Message:\\n32" and hashed again before
secp256k1 signing, so any standard wallet can produce them.
"""

from __future__ import annotations

from eth_abi.packed import encode_packed
from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys.exceptions import BadSignature, ValidationError
from eth_utils import keccak

from quantumdex.errors import InvalidSignature
from quantumdex.models.types import address_to_bytes, normalize_address
from quantumdex.streaming.stream import Timeframe


def hash_stream_update(
    ledger: str,
    stream_id: int,
    payment_per_block: int,
    timeframe: Timeframe | tuple[int, int],
) -> bytes:
    """Digest both parties agree on before a stream's terms change."""
    timeframe = Timeframe.of(timeframe)
    return keccak(
        encode_packed(
            ["address", "uint256", "uint256", "uint256", "uint256"],
            [
                address_to_bytes(ledger),
                stream_id,
                payment_per_block,
                timeframe.start_block,
                timeframe.end_block,
            ],
        )
    )


def sign_stream_update(
    private_key: str | bytes,
    ledger: str,
    stream_id: int,
    payment_per_block: int,
    timeframe: Timeframe | tuple[int, int],
) -> bytes:
    """Sign a stream update as a personal message.

    Returns:
        65-byte r || s || v signature
    """
    digest = hash_stream_update(ledger, stream_id, payment_per_block, timeframe)
    signed = Account.sign_message(encode_defunct(primitive=digest), private_key=private_key)
    return bytes(signed.signature)


def recover_signer(digest: bytes, signature: bytes | str) -> str:
    """Recover the address that signed `digest` as a personal message.

    Raises:
        InvalidSignature: If the signature is malformed or unrecoverable
    """
    try:
        signer = Account.recover_message(encode_defunct(primitive=digest), signature=signature)
    except (BadSignature, ValidationError, ValueError, TypeError) as err:
        raise InvalidSignature(f"Cannot recover signer: {err}") from err
    return normalize_address(signer)


def account_address(private_key: str | bytes) -> str:
    """Lowercase address controlled by a private key."""
    return normalize_address(Account.from_key(private_key).address)
