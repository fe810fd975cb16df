"""Shared model types for the ledger core."""

from quantumdex.models.types import (
    Address,
    Bytes32,
    Uint256,
    address_to_bytes,
    is_valid_address,
    normalize_address,
    sort_tokens,
    validate_uint256,
)

__all__ = [
    "Address",
    "Bytes32",
    "Uint256",
    "address_to_bytes",
    "is_valid_address",
    "normalize_address",
    "sort_tokens",
    "validate_uint256",
]
