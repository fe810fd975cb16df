"""Protocol constants for the QuantumDEX ledger core.

Centralizes well-known addresses, bit bounds and protocol parameters.
"""

from quantumdex.models.types import is_valid_address

# The null address: burn target for locked liquidity and the native-asset sentinel
NULL_ADDRESS = "0x0000000000000000000000000000000000000000"


def _validate_address(name: str, address: str) -> str:
    """Validate and return a well-known address.

    Raises:
        ValueError: If the address is invalid
    """
    if not is_valid_address(address):
        raise ValueError(f"Invalid {name} address: {address} (must be 0x + 40 hex chars)")
    return address


# Native ledger asset. Always sorts first, so a native leg is always token0.
NATIVE_ASSET = _validate_address("NATIVE_ASSET", NULL_ADDRESS)

# Fee rates are expressed in basis points of this denominator
BPS_DENOMINATOR = 10_000

# Pool fee bounds (inclusive)
MIN_FEE_BPS = 1
MAX_FEE_BPS = 1_000

# Flash loans cost 9 bps of the borrowed amount by default
FLASH_LOAN_FEE_BPS = 9

# Shares permanently locked to NULL_ADDRESS when a pool is created
MINIMUM_LIQUIDITY = 1_000

# A path of N tokens has N - 1 hops
MAX_HOPS = 11
MIN_PATH_LENGTH = 2

# Reserves are packed with the 16-bit fee field, so they must fit in 112 bits
RESERVE_BITS = 112
UINT256_MAX = 2**256 - 1

# Spot prices in PriceUpdate notifications are scaled by 1e18
PRICE_SCALE = 10**18
