"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Deterministic accounts and common amounts
- factories: Token deployment and helper contracts
"""

from tests.helpers.constants import (
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
    ONE,
    OWNER,
    OWNER_KEY,
)
from tests.helpers.factories import (
    FlashLoanReceiver,
    PlainContract,
    make_token,
    ordered,
    timeframe_from_now,
)

__all__ = [
    # Constants
    "OWNER",
    "OWNER_KEY",
    "ALICE",
    "ALICE_KEY",
    "BOB",
    "BOB_KEY",
    "CAROL",
    "CAROL_KEY",
    "NATIVE_ASSET",
    "NULL_ADDRESS",
    "ONE",
    "FUNDED_AMOUNT",
    "NATIVE_FUNDING",
    # Factories
    "make_token",
    "ordered",
    "timeframe_from_now",
    "FlashLoanReceiver",
    "PlainContract",
]
