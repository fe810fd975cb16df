"""Pytest configuration and fixtures."""

import pytest

from quantumdex.chain import Chain, Token
from quantumdex.config import LedgerConfig
from quantumdex.deployment import Deployment, deploy
from quantumdex.pools import PoolRegistry
from quantumdex.streaming import StreamLedger
from tests.helpers import (
    ALICE,
    BOB,
    CAROL,
    NATIVE_ASSET,
    NATIVE_FUNDING,
    ONE,
    OWNER,
    make_token,
)

FUNDED_ACCOUNTS = (OWNER, ALICE, BOB, CAROL)


@pytest.fixture
def config() -> LedgerConfig:
    """Default protocol parameters."""
    return LedgerConfig()


@pytest.fixture
def deployment(config: LedgerConfig) -> Deployment:
    """A fresh deployment with native balances for every test account."""
    deployed = deploy(config, owner=OWNER)
    for account in FUNDED_ACCOUNTS:
        deployed.chain.set_balance(account, NATIVE_FUNDING)
    return deployed


@pytest.fixture
def chain(deployment: Deployment) -> Chain:
    return deployment.chain


@pytest.fixture
def registry(deployment: Deployment) -> PoolRegistry:
    return deployment.pools


@pytest.fixture
def ledger(deployment: Deployment) -> StreamLedger:
    return deployment.streams


def _funded_token(deployment: Deployment, symbol: str) -> Token:
    return make_token(
        deployment.chain,
        symbol,
        holders=FUNDED_ACCOUNTS,
        spenders=[deployment.pools.address, deployment.streams.address],
    )


@pytest.fixture
def token_a(deployment: Deployment) -> Token:
    """Token held by every test account and approved to both contracts."""
    return _funded_token(deployment, "TKA")


@pytest.fixture
def token_b(deployment: Deployment) -> Token:
    return _funded_token(deployment, "TKB")


@pytest.fixture
def token_c(deployment: Deployment) -> Token:
    return _funded_token(deployment, "TKC")


# Pool seeded with 1000 TKA / 2000 TKB at the default fee
POOL_AB_AMOUNTS = (1000 * ONE, 2000 * ONE)
# Pool seeded with 2000 TKB / 500 TKC
POOL_BC_AMOUNTS = (2000 * ONE, 500 * ONE)


@pytest.fixture
def pool_ab(registry: PoolRegistry, token_a: Token, token_b: Token) -> str:
    """Id of a TKA/TKB pool created by ALICE."""
    amount_a, amount_b = POOL_AB_AMOUNTS
    return registry.create_pool(token_a.address, token_b.address, amount_a, amount_b, caller=ALICE)


@pytest.fixture
def pool_bc(registry: PoolRegistry, token_b: Token, token_c: Token) -> str:
    """Id of a TKB/TKC pool created by ALICE."""
    amount_b, amount_c = POOL_BC_AMOUNTS
    return registry.create_pool(token_b.address, token_c.address, amount_b, amount_c, caller=ALICE)


@pytest.fixture
def native_pool(registry: PoolRegistry, token_a: Token) -> str:
    """Id of a native/TKA pool (10 native, 20 TKA) created by ALICE."""
    return registry.create_pool(
        NATIVE_ASSET, token_a.address, 10 * ONE, 20 * ONE, caller=ALICE, value=10 * ONE
    )
