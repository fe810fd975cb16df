"""Deployment of a complete ledger: one chain, one pool registry, one stream ledger."""

from __future__ import annotations

import os
from dataclasses import dataclass

import structlog

from quantumdex.chain.chain import Chain
from quantumdex.config import DEFAULT_LEDGER_CONFIG, LedgerConfig
from quantumdex.pools.registry import PoolRegistry
from quantumdex.streaming.ledger import StreamLedger

logger = structlog.get_logger()

# First account of the standard local development mnemonic
DEFAULT_OWNER = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"


@dataclass
class Deployment:
    """Handles to a deployed ledger."""

    chain: Chain
    pools: PoolRegistry
    streams: StreamLedger
    config: LedgerConfig

    @property
    def owner(self) -> str:
        return self.pools.owner


def deploy(
    config: LedgerConfig = DEFAULT_LEDGER_CONFIG,
    owner: str = DEFAULT_OWNER,
    chain: Chain | None = None,
) -> Deployment:
    """Deploy both contracts from `owner`.

    Args:
        config: Initial pool registry parameters
        owner: Deployer of both contracts and owner of the registry
        chain: Chain to deploy on (a fresh one if None)
    """
    chain = chain if chain is not None else Chain()
    pools = PoolRegistry(chain, owner, config)
    streams = StreamLedger(chain, deployer=owner)

    logger.info(
        "ledger_deployed",
        chain_id=chain.chain_id,
        pool_registry=pools.address,
        stream_ledger=streams.address,
        owner=pools.owner,
        block=chain.block_number,
    )
    return Deployment(chain=chain, pools=pools, streams=streams, config=config)


_default_deployment: Deployment | None = None


def get_default_deployment() -> Deployment:
    """Process-wide deployment, built on first use from QDEX_* environment variables.

    QDEX_OWNER sets the owner account (default: DEFAULT_OWNER); protocol
    parameters come from LedgerConfig.from_env().
    """
    global _default_deployment
    if _default_deployment is None:
        _default_deployment = deploy(
            LedgerConfig.from_env(),
            owner=os.environ.get("QDEX_OWNER", DEFAULT_OWNER),
        )
    return _default_deployment


__all__ = ["DEFAULT_OWNER", "Deployment", "deploy", "get_default_deployment"]
