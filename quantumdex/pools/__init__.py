"""Constant-product pools and the registry contract that owns them.

Module structure:
- pool.py: Pool state and pool id derivation
- events.py: notifications emitted by the registry
- flash.py: FlashBorrower callback interface
- registry.py: PoolRegistry contract
"""

from quantumdex.pools.flash import FlashBorrower
from quantumdex.pools.pool import Pool, compute_pool_id
from quantumdex.pools.registry import PoolRegistry

__all__ = ["FlashBorrower", "Pool", "PoolRegistry", "compute_pool_id"]
