"""QuantumDEX ledger core - Python Implementation."""

from quantumdex.deployment import Deployment, deploy
from quantumdex.pools import PoolRegistry
from quantumdex.streaming import StreamLedger

__version__ = "0.1.0"
__all__ = ["Deployment", "PoolRegistry", "StreamLedger", "deploy", "__version__"]
