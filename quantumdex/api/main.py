"""FastAPI application serving read-only ledger state.

The API never mutates the ledger. Transactions are submitted through the
contract objects directly; this surface is for indexers and clients.
"""

import logging
import os

import structlog
import uvicorn
from fastapi import Depends, FastAPI

from quantumdex import __version__
from quantumdex.api.endpoints import get_deployment, router
from quantumdex.deployment import Deployment

# Configuration from environment variables with sensible defaults
HOST = os.environ.get("QDEX_HOST", "0.0.0.0")
PORT = int(os.environ.get("QDEX_PORT", "8000"))
DEBUG = os.environ.get("QDEX_DEBUG", "false").lower() in ("true", "1", "yes")

app = FastAPI(
    title="QuantumDEX ledger",
    description="Read-only view of QuantumDEX pools, streams and events",
    version=__version__,
)

app.include_router(router)


@app.get("/health")
async def health(deployment: Deployment = Depends(get_deployment)) -> dict[str, object]:
    """Health check endpoint."""
    return {
        "status": "ok",
        "chainId": deployment.chain.chain_id,
        "blockNumber": deployment.chain.block_number,
    }


def configure_logging(debug: bool = DEBUG) -> None:
    log_level = logging.DEBUG if debug else logging.INFO
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
    )


def run() -> None:
    """Run the API server.

    Configuration via environment variables:
    - QDEX_HOST: Host to bind to (default: 0.0.0.0)
    - QDEX_PORT: Port to bind to (default: 8000)
    - QDEX_DEBUG: Enable debug logging and reload mode (default: false)
    """
    configure_logging()
    uvicorn.run(
        "quantumdex.api.main:app",
        host=HOST,
        port=PORT,
        reload=DEBUG,
    )


if __name__ == "__main__":
    run()
