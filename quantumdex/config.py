"""Protocol configuration for a ledger deployment."""

from __future__ import annotations

import os
from dataclasses import dataclass

from quantumdex.constants import (
    FLASH_LOAN_FEE_BPS,
    MAX_FEE_BPS,
    MAX_HOPS,
    MIN_FEE_BPS,
    MINIMUM_LIQUIDITY,
)


@dataclass(frozen=True)
class LedgerConfig:
    """Initial protocol parameters for a deployment.

    The pool registry copies these into mutable state at deployment; the
    owner can change fees, the liquidity floor and the pause flag afterwards
    through the administrative setters. max_hops is fixed for the lifetime of
    the registry.

    Attributes:
        default_fee_bps: Swap fee applied to newly created pools (default: 30)
        flash_loan_fee_bps: Flash-loan fee on borrowed amounts (default: 9)
        minimum_liquidity: Shares locked to the null address per new pool (default: 1000)
        max_hops: Longest multi-hop route accepted (default: 11)
    """

    default_fee_bps: int = 30
    flash_loan_fee_bps: int = FLASH_LOAN_FEE_BPS
    minimum_liquidity: int = MINIMUM_LIQUIDITY
    max_hops: int = MAX_HOPS

    def __post_init__(self) -> None:
        if not MIN_FEE_BPS <= self.default_fee_bps <= MAX_FEE_BPS:
            raise ValueError(
                f"default_fee_bps must be in [{MIN_FEE_BPS}, {MAX_FEE_BPS}], "
                f"got {self.default_fee_bps}"
            )
        if not 0 <= self.flash_loan_fee_bps <= MAX_FEE_BPS:
            raise ValueError(
                f"flash_loan_fee_bps must be in [0, {MAX_FEE_BPS}], got {self.flash_loan_fee_bps}"
            )
        if self.minimum_liquidity <= 0:
            raise ValueError(f"minimum_liquidity must be positive, got {self.minimum_liquidity}")
        if self.max_hops < 1:
            raise ValueError(f"max_hops must be at least 1, got {self.max_hops}")

    @classmethod
    def from_env(cls, prefix: str = "QDEX_") -> LedgerConfig:
        """Build a config from environment variables, falling back to defaults.

        Reads {prefix}DEFAULT_FEE_BPS, {prefix}FLASH_LOAN_FEE_BPS,
        {prefix}MINIMUM_LIQUIDITY and {prefix}MAX_HOPS.
        """
        defaults = cls()
        return cls(
            default_fee_bps=int(
                os.environ.get(f"{prefix}DEFAULT_FEE_BPS", defaults.default_fee_bps)
            ),
            flash_loan_fee_bps=int(
                os.environ.get(f"{prefix}FLASH_LOAN_FEE_BPS", defaults.flash_loan_fee_bps)
            ),
            minimum_liquidity=int(
                os.environ.get(f"{prefix}MINIMUM_LIQUIDITY", defaults.minimum_liquidity)
            ),
            max_hops=int(os.environ.get(f"{prefix}MAX_HOPS", defaults.max_hops)),
        )


# Default configuration instance
DEFAULT_LEDGER_CONFIG = LedgerConfig()
