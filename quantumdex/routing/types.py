"""Type definitions for routing module."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class HopResult:
    """Result of a single hop in a multi-hop route."""

    pool_id: str
    token_in: str
    token_out: str
    amount_in: int
    amount_out: int


@dataclass
class RoutingResult:
    """Result of routing an exact input through one or more pools."""

    path: list[str]
    amount_in: int
    amount_out: int
    hops: list[HopResult] = field(default_factory=list)

    @property
    def pool_ids(self) -> list[str]:
        return [hop.pool_id for hop in self.hops]

    @property
    def is_multihop(self) -> bool:
        """Check if this is a multi-hop route."""
        return len(self.path) > 2


__all__ = ["HopResult", "RoutingResult"]
