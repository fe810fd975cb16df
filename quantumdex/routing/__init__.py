"""Routing of exact-input swaps through one or more pools."""

from quantumdex.routing.multihop import MultihopRouter
from quantumdex.routing.types import HopResult, RoutingResult

__all__ = ["HopResult", "MultihopRouter", "RoutingResult"]
