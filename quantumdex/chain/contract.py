"""Contract base class and the entry-point decorator.

A contract's persistent state is the set of attributes named in `_storage`;
the chain snapshots exactly those around every transaction. Everything else
on the instance (the chain handle, helpers, the reentrancy flag) is runtime
wiring and is never rolled back.
"""

from __future__ import annotations

import copy
import functools
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from quantumdex.constants import NULL_ADDRESS
from quantumdex.errors import InvalidAddress, ReentrantCall, UnexpectedETH
from quantumdex.models.types import normalize_address

if TYPE_CHECKING:
    from quantumdex.chain.chain import Chain
    from quantumdex.chain.events import Event, LogEntry

F = TypeVar("F", bound=Callable[..., Any])


def checked_address(address: str) -> str:
    """Normalize an address argument.

    Raises:
        InvalidAddress: If the value is not 0x + 40 hex chars
    """
    try:
        return normalize_address(address, validate=True)
    except (AttributeError, ValueError) as err:
        raise InvalidAddress(f"Invalid address: {address!r}") from err


class Contract:
    """A deployed object with an address and rollback-able storage."""

    _storage: ClassVar[tuple[str, ...]] = ()

    def __init__(self, chain: Chain, deployer: str = NULL_ADDRESS) -> None:
        self.chain = chain
        self._entered = False
        self.address = chain.register(self, deployer)

    def snapshot_storage(self) -> dict[str, Any]:
        return {name: copy.deepcopy(getattr(self, name)) for name in self._storage}

    def restore_storage(self, storage: dict[str, Any]) -> None:
        for name, value in storage.items():
            setattr(self, name, value)

    def _emit(self, event: Event) -> LogEntry:
        return self.chain.emit(self.address, event)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(address={self.address})"


def entrypoint(*, payable: bool = False, guarded: bool = True) -> Callable[[F], F]:
    """Mark a method as a state-mutating entry point.

    The decorated method is called as `method(*args, caller=..., value=...)`.
    It runs inside a chain transaction; `caller` is normalized and passed
    through. Payable methods also receive `value`; attaching value to a
    non-payable method raises UnexpectedETH. Guarded methods hold the
    contract's reentrancy flag while running, so any re-entry into a guarded
    method of the same contract raises ReentrantCall.

    Args:
        payable: Whether the method accepts attached native value
        guarded: Whether the method takes the non-reentrant lock
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(self: Contract, *args: Any, caller: str, value: int = 0, **kwargs: Any) -> Any:
            caller = checked_address(caller)
            if guarded and self._entered:
                raise ReentrantCall(f"{type(self).__name__}.{func.__name__} re-entered")
            if value < 0:
                raise ValueError(f"Attached value cannot be negative: {value}")

            with self.chain.transaction(caller=caller, to=self.address, value=value):
                if value and not payable:
                    raise UnexpectedETH(
                        f"{type(self).__name__}.{func.__name__} does not accept native value"
                    )
                if guarded:
                    self._entered = True
                try:
                    if payable:
                        return func(self, *args, caller=caller, value=value, **kwargs)
                    return func(self, *args, caller=caller, **kwargs)
                finally:
                    if guarded:
                        self._entered = False

        return wrapper  # type: ignore[return-value]

    return decorator
