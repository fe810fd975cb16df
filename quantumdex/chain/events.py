"""Structured change notifications and the log that indexes them.

Contracts emit frozen Event dataclasses; the chain wraps each one in a
LogEntry carrying its position (block, transaction, log index) and the
emitting address. Off-ledger indexers query the log by event type, emitting
address, block range and indexed field values.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any, ClassVar


@dataclass(frozen=True)
class Event:
    """Base class for change notifications.

    Subclasses list their filterable fields in `indexed`.
    """

    indexed: ClassVar[tuple[str, ...]] = ()

    @property
    def name(self) -> str:
        return type(self).__name__

    def topics(self) -> dict[str, Any]:
        """Indexed field values, keyed by field name."""
        return {field_name: getattr(self, field_name) for field_name in self.indexed}

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls))


@dataclass(frozen=True)
class LogEntry:
    """An emitted event and where it was emitted."""

    block_number: int
    tx_index: int
    log_index: int
    address: str
    event: Event

    @property
    def name(self) -> str:
        return self.event.name


class EventLog:
    """Append-only log of emitted events (truncated only on revert)."""

    def __init__(self) -> None:
        self._entries: list[LogEntry] = []

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):  # type: ignore[no-untyped-def]
        return iter(self._entries)

    def append(self, entry: LogEntry) -> None:
        self._entries.append(entry)

    def truncate(self, length: int) -> None:
        """Drop every entry after the first `length` (used to undo a reverted transaction)."""
        del self._entries[length:]

    def query(
        self,
        event_type: type[Event] | str | None = None,
        *,
        address: str | None = None,
        from_block: int | None = None,
        to_block: int | None = None,
        tx_index: int | None = None,
        **topics: Any,
    ) -> list[LogEntry]:
        """Filter the log.

        Args:
            event_type: Event class or event name to match (None matches all)
            address: Emitting contract address
            from_block: First block to include (inclusive)
            to_block: Last block to include (inclusive)
            tx_index: Restrict to a single transaction
            **topics: Indexed field values to match exactly

        Returns:
            Matching entries in emission order

        Raises:
            ValueError: If a topic filter names a field the event type does not index
        """
        if topics and isinstance(event_type, type):
            unknown = set(topics) - set(event_type.indexed)
            if unknown:
                raise ValueError(
                    f"{event_type.__name__} does not index {sorted(unknown)}; "
                    f"indexed fields: {list(event_type.indexed)}"
                )

        results = []
        for entry in self._entries:
            event = entry.event
            if isinstance(event_type, type) and not isinstance(event, event_type):
                continue
            if isinstance(event_type, str) and event.name != event_type:
                continue
            if address is not None and entry.address != address.lower():
                continue
            if from_block is not None and entry.block_number < from_block:
                continue
            if to_block is not None and entry.block_number > to_block:
                continue
            if tx_index is not None and entry.tx_index != tx_index:
                continue
            if topics:
                event_topics = event.topics()
                if any(
                    key not in event_topics or event_topics[key] != _normalize_topic(value)
                    for key, value in topics.items()
                ):
                    continue
            results.append(entry)
        return results


def _normalize_topic(value: Any) -> Any:
    # Addresses and ids are stored lowercase
    if isinstance(value, str) and value.startswith(("0x", "0X")):
        return value.lower()
    return value
