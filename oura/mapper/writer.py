"""Writer that stamps events with their chain context and sends them on."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Union

from oura.model import Event, EventContext, EventData, RollBack
from oura.pipelining import Channel

SlotClock = Callable[[int], int]
ProgressHook = Callable[[Event], None]
Point = Union[None, str, tuple]


@dataclass(frozen=True)
class Config:
    """Options that control which events and details the mapper emits."""

    include_block_end_events: bool = False
    include_transaction_details: bool = False
    include_transaction_end_events: bool = False
    include_block_details: bool = False
    include_block_cbor: bool = False
    include_byron_ebb: bool = False


def _hash_to_hex(value: Any) -> str:
    if isinstance(value, str):
        return value
    return bytes(value).hex()


@dataclass
class EventWriter:
    """Sends events to a channel, each carrying this writer's context.

    ``slot_to_wallclock`` turns an absolute slot into a unix timestamp and
    ``on_event`` is called with every event before it is sent; both are
    optional.
    """

    output: Channel
    config: Config = field(default_factory=Config)
    slot_to_wallclock: Optional[SlotClock] = None
    on_event: Optional[ProgressHook] = None
    context: EventContext = field(default_factory=EventContext)

    def append(self, data: Any) -> Event:
        """Wrap ``data`` (an ``EventData`` or a record) in an event and send it."""
        if not isinstance(data, EventData):
            data = EventData(data)
        event = Event(context=self.context, data=data, fingerprint=None)
        if self.on_event is not None:
            self.on_event(event)
        self.output.send(event)
        return event

    def child_writer(self, extra_context: EventContext) -> EventWriter:
        """Return a writer whose context is ``extra_context`` over this one's."""
        return EventWriter(
            output=self.output,
            config=self.config,
            slot_to_wallclock=self.slot_to_wallclock,
            on_event=self.on_event,
            context=extra_context.merge(self.context),
        )

    def compute_timestamp(self, slot: int) -> Optional[int]:
        """Wall-clock time of ``slot``, or None when no clock is known."""
        if self.slot_to_wallclock is None:
            return None
        return self.slot_to_wallclock(slot)

    def append_rollback_event(self, point: Point) -> Event:
        """Send a rollback to ``point``: None or "origin", or ``(slot, hash)``."""
        if point is None or point == "origin":
            record = RollBack(block_slot=0, block_hash="")
        else:
            try:
                slot, block_hash = point
            except (TypeError, ValueError):
                raise ValueError(f"invalid chain point: {point!r}") from None
            record = RollBack(block_slot=int(slot), block_hash=_hash_to_hex(block_hash))
        return self.append(record)