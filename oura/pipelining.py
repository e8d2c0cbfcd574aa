"""Bounded channels between pipeline stages and the stage interfaces."""

from __future__ import annotations

import abc
import queue
import threading
from typing import Iterator, Optional

from oura.model import Event

# Events an inter-stage channel buffers before a sender blocks. Larger
# values use more memory; smaller ones give stages less slack.
DEFAULT_INTER_STAGE_BUFFER_SIZE = 1000

_CLOSED = object()


class Channel:
    """A bounded FIFO carrying events from one stage to the next.

    Any number of threads may send; a single consumer iterates. Iteration
    ends once the channel is closed and every pending event was delivered.
    """

    def __init__(self, capacity: int = DEFAULT_INTER_STAGE_BUFFER_SIZE) -> None:
        if capacity < 1:
            raise ValueError("channel capacity must be at least 1")
        self._capacity = capacity
        self._queue: queue.Queue = queue.Queue(maxsize=capacity)
        self._lock = threading.Lock()
        self._closed = False
        self._drained = False

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event: Event) -> None:
        """Queue an event, blocking while the buffer is full."""
        with self._lock:
            if self._closed:
                raise BrokenPipeError("channel is closed")
            self._queue.put(event)

    def close(self) -> None:
        """Mark the end of the stream; further sends fail."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._queue.put(_CLOSED)

    def __iter__(self) -> Iterator[Event]:
        while not self._drained:
            item = self._queue.get()
            if item is _CLOSED:
                self._drained = True
                return
            yield item


def new_inter_stage_channel(buffer_size: Optional[int] = None) -> Channel:
    """Create the channel used between two stages."""
    if buffer_size is None:
        buffer_size = DEFAULT_INTER_STAGE_BUFFER_SIZE
    return Channel(buffer_size)


class SourceProvider(abc.ABC):
    """A stage that produces events."""

    @abc.abstractmethod
    def bootstrap(self) -> tuple[threading.Thread, Channel]:
        """Start the stage; return its thread and its output channel."""


class FilterProvider(abc.ABC):
    """A stage that consumes events and passes some of them on."""

    @abc.abstractmethod
    def bootstrap(self, receiver: Channel) -> tuple[threading.Thread, Channel]:
        """Start the stage on ``receiver``; return its thread and output channel."""


class SinkProvider(abc.ABC):
    """A stage that consumes events at the end of the pipeline."""

    @abc.abstractmethod
    def bootstrap(self, receiver: Channel) -> threading.Thread:
        """Start the stage on ``receiver``; return its thread."""