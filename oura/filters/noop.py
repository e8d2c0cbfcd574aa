"""A filter that passes every event through unchanged."""

from __future__ import annotations

import threading
from dataclasses import dataclass

from oura.pipelining import Channel, FilterProvider, new_inter_stage_channel


@dataclass
class Config(FilterProvider):
    """Configuration of the pass-through filter; it takes no options."""

    def bootstrap(self, receiver: Channel) -> tuple[threading.Thread, Channel]:
        output = new_inter_stage_channel()

        def run() -> None:
            try:
                for event in receiver:
                    output.send(event)
            finally:
                output.close()

        thread = threading.Thread(target=run, name="noop-filter", daemon=True)
        thread.start()
        return thread, output