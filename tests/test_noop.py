from oura.filters.noop import Config
from oura.model import (
    Event,
    EventContext,
    EventData,
    MintRecord,
    TxInputRecord,
)
from oura.pipelining import new_inter_stage_channel


def _run(events):
    source = new_inter_stage_channel()
    for event in events:
        source.send(event)
    source.close()
    thread, output = Config().bootstrap(source)
    received = list(output)
    thread.join(timeout=5)
    assert not thread.is_alive()
    return received, output


def _events():
    return [
        Event(EventContext(slot=1), EventData(TxInputRecord("aa", 0))),
        Event(EventContext(slot=2), EventData(MintRecord("pp", "as", 5))),
        Event(EventContext(slot=3), EventData(TxInputRecord("bb", 1))),
    ]


def test_passes_every_event_in_order():
    events = _events()
    received, _ = _run(events)
    assert received == events


def test_events_are_not_altered():
    events = _events()
    received, _ = _run(events)
    assert [e.context.slot for e in received] == [1, 2, 3]
    assert all(e.fingerprint is None for e in received)


def test_empty_input_closes_output():
    received, output = _run([])
    assert received == []
    assert output.closed


def test_output_uses_default_buffer_size():
    _, output = _run(_events())
    assert output.capacity == 1000