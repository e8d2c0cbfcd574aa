import pytest

from oura.filters.fingerprint import (
    Config,
    FingerprintError,
    build_fingerprint,
    murmur3_x64_128,
)
from oura.model import (
    BlockRecord,
    Collateral,
    Era,
    Event,
    EventContext,
    EventData,
    EventKind,
    GenesisKeyDelegation,
    MintRecord,
    RollBack,
    StakeCredential,
    StakeRegistration,
    TransactionRecord,
    TxInputRecord,
)
from oura.pipelining import new_inter_stage_channel


def _block_record():
    return BlockRecord(
        era=Era.ALONZO,
        epoch=None,
        epoch_slot=None,
        body_size=0,
        issuer_vkey="vk",
        tx_count=0,
        slot=10,
        hash="abcd",
        number=1,
        previous_hash="pp",
    )


def test_empty_input_with_zero_seed_hashes_to_zero():
    assert murmur3_x64_128(b"", 0) == 0


def test_hash_is_deterministic_and_seed_sensitive():
    assert murmur3_x64_128(b"hello", 0) == murmur3_x64_128(b"hello", 0)
    assert murmur3_x64_128(b"hello", 0) != murmur3_x64_128(b"hello", 1)
    assert murmur3_x64_128(b"", 1) != 0


def test_hash_lengths_cover_blocks_and_tails():
    values = {murmur3_x64_128(b"a" * n, 0) for n in range(40)}
    assert len(values) == 40
    assert all(0 <= v < 2**128 for v in values)


def test_hash_rejects_large_seed():
    with pytest.raises(ValueError):
        murmur3_x64_128(b"x", 2**32)


def test_block_fingerprint():
    event = Event(EventContext(slot=10, block_hash="abcd"), EventData(_block_record()))
    assert build_fingerprint(event, 0) == f"10.blck.{murmur3_x64_128(b'abcd', 0)}"


def test_tx_input_concatenates_hash_and_index():
    event = Event(
        EventContext(slot=5, tx_hash="ff", input_idx=3),
        EventData(TxInputRecord("aa", 0)),
    )
    assert build_fingerprint(event, 0) == f"5.stxi.{murmur3_x64_128(b'ff3', 0)}"


def test_seed_changes_fingerprint():
    event = Event(EventContext(slot=5, tx_hash="ff"), EventData(TransactionRecord()))
    assert build_fingerprint(event, 0) != build_fingerprint(event, 7)
    assert build_fingerprint(event, 7).startswith("5.tx.")


def test_rollback_uses_record_slot():
    event = Event(EventContext(), EventData(RollBack(block_slot=42, block_hash="beef")))
    assert build_fingerprint(event) == f"42.back.{murmur3_x64_128(b'beef', 0)}"


def test_collateral_needs_no_tx_hash():
    event = Event(EventContext(slot=3), EventData(Collateral("cc", 2)))
    assert build_fingerprint(event) == f"3.coll.{murmur3_x64_128(b'cc2', 0)}"


@pytest.mark.parametrize(
    "data, prefix",
    [
        (EventData(_block_record(), EventKind.BLOCK_END), "blckend"),
        (EventData(TransactionRecord(), EventKind.TRANSACTION_END), "txend"),
        (EventData(MintRecord("pp", "as", 1)), "mint"),
        (EventData(StakeRegistration(StakeCredential("AddrKeyhash", "aa"))), "skre"),
        (EventData(GenesisKeyDelegation()), "gene"),
    ],
)
def test_prefixes(data, prefix):
    context = EventContext(slot=9, block_hash="bb", tx_hash="tt", certificate_idx=0)
    fingerprint = build_fingerprint(Event(context, data))
    slot, got_prefix, digest = fingerprint.split(".")
    assert (slot, got_prefix) == ("9", prefix)
    assert int(digest) < 2**128


def test_missing_component_raises():
    event = Event(EventContext(slot=1), EventData(TransactionRecord()))
    with pytest.raises(FingerprintError):
        build_fingerprint(event)


def test_missing_slot_raises():
    event = Event(EventContext(tx_hash="tt"), EventData(TransactionRecord()))
    with pytest.raises(FingerprintError, match="slot"):
        build_fingerprint(event)


def test_config_sets_fingerprints_and_keeps_failures():
    good = Event(EventContext(slot=5, tx_hash="ff"), EventData(TransactionRecord()))
    bad = Event(EventContext(), EventData(TransactionRecord()))
    source = new_inter_stage_channel()
    source.send(good)
    source.send(bad)
    source.close()
    thread, output = Config(seed=3).bootstrap(source)
    received = list(output)
    thread.join(timeout=5)
    assert not thread.is_alive()
    assert received == [good, bad]
    assert received[0].fingerprint == build_fingerprint(good, 3)
    assert received[1].fingerprint is None