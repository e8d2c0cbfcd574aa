import json

import pytest

from oura.model import (
    BlockRecord,
    CIP15AssetRecord,
    CIP25AssetRecord,
    Collateral,
    Era,
    Event,
    EventContext,
    EventData,
    EventKind,
    GenesisKeyDelegation,
    MetadataRecord,
    MetadatumKind,
    MetadatumRendition,
    MintRecord,
    MoveInstantaneousRewardsCert,
    OutputAssetRecord,
    RollBack,
    StakeCredential,
    StakeRegistration,
    TransactionRecord,
    TxInputRecord,
)


def _block(era=Era.ALONZO):
    return BlockRecord(
        era=era,
        epoch=3,
        epoch_slot=7,
        body_size=100,
        issuer_vkey="aa",
        tx_count=0,
        slot=42,
        hash="bb",
        number=9,
        previous_hash="cc",
    )


def test_era_ordering_and_display():
    byron = BlockRecord(
        era=Era.BYRON,
        epoch=0,
        epoch_slot=0,
        body_size=1,
        issuer_vkey="aa",
        tx_count=0,
        slot=0,
        hash="bb",
        number=0,
        previous_hash="cc",
    )
    assert Era.UNDEFINED < byron.era < Era.SHELLEY < Era.ALLEGRA < Era.MARY < Era.ALONZO
    assert str(byron.era) == "Byron"
    assert EventData(byron).to_dict()["block"]["era"] == "Byron"
    assert f"{Era.ALONZO}" == "Alonzo"


def test_rendition_display_for_scalars():
    text = MetadatumRendition(MetadatumKind.TEXT_SCALAR, "hello")
    number = MetadatumRendition(MetadatumKind.INT_SCALAR, -12)
    assert str(text) == "hello"
    assert str(number) == "-12"


def test_rendition_display_for_json_is_compact_json():
    rendition = MetadatumRendition(MetadatumKind.MAP_JSON, {"a": [1, 2]})
    assert json.loads(str(rendition)) == {"a": [1, 2]}
    assert " " not in str(rendition)


def test_rendition_to_dict_uses_kind_tag():
    rendition = MetadatumRendition(MetadatumKind.BYTES_HEX, "00ff")
    assert rendition.to_dict() == {"bytes_hex": "00ff"}


def test_event_context_merge_fills_only_missing_fields():
    child = EventContext(tx_idx=1, slot=5)
    parent = EventContext(slot=9, block_hash="ab", tx_idx=3)
    merged = child.merge(parent)
    assert merged.tx_idx == 1
    assert merged.slot == 5
    assert merged.block_hash == "ab"
    assert child.block_hash is None


def test_event_data_infers_kind_from_record():
    assert EventData(_block()).kind is EventKind.BLOCK
    assert EventData(TransactionRecord()).kind is EventKind.TRANSACTION
    assert EventData(TxInputRecord("ab", 0)).kind is EventKind.TX_INPUT


def test_event_data_explicit_kind_must_match_record():
    end = EventData(_block(), EventKind.BLOCK_END)
    assert str(end) == "BlockEnd"
    with pytest.raises(TypeError):
        EventData(TxInputRecord("ab", 0), EventKind.BLOCK)


def test_event_data_rejects_unknown_payload():
    with pytest.raises(TypeError):
        EventData("not a record")


def test_event_kind_tags():
    cip25 = EventData(CIP25AssetRecord("1.0", "p", "a", None, None, None, None, {}))
    cip15 = EventData(
        CIP15AssetRecord(
            voting_key="vk",
            stake_pub="sp",
            reward_address="ra",
            nonce=1,
            raw_json={},
        )
    )
    tx_input = EventData(TxInputRecord("ab", 0))
    move = EventData(MoveInstantaneousRewardsCert(True, False, None, 3))
    assert cip25.kind.tag == "cip25_asset"
    assert cip15.kind.tag == "cip15_asset"
    assert tx_input.kind.tag == "tx_input"
    assert move.kind.tag == "move_instantaneous_rewards_cert"
    assert list(cip15.to_dict()) == ["cip15_asset"]
    assert list(move.to_dict()) == ["move_instantaneous_rewards_cert"]


def test_event_data_display_matches_variant_name():
    record = CIP25AssetRecord("1.0", "p", "a", None, None, None, None, {})
    assert str(EventData(record)) == "CIP25Asset"


def test_event_to_dict_flattens_data():
    context = EventContext(slot=10, tx_hash="ab")
    event = Event(context, EventData(TxInputRecord("cd", 2)))
    result = event.to_dict()
    assert result["context"]["slot"] == 10
    assert result["context"]["block_hash"] is None
    assert result["tx_input"] == {"tx_id": "cd", "index": 2}
    assert result["fingerprint"] is None
    assert list(result) == ["context", "tx_input", "fingerprint"]


def test_metadata_record_flattens_content():
    record = MetadataRecord("721", MetadatumRendition(MetadatumKind.TEXT_SCALAR, "x"))
    event = Event(EventContext(), EventData(record))
    assert event.to_dict()["metadata"] == {"label": "721", "text_scalar": "x"}


def test_block_era_serializes_as_name():
    event = Event(EventContext(), EventData(_block()))
    assert event.to_dict()["block"]["era"] == "Alonzo"


def test_genesis_key_delegation_serializes_as_null():
    data = EventData(GenesisKeyDelegation())
    assert data.to_dict() == {"genesis_key_delegation": None}


def test_stake_credentials_serialize_externally_tagged():
    credential = StakeCredential("AddrKeyhash", "ab")
    data = EventData(StakeRegistration(credential))
    assert data.to_dict() == {"stake_registration": {"credential": {"AddrKeyhash": "ab"}}}

    cert = MoveInstantaneousRewardsCert(True, False, [(credential, 5)], None)
    payload = EventData(cert).to_dict()["move_instantaneous_rewards_cert"]
    assert payload["to_stake_credentials"] == [[{"AddrKeyhash": "ab"}, 5]]


def test_stake_credential_rejects_unknown_kind():
    with pytest.raises(ValueError):
        StakeCredential("Other", "ab")


def test_stake_credential_ordering():
    creds = [StakeCredential("Scripthash", "aa"), StakeCredential("AddrKeyhash", "zz")]
    assert sorted(creds)[0].kind == "AddrKeyhash"


def test_to_json_round_trip():
    event = Event(
        EventContext(slot=1, block_hash="ff"),
        EventData(RollBack(block_slot=3, block_hash="ee")),
        fingerprint="1.back.x",
    )
    assert json.loads(event.to_json()) == event.to_dict()


def test_struct_variants_serialize_fields():
    data = EventData(Collateral(tx_id="ab", index=4))
    assert data.to_dict() == {"collateral": {"tx_id": "ab", "index": 4}}


def test_record_ordering():
    mints = [MintRecord("b", "x", 1), MintRecord("a", "y", 2)]
    assert [m.policy for m in sorted(mints)] == ["a", "b"]
    assets = [OutputAssetRecord("p", "b", None, 1), OutputAssetRecord("p", "a", None, 9)]
    assert min(assets).asset == "a"