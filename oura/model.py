"""Event records emitted while crawling the chain, and their JSON form."""

from __future__ import annotations

import enum
import json
import re
from dataclasses import dataclass, fields, is_dataclass, replace
from typing import Any, Optional, Union

JsonValue = Any


class Era(enum.IntEnum):
    """Ledger era a block belongs to, in chronological order."""

    UNDEFINED = 0
    BYRON = 1
    SHELLEY = 2
    ALLEGRA = 3
    MARY = 4
    ALONZO = 5

    def __str__(self) -> str:
        return self.name.capitalize()

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)


class MetadatumKind(enum.Enum):
    """How a metadatum value is rendered."""

    MAP_JSON = "map_json"
    ARRAY_JSON = "array_json"
    INT_SCALAR = "int_scalar"
    TEXT_SCALAR = "text_scalar"
    BYTES_HEX = "bytes_hex"


_JSON_KINDS = (MetadatumKind.MAP_JSON, MetadatumKind.ARRAY_JSON)


def _dump_json(value: JsonValue) -> str:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


@dataclass(frozen=True)
class MetadatumRendition:
    """A metadatum value together with the kind of rendition it carries."""

    kind: MetadatumKind
    value: Any

    def __str__(self) -> str:
        if self.kind in _JSON_KINDS:
            return _dump_json(self.value)
        return str(self.value)

    def to_dict(self) -> dict:
        return {self.kind.value: self.value}


@dataclass
class MetadataRecord:
    label: str
    content: MetadatumRendition


@dataclass
class CIP25AssetRecord:
    version: str
    policy: str
    asset: str
    name: Optional[str]
    image: Optional[str]
    media_type: Optional[str]
    description: Optional[str]
    raw_json: JsonValue


@dataclass
class CIP15AssetRecord:
    voting_key: str
    stake_pub: str
    reward_address: str
    nonce: int
    raw_json: JsonValue


@dataclass
class TxInputRecord:
    tx_id: str
    index: int


@dataclass(order=True)
class OutputAssetRecord:
    policy: str
    asset: str
    asset_ascii: Optional[str]
    amount: int


@dataclass
class TxOutputRecord:
    address: str
    amount: int
    assets: Optional[list[OutputAssetRecord]] = None
    datum_hash: Optional[str] = None


@dataclass(order=True)
class MintRecord:
    policy: str
    asset: str
    quantity: int


@dataclass
class TransactionRecord:
    hash: str = ""
    fee: int = 0
    ttl: Optional[int] = None
    validity_interval_start: Optional[int] = None
    network_id: Optional[int] = None
    input_count: int = 0
    output_count: int = 0
    mint_count: int = 0
    total_output: int = 0
    metadata: Optional[list[MetadataRecord]] = None
    inputs: Optional[list[TxInputRecord]] = None
    outputs: Optional[list[TxOutputRecord]] = None
    mint: Optional[list[MintRecord]] = None


@dataclass(frozen=True)
class EventContext:
    """Where in the chain an event was found; every field is optional."""

    block_hash: Optional[str] = None
    block_number: Optional[int] = None
    slot: Optional[int] = None
    timestamp: Optional[int] = None
    tx_idx: Optional[int] = None
    tx_hash: Optional[str] = None
    input_idx: Optional[int] = None
    output_idx: Optional[int] = None
    output_address: Optional[str] = None
    certificate_idx: Optional[int] = None

    def merge(self, other: EventContext) -> EventContext:
        """Return a copy whose unset fields are filled in from ``other``."""
        missing = {
            f.name: getattr(other, f.name)
            for f in fields(self)
            if getattr(self, f.name) is None
        }
        return replace(self, **missing)


@dataclass(frozen=True, order=True)
class StakeCredential:
    """A stake credential: a key hash or a script hash, hex encoded."""

    kind: str
    hash: str

    KINDS = ("AddrKeyhash", "Scripthash")

    def __post_init__(self) -> None:
        if self.kind not in self.KINDS:
            raise ValueError(f"unknown stake credential kind: {self.kind!r}")


@dataclass
class VKeyWitnessRecord:
    vkey_hex: str
    signature_hex: str


@dataclass
class NativeWitnessRecord:
    policy_id: str
    script_json: JsonValue


@dataclass
class PlutusWitnessRecord:
    script_hash: str
    script_hex: str


@dataclass
class PlutusRedeemerRecord:
    purpose: str
    ex_units_mem: int
    ex_units_steps: int
    input_idx: int
    plutus_data: JsonValue


@dataclass
class PlutusDatumRecord:
    datum_hash: str
    plutus_data: JsonValue


@dataclass
class BlockRecord:
    era: Era
    epoch: Optional[int]
    epoch_slot: Optional[int]
    body_size: int
    issuer_vkey: str
    tx_count: int
    slot: int
    hash: str
    number: int
    previous_hash: str
    cbor_hex: Optional[str] = None
    transactions: Optional[list[TransactionRecord]] = None


@dataclass
class Collateral:
    tx_id: str
    index: int


@dataclass
class NativeScript:
    policy_id: str
    script: JsonValue


@dataclass
class PlutusScript:
    hash: str
    data: str


@dataclass
class StakeRegistration:
    credential: StakeCredential


@dataclass
class StakeDeregistration:
    credential: StakeCredential


@dataclass
class StakeDelegation:
    credential: StakeCredential
    pool_hash: str


@dataclass
class PoolRegistration:
    operator: str
    vrf_keyhash: str
    pledge: int
    cost: int
    margin: float
    reward_account: str
    pool_owners: list[str]
    relays: list[str]
    pool_metadata: Optional[str] = None


@dataclass
class PoolRetirement:
    pool: str
    epoch: int


@dataclass
class GenesisKeyDelegation:
    """Genesis key delegation certificate; carries no details."""


@dataclass
class MoveInstantaneousRewardsCert:
    from_reserves: bool
    from_treasury: bool
    to_stake_credentials: Optional[list[tuple[StakeCredential, int]]] = None
    to_other_pot: Optional[int] = None


@dataclass
class RollBack:
    block_slot: int
    block_hash: str


_EXPLICIT_TAGS = {"CIP25Asset": "cip25_asset", "CIP15Asset": "cip15_asset"}


class EventKind(enum.Enum):
    """Variant of an event; the value is its display name."""

    BLOCK = "Block"
    BLOCK_END = "BlockEnd"
    TRANSACTION = "Transaction"
    TRANSACTION_END = "TransactionEnd"
    TX_INPUT = "TxInput"
    TX_OUTPUT = "TxOutput"
    OUTPUT_ASSET = "OutputAsset"
    METADATA = "Metadata"
    V_KEY_WITNESS = "VKeyWitness"
    NATIVE_WITNESS = "NativeWitness"
    PLUTUS_WITNESS = "PlutusWitness"
    PLUTUS_REDEEMER = "PlutusRedeemer"
    PLUTUS_DATUM = "PlutusDatum"
    CIP25_ASSET = "CIP25Asset"
    CIP15_ASSET = "CIP15Asset"
    MINT = "Mint"
    COLLATERAL = "Collateral"
    NATIVE_SCRIPT = "NativeScript"
    PLUTUS_SCRIPT = "PlutusScript"
    STAKE_REGISTRATION = "StakeRegistration"
    STAKE_DEREGISTRATION = "StakeDeregistration"
    STAKE_DELEGATION = "StakeDelegation"
    POOL_REGISTRATION = "PoolRegistration"
    POOL_RETIREMENT = "PoolRetirement"
    GENESIS_KEY_DELEGATION = "GenesisKeyDelegation"
    MOVE_INSTANTANEOUS_REWARDS_CERT = "MoveInstantaneousRewardsCert"
    ROLL_BACK = "RollBack"

    def __str__(self) -> str:
        return self.value

    @property
    def tag(self) -> str:
        """Key used for this variant in the serialized form."""
        explicit = _EXPLICIT_TAGS.get(self.value)
        if explicit is not None:
            return explicit
        return re.sub(r"(?<!^)(?=[A-Z])", "_", self.value).lower()


_PAYLOAD_TYPES: dict[EventKind, type] = {
    EventKind.BLOCK: BlockRecord,
    EventKind.BLOCK_END: BlockRecord,
    EventKind.TRANSACTION: TransactionRecord,
    EventKind.TRANSACTION_END: TransactionRecord,
    EventKind.TX_INPUT: TxInputRecord,
    EventKind.TX_OUTPUT: TxOutputRecord,
    EventKind.OUTPUT_ASSET: OutputAssetRecord,
    EventKind.METADATA: MetadataRecord,
    EventKind.V_KEY_WITNESS: VKeyWitnessRecord,
    EventKind.NATIVE_WITNESS: NativeWitnessRecord,
    EventKind.PLUTUS_WITNESS: PlutusWitnessRecord,
    EventKind.PLUTUS_REDEEMER: PlutusRedeemerRecord,
    EventKind.PLUTUS_DATUM: PlutusDatumRecord,
    EventKind.CIP25_ASSET: CIP25AssetRecord,
    EventKind.CIP15_ASSET: CIP15AssetRecord,
    EventKind.MINT: MintRecord,
    EventKind.COLLATERAL: Collateral,
    EventKind.NATIVE_SCRIPT: NativeScript,
    EventKind.PLUTUS_SCRIPT: PlutusScript,
    EventKind.STAKE_REGISTRATION: StakeRegistration,
    EventKind.STAKE_DEREGISTRATION: StakeDeregistration,
    EventKind.STAKE_DELEGATION: StakeDelegation,
    EventKind.POOL_REGISTRATION: PoolRegistration,
    EventKind.POOL_RETIREMENT: PoolRetirement,
    EventKind.GENESIS_KEY_DELEGATION: GenesisKeyDelegation,
    EventKind.MOVE_INSTANTANEOUS_REWARDS_CERT: MoveInstantaneousRewardsCert,
    EventKind.ROLL_BACK: RollBack,
}

# A record type maps to the first kind that carries it (Block over BlockEnd).
_DEFAULT_KINDS: dict[type, EventKind] = {}
for _kind, _payload in _PAYLOAD_TYPES.items():
    _DEFAULT_KINDS.setdefault(_payload, _kind)

Payload = Union[tuple(_DEFAULT_KINDS)]


def _to_plain(value: Any) -> Any:
    if isinstance(value, Era):
        return str(value)
    if isinstance(value, (MetadatumRendition, EventData)):
        return value.to_dict()
    if isinstance(value, MetadataRecord):
        return {"label": value.label, **value.content.to_dict()}
    if isinstance(value, StakeCredential):
        return {value.kind: value.hash}
    if isinstance(value, enum.Enum):
        return value.value
    if is_dataclass(value):
        return {f.name: _to_plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, (list, tuple)):
        return [_to_plain(item) for item in value]
    if isinstance(value, dict):
        return {key: _to_plain(item) for key, item in value.items()}
    return value


@dataclass(frozen=True)
class EventData:
    """The payload of an event, tagged with its variant.

    When ``kind`` is omitted it is inferred from the record type; a
    ``BlockRecord`` becomes a ``Block`` and a ``TransactionRecord`` a
    ``Transaction``.
    """

    record: Any
    kind: Optional[EventKind] = None

    def __post_init__(self) -> None:
        if self.kind is None:
            kind = _DEFAULT_KINDS.get(type(self.record))
            if kind is None:
                raise TypeError(
                    f"no event variant carries {type(self.record).__name__}"
                )
            object.__setattr__(self, "kind", kind)
        elif not isinstance(self.record, _PAYLOAD_TYPES[self.kind]):
            raise TypeError(
                f"{self.kind} events carry {_PAYLOAD_TYPES[self.kind].__name__}, "
                f"not {type(self.record).__name__}"
            )

    def __str__(self) -> str:
        return str(self.kind)

    def to_dict(self) -> dict:
        if self.kind is EventKind.GENESIS_KEY_DELEGATION:
            return {self.kind.tag: None}
        return {self.kind.tag: _to_plain(self.record)}


@dataclass
class Event:
    """A single event flowing through the pipeline."""

    context: EventContext
    data: EventData
    fingerprint: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "context": _to_plain(self.context),
            **self.data.to_dict(),
            "fingerprint": self.fingerprint,
        }

    def to_json(self) -> str:
        return _dump_json(self.to_dict())