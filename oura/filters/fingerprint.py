"""A filter that computes a (probably) unique identifier for each event."""

from __future__ import annotations

import logging
import struct
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from oura.model import Event, EventKind
from oura.pipelining import Channel, FilterProvider, new_inter_stage_channel

log = logging.getLogger(__name__)

_MASK = (1 << 64) - 1
_C1 = 0x87C37B91114253D5
_C2 = 0x4CF5AD432745937F


def _rotl(value: int, shift: int) -> int:
    return ((value << shift) | (value >> (64 - shift))) & _MASK


def _fmix(k: int) -> int:
    k ^= k >> 33
    k = (k * 0xFF51AFD7ED558CCD) & _MASK
    k ^= k >> 33
    k = (k * 0xC4CEB9FE1A85EC53) & _MASK
    k ^= k >> 33
    return k


def _mix_k1(k1: int) -> int:
    k1 = (k1 * _C1) & _MASK
    k1 = _rotl(k1, 31)
    return (k1 * _C2) & _MASK


def _mix_k2(k2: int) -> int:
    k2 = (k2 * _C2) & _MASK
    k2 = _rotl(k2, 33)
    return (k2 * _C1) & _MASK


def murmur3_x64_128(data: bytes, seed: int = 0) -> int:
    """MurmurHash3 x64 128-bit; the result is ``h2 << 64 | h1``."""
    if not 0 <= seed <= 0xFFFFFFFF:
        raise ValueError("seed must fit in 32 bits")
    data = bytes(data)
    length = len(data)
    h1 = h2 = seed
    body = length - length % 16

    for k1, k2 in struct.iter_unpack("<QQ", data[:body]):
        h1 ^= _mix_k1(k1)
        h1 = _rotl(h1, 27)
        h1 = (h1 + h2) & _MASK
        h1 = (h1 * 5 + 0x52DCE729) & _MASK

        h2 ^= _mix_k2(k2)
        h2 = _rotl(h2, 31)
        h2 = (h2 + h1) & _MASK
        h2 = (h2 * 5 + 0x38495AB5) & _MASK

    tail = data[body:]
    if len(tail) > 8:
        h2 ^= _mix_k2(int.from_bytes(tail[8:], "little"))
    if tail:
        h1 ^= _mix_k1(int.from_bytes(tail[:8], "little"))

    h1 ^= length
    h2 ^= length
    h1 = (h1 + h2) & _MASK
    h2 = (h2 + h1) & _MASK
    h1 = _fmix(h1)
    h2 = _fmix(h2)
    h1 = (h1 + h2) & _MASK
    h2 = (h2 + h1) & _MASK
    return (h2 << 64) | h1


class FingerprintError(ValueError):
    """Raised when an event lacks what its fingerprint is built from."""


_Part = Callable[[Event], str]


def _ctx(name: str) -> _Part:
    def get(event: Event) -> str:
        value = getattr(event.context, name)
        if value is None:
            raise FingerprintError("fingerprint component not available")
        return str(value)

    return get


def _rec(name: str) -> _Part:
    return lambda event: str(getattr(event.data.record, name))


_TX = _ctx("tx_hash")
_CERT = _ctx("certificate_idx")

_SPECS: dict[EventKind, tuple[str, tuple[_Part, ...]]] = {
    EventKind.BLOCK: ("blck", (_ctx("block_hash"),)),
    EventKind.BLOCK_END: ("blckend", (_ctx("block_hash"),)),
    EventKind.TRANSACTION: ("tx", (_TX,)),
    EventKind.TRANSACTION_END: ("txend", (_TX,)),
    EventKind.TX_INPUT: ("stxi", (_TX, _ctx("input_idx"))),
    EventKind.TX_OUTPUT: ("utxo", (_TX, _ctx("output_idx"))),
    EventKind.OUTPUT_ASSET: (
        "asst",
        (_TX, _ctx("output_idx"), _rec("policy"), _rec("asset")),
    ),
    EventKind.METADATA: ("meta", (_TX, _rec("label"))),
    EventKind.MINT: ("mint", (_TX, _rec("policy"), _rec("asset"))),
    EventKind.COLLATERAL: ("coll", (_rec("tx_id"), _rec("index"))),
    EventKind.NATIVE_SCRIPT: ("scpt", (_TX, _rec("policy_id"))),
    EventKind.PLUTUS_SCRIPT: ("plut", (_TX,)),
    EventKind.PLUTUS_WITNESS: ("witp", (_TX, _rec("script_hash"))),
    EventKind.NATIVE_WITNESS: ("witn", (_TX, _rec("policy_id"))),
    EventKind.V_KEY_WITNESS: ("witv", (_TX, _rec("vkey_hex"))),
    EventKind.PLUTUS_REDEEMER: ("rdmr", (_TX, _rec("input_idx"))),
    EventKind.PLUTUS_DATUM: ("dtum", (_TX, _rec("datum_hash"))),
    EventKind.STAKE_REGISTRATION: ("skre", (_TX, _CERT)),
    EventKind.STAKE_DEREGISTRATION: ("skde", (_TX, _CERT)),
    EventKind.STAKE_DELEGATION: ("dele", (_TX, _CERT)),
    EventKind.POOL_REGISTRATION: ("pool", (_TX, _CERT)),
    EventKind.POOL_RETIREMENT: ("reti", (_TX, _CERT)),
    EventKind.GENESIS_KEY_DELEGATION: ("gene", (_TX, _CERT)),
    EventKind.MOVE_INSTANTANEOUS_REWARDS_CERT: ("move", (_TX, _CERT)),
    EventKind.ROLL_BACK: ("back", (_rec("block_hash"),)),
    EventKind.CIP25_ASSET: ("cip25", (_TX, _rec("policy"), _rec("asset"))),
    EventKind.CIP15_ASSET: ("cip15", (_TX, _rec("voting_key"), _rec("nonce"))),
}


def build_fingerprint(event: Event, seed: int = 0) -> str:
    """Return ``"<slot>.<prefix>.<hash>"`` for the event."""
    kind = event.data.kind
    prefix, parts = _SPECS[kind]
    hasheable = "".join(part(event) for part in parts).encode("utf-8")
    if kind is EventKind.ROLL_BACK:
        slot = event.data.record.block_slot
    else:
        slot = event.context.slot
    if slot is None:
        raise FingerprintError("missing slot value")
    return f"{slot}.{prefix}.{murmur3_x64_128(hasheable, seed)}"


@dataclass
class Config(FilterProvider):
    """Configuration of the fingerprint filter."""

    seed: Optional[int] = None

    def bootstrap(self, receiver: Channel) -> tuple[threading.Thread, Channel]:
        output = new_inter_stage_channel()
        seed = self.seed if self.seed is not None else 0

        def run() -> None:
            try:
                for event in receiver:
                    try:
                        value = build_fingerprint(event, seed)
                    except FingerprintError as err:
                        log.warning(
                            "failed to compute fingerprint: %s, event: %r", err, event
                        )
                    else:
                        log.debug("computed fingerprint %s", value)
                        event.fingerprint = value
                    output.send(event)
            finally:
                output.close()

        thread = threading.Thread(target=run, name="fingerprint-filter", daemon=True)
        thread.start()
        return thread, output