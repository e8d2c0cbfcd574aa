"""Transaction metadata: JSON rendering, CIP-25 and CIP-15 records, crawling."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Union

from oura.model import (
    CIP15AssetRecord,
    CIP25AssetRecord,
    MetadataRecord,
    MetadatumKind,
    MetadatumRendition,
)

log = logging.getLogger(__name__)

CIP25_LABEL = 721
CIP15_LABEL = 61284

_POLICY_BYTES_LEN = 28
_POLICY_TEXT_LEN = 56
_DEFAULT_CIP25_VERSION = "1.0"
_I64_MIN = -(1 << 63)
_I64_MAX = (1 << 63) - 1


class MetadataError(ValueError):
    """Raised when metadata does not have the expected shape."""


class MetadatumMap:
    """A metadatum map: ordered key/value pairs whose keys may be any metadatum.

    Keys need not be hashable (a key may itself be a list or a map), so the
    entries are kept as pairs rather than in a dict.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Union[Mapping, Iterable[tuple[Any, Any]]] = ()) -> None:
        if isinstance(entries, Mapping):
            pairs = entries.items()
        else:
            pairs = entries
        self._entries = tuple((key, value) for key, value in pairs)

    def __iter__(self) -> Iterator[tuple[Any, Any]]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MetadatumMap):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"MetadatumMap({list(self._entries)!r})"


Metadatum = Union[int, bytes, str, list, MetadatumMap]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_bytes(value: Any) -> bool:
    return isinstance(value, (bytes, bytearray))


def _is_map(value: Any) -> bool:
    return isinstance(value, (MetadatumMap, Mapping))


def _pairs(value: Any) -> Iterable[tuple[Any, Any]]:
    if isinstance(value, MetadatumMap):
        return value
    return value.items()


def metadatum_to_string_key(datum: Metadatum) -> str:
    """Render a map key as a string; unsupported key types become ``""``."""
    if _is_int(datum):
        return str(datum)
    if _is_bytes(datum):
        return bytes(datum).hex()
    if isinstance(datum, str):
        return datum
    log.warning("unexpected metadatum type for label: %r", datum)
    return ""


def metadatum_to_json(source: Metadatum) -> Any:
    """Render a metadatum as a JSON-compatible value."""
    if _is_int(source):
        return source
    if _is_bytes(source):
        return bytes(source).hex()
    if isinstance(source, str):
        return source
    if isinstance(source, (list, tuple)):
        return [metadatum_to_json(item) for item in source]
    if _is_map(source):
        return {
            metadatum_to_string_key(key): metadatum_to_json(value)
            for key, value in _pairs(source)
        }
    raise MetadataError(f"unsupported metadatum type: {type(source).__name__}")


def _check_label(label: Any) -> int:
    if not _is_int(label) or label < 0:
        raise MetadataError(f"invalid metadata label: {label!r}")
    return label


def to_metadata_record(label: int, value: Metadatum) -> MetadataRecord:
    """Build the record of one metadata entry."""
    label = _check_label(label)
    if _is_int(value):
        content = MetadatumRendition(MetadatumKind.INT_SCALAR, value)
    elif _is_bytes(value):
        content = MetadatumRendition(MetadatumKind.BYTES_HEX, bytes(value).hex())
    elif isinstance(value, str):
        content = MetadatumRendition(MetadatumKind.TEXT_SCALAR, value)
    elif isinstance(value, (list, tuple)):
        content = MetadatumRendition(MetadatumKind.ARRAY_JSON, metadatum_to_json(value))
    elif _is_map(value):
        content = MetadatumRendition(MetadatumKind.MAP_JSON, metadatum_to_json(value))
    else:
        raise MetadataError(f"unsupported metadatum type: {type(value).__name__}")
    return MetadataRecord(label=str(label), content=content)


# Heuristic: a policy id is 28 raw bytes or its 56-character hex text.
def _policy_key(key: Any) -> Union[str, None]:
    if _is_bytes(key) and len(key) == _POLICY_BYTES_LEN:
        return bytes(key).hex()
    if isinstance(key, str) and len(key.encode("utf-8")) == _POLICY_TEXT_LEN:
        return key
    return None


def _asset_key(key: Any) -> Union[str, None]:
    if _is_bytes(key):
        return bytes(key).hex()
    if isinstance(key, str):
        return key
    return None


def _json_str(raw_json: Any, key: str) -> Union[str, None]:
    if not isinstance(raw_json, dict):
        return None
    value = raw_json.get(key)
    return value if isinstance(value, str) else None


def _cip25_version(content: Any) -> str:
    if _is_map(content):
        for key, value in _pairs(content):
            if key == "version" and isinstance(key, str) and isinstance(value, str):
                return value
    return _DEFAULT_CIP25_VERSION


def to_cip25_asset_records(content: Metadatum) -> list[CIP25AssetRecord]:
    """Collect the CIP-25 asset records held by a 721 metadata entry."""
    if not _is_map(content):
        log.warning("invalid metadatum type for 721 label")
        return []

    version = _cip25_version(content)
    records = []
    for key, policy_content in _pairs(content):
        policy = _policy_key(key)
        if policy is None:
            continue
        if not _is_map(policy_content):
            log.warning("invalid metadatum type for policy inside 721 label")
            continue
        for asset_key, asset_content in _pairs(policy_content):
            asset = _asset_key(asset_key)
            if asset is None:
                continue
            raw_json = metadatum_to_json(asset_content)
            records.append(
                CIP25AssetRecord(
                    version=version,
                    policy=policy,
                    asset=asset,
                    name=_json_str(raw_json, "name"),
                    image=_json_str(raw_json, "image"),
                    media_type=_json_str(raw_json, "mediaType"),
                    description=_json_str(raw_json, "description"),
                    raw_json=raw_json,
                )
            )
    return records


def to_cip15_asset_record(content: Metadatum) -> CIP15AssetRecord:
    """Build the CIP-15 record of a 61284 metadata entry."""
    raw_json = metadatum_to_json(content)
    if not isinstance(raw_json, dict):
        raise MetadataError("invalid metadatum object for CIP15")

    voting_key = _json_str(raw_json, "1")
    stake_pub = _json_str(raw_json, "2")
    if voting_key is None or stake_pub is None:
        raise MetadataError("invalid value type for CIP15")

    nonce = raw_json.get("4")
    if not _is_int(nonce) or not _I64_MIN <= nonce <= _I64_MAX:
        nonce = 0

    return CIP15AssetRecord(
        voting_key=voting_key,
        stake_pub=stake_pub,
        reward_address=_json_str(raw_json, "3") or "",
        nonce=nonce,
        raw_json=raw_json,
    )


def crawl_metadata(writer: Any, metadata: Union[MetadatumMap, Mapping]) -> None:
    """Send a metadata event per label, followed by any CIP-25/CIP-15 assets."""
    for label, content in _pairs(metadata):
        writer.append(to_metadata_record(label, content))

        if label == CIP25_LABEL:
            for record in to_cip25_asset_records(content):
                writer.append(record)
        elif label == CIP15_LABEL:
            try:
                record = to_cip15_asset_record(content)
            except MetadataError as err:
                log.info("error parsing CIP15: %s", err)
            else:
                writer.append(record)