# oura

Building blocks for a pipeline that follows a Cardano chain as a stream
of typed events: the event model, bounded channels between threaded
stages, three filters, an event writer and the mapping of transaction
metadata into records.

## Modules

### `oura.model`

The event model. An `Event` holds an `EventContext` (block hash and
number, slot, timestamp, transaction index and hash, input, output and
certificate indices, output address), an `EventData` and an optional
`fingerprint`.

`EventData` wraps a record and an `EventKind`. When the kind is omitted
it is inferred from the record type (a `BlockRecord` becomes `Block`, a
`TransactionRecord` becomes `Transaction`); a record that does not fit
the given kind raises `TypeError`. `str(event.data)` is the variant name,
such as `"Block"` or `"OutputAsset"`.

Record types include `BlockRecord`, `TransactionRecord`, `TxInputRecord`,
`TxOutputRecord`, `OutputAssetRecord`, `MintRecord`, `MetadataRecord`,
`CIP25AssetRecord`, `CIP15AssetRecord`, the witness and Plutus records,
and the certificate events (`StakeRegistration`, `StakeDelegation`,
`PoolRegistration`, `PoolRetirement`, `MoveInstantaneousRewardsCert`,
...), `Collateral`, `NativeScript`, `PlutusScript` and `RollBack`.

`EventContext.merge(other)` returns a copy whose unset fields are taken
from `other`. `Event.to_dict()` and `Event.to_json()` give the serialized
form, where the payload sits under its snake_case tag (`"block"`,
`"tx_output"`, `"cip25_asset"`, ...) next to `"context"` and
`"fingerprint"`.

### `oura.pipelining`

`Channel` is a bounded FIFO between stages: `send()` blocks while the
buffer is full and fails with `BrokenPipeError` once the channel is
closed; iterating yields events until `close()` has been called and the
buffer is drained. `new_inter_stage_channel(buffer_size)` creates one,
holding 1000 events when `buffer_size` is `None`.

`SourceProvider`, `FilterProvider` and `SinkProvider` are the abstract
stage interfaces; `bootstrap()` starts a stage in its own thread.

### `oura.filters`

Each filter has a `Config` whose `bootstrap(receiver)` starts a thread
and returns `(thread, output_channel)`. The output channel is closed when
the input is exhausted.

- `oura.filters.noop`: passes every event through.
- `oura.filters.selection`: passes only events for which the `check`
  predicate holds. Predicates are written as
  `{"predicate": <name>, "argument": <value>}` and built with
  `parse_predicate`; names are `variant_in`, `variant_not_in`,
  `policy_equals`, `asset_equals`, `metadata_label_equals`,
  `metadata_any_sub_label_equals`, `not`, `any_of` and `all_of`. String
  comparisons ignore case. Malformed forms raise `ValueError`.
- `oura.filters.fingerprint`: sets `event.fingerprint` to
  `"<slot>.<prefix>.<hash>"`, where the hash is MurmurHash3 x64 128-bit
  (`murmur3_x64_128`) of fields chosen per event kind, with an optional
  `seed` (default 0). `build_fingerprint(event, seed)` raises
  `FingerprintError` when a needed field is missing; the filter then logs a
  warning and passes the event on without a fingerprint.

### `oura.mapper.writer`

`EventWriter` sends events to a channel, stamping each with its context.
`append()` accepts an `EventData` or a bare record, `child_writer()`
returns a writer whose context extends the parent's, and
`append_rollback_event()` sends a `RollBack` to `None`/`"origin"` or to a
`(slot, hash)` point. An optional `slot_to_wallclock` callable feeds
`compute_timestamp()`, and an optional `on_event` callable sees every
event before it is sent. `Config` holds the mapper's `include_*` flags.

### `oura.mapper.metadata`

Transaction metadata values are Python ints, bytes, strings, lists and
mappings (or `MetadatumMap` for keys that are not hashable).

- `metadatum_to_json` renders a value as JSON, bytes as hex.
- `to_metadata_record(label, value)` builds a `MetadataRecord`.
- `to_cip25_asset_records` reads the NFT assets of a label 721 entry.
- `to_cip15_asset_record` reads a label 61284 vote registration, raising
  `MetadataError` when the voting key or stake key is missing.
- `crawl_metadata(writer, metadata)` appends a metadata event per label,
  followed by the CIP-25 or CIP-15 records it holds.

## Example

```python
from oura.pipelining import new_inter_stage_channel
from oura.filters.selection import Config, parse_predicate

source = new_inter_stage_channel(None)
check = parse_predicate({"predicate": "variant_in", "argument": ["Block"]})
thread, output = Config(check=check).bootstrap(source)

# feed events into `source`, then:
source.close()
for event in output:
    print(event.to_json())
```

## What this package does not do

It does not connect to a node, decode blocks from CBOR, or walk blocks,
transactions, certificates and witnesses into events; only transaction
metadata is mapped. It has no sources and no sinks, no configuration
file loading, and no command-line program: events are produced and
consumed by your own code through `EventWriter` and `Channel`.

## Installation

```
pip install .
```

## Tests

```
pip install .[test]
pytest
```