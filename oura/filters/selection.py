"""A filter that decides which events pass and which are dropped."""

from __future__ import annotations

import enum
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from oura.model import Event, EventKind, MetadatumKind
from oura.pipelining import Channel, FilterProvider, new_inter_stage_channel


class PredicateKind(enum.Enum):
    """The checks a predicate can perform."""

    VARIANT_IN = "variant_in"
    VARIANT_NOT_IN = "variant_not_in"
    POLICY_EQUALS = "policy_equals"
    ASSET_EQUALS = "asset_equals"
    METADATA_LABEL_EQUALS = "metadata_label_equals"
    METADATA_ANY_SUB_LABEL_EQUALS = "metadata_any_sub_label_equals"
    NOT = "not"
    ANY_OF = "any_of"
    ALL_OF = "all_of"


_STRING_LIST_KINDS = (PredicateKind.VARIANT_IN, PredicateKind.VARIANT_NOT_IN)
_STRING_KINDS = (
    PredicateKind.POLICY_EQUALS,
    PredicateKind.ASSET_EQUALS,
    PredicateKind.METADATA_LABEL_EQUALS,
    PredicateKind.METADATA_ANY_SUB_LABEL_EQUALS,
)
_COMPOSITE_KINDS = (PredicateKind.ANY_OF, PredicateKind.ALL_OF)
_ASSET_KINDS = (EventKind.OUTPUT_ASSET, EventKind.MINT)


def _relaxed_eq(a: str, b: str) -> bool:
    return a.lower() == b.lower()


@dataclass(frozen=True)
class Predicate:
    """A check applied to each event; composite kinds hold sub-predicates."""

    kind: PredicateKind
    argument: Any

    def __post_init__(self) -> None:
        if self.kind in _STRING_LIST_KINDS or self.kind in _COMPOSITE_KINDS:
            object.__setattr__(self, "argument", tuple(self.argument))

    def event_matches(self, event: Event) -> bool:
        data = event.data
        record = data.record
        kind = self.kind
        if kind is PredicateKind.VARIANT_IN:
            return self._variant_in(event)
        if kind is PredicateKind.VARIANT_NOT_IN:
            return not self._variant_in(event)
        if kind is PredicateKind.POLICY_EQUALS:
            return data.kind in _ASSET_KINDS and _relaxed_eq(record.policy, self.argument)
        if kind is PredicateKind.ASSET_EQUALS:
            return data.kind in _ASSET_KINDS and _relaxed_eq(record.asset, self.argument)
        if kind is PredicateKind.METADATA_LABEL_EQUALS:
            return data.kind is EventKind.METADATA and _relaxed_eq(
                record.label, self.argument
            )
        if kind is PredicateKind.METADATA_ANY_SUB_LABEL_EQUALS:
            if data.kind is not EventKind.METADATA:
                return False
            content = record.content
            if content.kind is not MetadatumKind.MAP_JSON or not isinstance(
                content.value, Mapping
            ):
                return False
            return any(_relaxed_eq(key, self.argument) for key in content.value)
        if kind is PredicateKind.NOT:
            return not self.argument.event_matches(event)
        if kind is PredicateKind.ANY_OF:
            return any(p.event_matches(event) for p in self.argument)
        return all(p.event_matches(event) for p in self.argument)

    def _variant_in(self, event: Event) -> bool:
        name = str(event.data)
        return any(_relaxed_eq(name, variant) for variant in self.argument)


def parse_predicate(value: Any) -> Predicate:
    """Build a predicate from its configuration form.

    The form is a mapping with a ``predicate`` name and an ``argument``.
    """
    if isinstance(value, Predicate):
        return value
    if not isinstance(value, Mapping):
        raise ValueError("a predicate must be a mapping")
    if "predicate" not in value:
        raise ValueError("missing 'predicate' key")
    name = value["predicate"]
    try:
        kind = PredicateKind(name)
    except ValueError:
        raise ValueError(f"unknown predicate: {name!r}") from None
    if "argument" not in value:
        raise ValueError(f"predicate {name!r} requires an argument")
    argument = value["argument"]

    if kind in _STRING_LIST_KINDS:
        if not isinstance(argument, (list, tuple)) or not all(
            isinstance(item, str) for item in argument
        ):
            raise ValueError(f"predicate {name!r} expects a list of strings")
        return Predicate(kind, tuple(argument))
    if kind in _STRING_KINDS:
        if not isinstance(argument, str):
            raise ValueError(f"predicate {name!r} expects a string")
        return Predicate(kind, argument)
    if kind is PredicateKind.NOT:
        return Predicate(kind, parse_predicate(argument))
    if not isinstance(argument, (list, tuple)):
        raise ValueError(f"predicate {name!r} expects a list of predicates")
    return Predicate(kind, tuple(parse_predicate(item) for item in argument))


@dataclass
class Config(FilterProvider):
    """Configuration of the selection filter."""

    check: Predicate

    def __post_init__(self) -> None:
        self.check = parse_predicate(self.check)

    def bootstrap(self, receiver: Channel) -> tuple[threading.Thread, Channel]:
        output = new_inter_stage_channel()
        check = self.check

        def run() -> None:
            try:
                for event in receiver:
                    if check.event_matches(event):
                        output.send(event)
            finally:
                output.close()

        thread = threading.Thread(target=run, name="selection-filter", daemon=True)
        thread.start()
        return thread, output