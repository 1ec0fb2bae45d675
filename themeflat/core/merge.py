"""Per-key merging of layered theme configurations."""

from __future__ import annotations

import copy
from enum import Enum, auto
from typing import Any, Callable, Mapping

from themeflat.errors import ErrorCode, ThemeFlatError

IdentityFn = Callable[[Any], Any]


class MergePolicy(Enum):
    """How a key from an incoming layer is folded into the accumulator."""

    FLATTEN = auto()        # value forced to False
    RECURSE = auto()        # nested mapping merged with the same policy table
    SUPPRESS = auto()       # key dropped from the result
    KEEP_EXISTING = auto()  # first value wins, lists are unioned
    OVERRIDE = auto()       # incoming value replaces existing


DEFAULT_POLICIES: dict[str, MergePolicy] = {
    "extends": MergePolicy.FLATTEN,
    "helpers": MergePolicy.RECURSE,
    "mixins": MergePolicy.SUPPRESS,
}


def by_field(name: str) -> IdentityFn:
    """Identity for associative list entries: mappings compare on one field."""

    def identity(entry: Any) -> Any:
        if isinstance(entry, Mapping) and name in entry:
            return ("field", entry[name])
        return ("value", entry)

    return identity


def _same_value(entry: Any) -> Any:
    return entry


class ConfigMerger:
    """Fold one layer's raw config into an accumulated config.

    The accumulator holds the layers merged so far, base first, so values
    already present win over incoming ones unless a key's policy says
    otherwise. Inputs are never mutated; a new dict is returned.
    """

    def __init__(
        self,
        policies: Mapping[str, MergePolicy] | None = None,
        default: MergePolicy = MergePolicy.KEEP_EXISTING,
        list_identity: Mapping[str, IdentityFn] | None = None,
    ) -> None:
        self._policies = dict(DEFAULT_POLICIES if policies is None else policies)
        self._default = default
        self._list_identity = dict(list_identity or {})

    def policy_for(self, key: str) -> MergePolicy:
        return self._policies.get(key, self._default)

    def merge(self, incoming: Mapping[str, Any], accumulator: Mapping[str, Any]) -> dict[str, Any]:
        _require_mapping(incoming, "incoming config")
        _require_mapping(accumulator, "accumulated config")

        result = dict(accumulator)
        for key, value in incoming.items():
            policy = self.policy_for(key)
            if policy is MergePolicy.FLATTEN:
                result[key] = False
            elif policy is MergePolicy.SUPPRESS:
                continue
            elif policy is MergePolicy.RECURSE:
                # An empty YAML section loads as None.
                if value is None:
                    value = {}
                _require_mapping(value, f"{key!r} section")
                existing = result.get(key)
                if existing is None:
                    existing = {}
                _require_mapping(existing, f"accumulated {key!r} section")
                result[key] = self.merge(value, existing)
            elif policy is MergePolicy.OVERRIDE:
                result[key] = copy.deepcopy(value)
            else:
                result[key] = self._keep_existing(key, value, result.get(key))
        return result

    def _keep_existing(self, key: str, incoming: Any, existing: Any) -> Any:
        if existing is None:
            return copy.deepcopy(incoming)
        if isinstance(existing, list):
            if not isinstance(incoming, (list, tuple)):
                raise ThemeFlatError(
                    ErrorCode.INVALID_CONFIG_SHAPE,
                    message=f"Cannot merge {type(incoming).__name__} into list setting {key!r}",
                )
            return self._union(key, existing, incoming)
        return existing

    def _union(self, key: str, existing: list[Any], incoming: list[Any] | tuple[Any, ...]) -> list[Any]:
        identity = self._list_identity.get(key, _same_value)
        merged = list(existing)
        # Identities may be unhashable (nested lists/dicts); compare by equality.
        seen = [identity(entry) for entry in existing]
        for entry in incoming:
            entry_id = identity(entry)
            if entry_id in seen:
                continue
            seen.append(entry_id)
            merged.append(copy.deepcopy(entry))
        return merged


_DEFAULT_MERGER = ConfigMerger()


def merge_config(incoming: Mapping[str, Any], accumulator: Mapping[str, Any]) -> dict[str, Any]:
    """Merge using the default policy table."""
    return _DEFAULT_MERGER.merge(incoming, accumulator)


def _require_mapping(value: Any, what: str) -> None:
    if not isinstance(value, Mapping):
        raise ThemeFlatError(
            ErrorCode.INVALID_CONFIG_SHAPE,
            message=f"Expected a mapping for {what}, got {type(value).__name__}",
        )
