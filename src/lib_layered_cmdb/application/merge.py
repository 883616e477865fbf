"""Application-layer merge policy.

Purpose
-------
Fold CMDB source trees into one accumulator under a deterministic, pluggable
conflict policy. A policy is a 3×3 table keyed by the kind pair of the two
values being merged (scalar, sequence, mapping); each cell decides the result.
The module is free of I/O so alternative composition roots can reuse it.

Contents
    - ``ValueKind``: the three value kinds and their detection.
    - ``MergeBehavior``: immutable, validated policy table.
    - ``Merger``: applies a behaviour; cells call back into it to recurse.
    - ``BUILTIN_BEHAVIORS`` / ``DEFAULT_BEHAVIOR``: named policies.
    - ``resolve_behavior``: turns the ``merge_behavior`` construction option
      into exactly one policy.
    - ``merge``: convenience wrapper around :class:`Merger`.

System Role
-----------
:class:`lib_layered_cmdb.core.YAMLCMDB` merges every loaded source into the
accumulator with the accumulator as ``base``. With the default
``FIRST_FOUND_WINS`` policy earlier (more specific) sources keep their values
and later ones only fill gaps, while nested mappings compose.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from copy import deepcopy
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Final

from ..domain.errors import InvalidMergeBehavior


class ValueKind(Enum):
    """Kind of a configuration value as seen by the merge table."""

    SCALAR = "scalar"
    SEQUENCE = "sequence"
    MAPPING = "mapping"

    @classmethod
    def of(cls, value: object) -> ValueKind:
        """Classify *value*; anything that is neither a mapping nor a list/tuple is a scalar.

        >>> ValueKind.of({"a": 1}), ValueKind.of([1]), ValueKind.of("text")
        (<ValueKind.MAPPING: 'mapping'>, <ValueKind.SEQUENCE: 'sequence'>, <ValueKind.SCALAR: 'scalar'>)
        """

        if isinstance(value, Mapping):
            return cls.MAPPING
        if isinstance(value, (list, tuple)):
            return cls.SEQUENCE
        return cls.SCALAR

    @classmethod
    def parse(cls, name: object) -> ValueKind:
        """Return the kind named *name* (``ARRAY``/``HASH`` accepted as aliases)."""

        if isinstance(name, ValueKind):
            return name
        if isinstance(name, str):
            lowered = name.strip().lower()
            kind = _KIND_ALIASES.get(lowered)
            if kind is not None:
                return kind
        raise InvalidMergeBehavior(f"Unknown value kind in merge table: {name!r}")


_KIND_ALIASES: Final[dict[str, ValueKind]] = {
    "scalar": ValueKind.SCALAR,
    "sequence": ValueKind.SEQUENCE,
    "array": ValueKind.SEQUENCE,
    "list": ValueKind.SEQUENCE,
    "mapping": ValueKind.MAPPING,
    "hash": ValueKind.MAPPING,
    "dict": ValueKind.MAPPING,
}

MergeRule = Callable[[Any, Any, "Merger"], Any]
"""Cell signature: ``rule(existing, incoming, merger) -> result``.

``merger`` applies the same behaviour, so a cell can recurse through
:meth:`Merger.merge` or :meth:`Merger.merge_mappings`.
"""

_ALL_CELLS: Final[tuple[tuple[ValueKind, ValueKind], ...]] = tuple(
    (existing, incoming) for existing in ValueKind for incoming in ValueKind
)


@dataclass(frozen=True, slots=True)
class MergeBehavior:
    """Named, complete 3×3 merge policy.

    Parameters
    ----------
    name:
        Label used in logs and error messages.
    table:
        Mapping ``(existing_kind, incoming_kind) -> MergeRule`` covering all nine
        kind pairs.
        The MAPPING/MAPPING cell must return a mapping: lookups merge whole
        source trees through it and reject any other result.

    Raises
    ------
    InvalidMergeBehavior
        When a cell is missing or not callable.
    """

    name: str
    table: Mapping[tuple[ValueKind, ValueKind], MergeRule]

    def __post_init__(self) -> None:
        missing = [cell for cell in _ALL_CELLS if cell not in self.table]
        if missing:
            labels = ", ".join(f"{a.name}/{b.name}" for a, b in missing)
            raise InvalidMergeBehavior(f"Merge behavior {self.name!r} is missing cells: {labels}")
        for cell in _ALL_CELLS:
            if not callable(self.table[cell]):
                raise InvalidMergeBehavior(
                    f"Merge behavior {self.name!r} cell {cell[0].name}/{cell[1].name} is not callable"
                )
        object.__setattr__(self, "table", MappingProxyType({cell: self.table[cell] for cell in _ALL_CELLS}))

    def rule(self, existing: ValueKind, incoming: ValueKind) -> MergeRule:
        """Return the cell handling the ``(existing, incoming)`` kind pair."""

        return self.table[(existing, incoming)]

    @classmethod
    def from_table(cls, name: str, table: Mapping[Any, Any]) -> MergeBehavior:
        """Build a behaviour from a flat or nested table.

        Flat tables use ``(existing, incoming)`` tuple keys; nested tables map
        the existing kind name to a mapping of incoming kind names, the shape
        popularised by Perl's ``Hash::Merge``. Kind names accept
        ``SCALAR``/``SEQUENCE``/``MAPPING`` and the ``ARRAY``/``HASH`` aliases.

        Examples
        --------
        >>> keep = lambda existing, incoming, merger: existing
        >>> nested = {a: {b: keep for b in ("SCALAR", "ARRAY", "HASH")} for a in ("SCALAR", "ARRAY", "HASH")}
        >>> MergeBehavior.from_table("KEEP", nested).name
        'KEEP'
        """

        cells: dict[tuple[ValueKind, ValueKind], MergeRule] = {}
        for outer, value in table.items():
            if isinstance(outer, tuple):
                if len(outer) != 2:
                    raise InvalidMergeBehavior(f"Merge table key must be a kind pair: {outer!r}")
                cells[(ValueKind.parse(outer[0]), ValueKind.parse(outer[1]))] = value
                continue
            if not isinstance(value, Mapping):
                raise InvalidMergeBehavior(f"Merge table row {outer!r} must be a mapping of incoming kinds")
            existing = ValueKind.parse(outer)
            for inner, rule in value.items():
                cells[(existing, ValueKind.parse(inner))] = rule
        return cls(name, cells)


class Merger:
    """Apply a :class:`MergeBehavior` to pairs of configuration trees."""

    def __init__(self, behavior: MergeBehavior | None = None) -> None:
        self.behavior = behavior or DEFAULT_BEHAVIOR

    def merge(self, base: Any, incoming: Any) -> Any:
        """Return a new tree combining *base* (existing) and *incoming*.

        Neither input is mutated and the result shares no containers with them.

        Examples
        --------
        >>> Merger().merge({"db": "a"}, {"db": "b", "cache": "x"})
        {'db': 'a', 'cache': 'x'}
        """

        return self._dispatch(deepcopy(base), deepcopy(incoming))

    def merge_mappings(self, left: Mapping[Any, Any], right: Mapping[Any, Any]) -> dict[Any, Any]:
        """Merge two mappings key by key under the active behaviour.

        Keys of *left* come first and are merged with *right*'s value when both
        sides define them; keys only present in *right* follow in *right*'s order.
        Intended for use inside merge cells, which already receive private copies.
        """

        merged: dict[Any, Any] = {}
        for key, value in left.items():
            merged[key] = self._dispatch(value, right[key]) if key in right else value
        for key, value in right.items():
            if key not in merged:
                merged[key] = value
        return merged

    def _dispatch(self, existing: Any, incoming: Any) -> Any:
        rule = self.behavior.rule(ValueKind.of(existing), ValueKind.of(incoming))
        return rule(existing, incoming, self)


def merge(base: Any, incoming: Any, behavior: MergeBehavior | None = None) -> Any:
    """Merge *incoming* into *base* under *behavior* (default: first found wins).

    >>> merge({"a": {"x": 1}}, {"a": {"x": 2, "y": 3}})
    {'a': {'x': 1, 'y': 3}}
    """

    return Merger(behavior).merge(base, incoming)


def keep_existing(existing: Any, incoming: Any, merger: Merger) -> Any:
    """Cell returning the existing value."""

    return existing


def take_incoming(existing: Any, incoming: Any, merger: Merger) -> Any:
    """Cell returning the incoming value."""

    return incoming


def merge_mappings(existing: Any, incoming: Any, merger: Merger) -> Any:
    """Cell merging two mappings recursively with the same behaviour."""

    return merger.merge_mappings(existing, incoming)


def concatenate(existing: Any, incoming: Any, merger: Merger) -> list[Any]:
    """Cell concatenating both sides; mappings contribute their values, scalars themselves."""

    return [*_as_list(existing), *_as_list(incoming)]


def _hashify_existing(existing: Any, incoming: Any, merger: Merger) -> Any:
    return merger.merge_mappings(_hashify(existing), incoming)


def _hashify_incoming(existing: Any, incoming: Any, merger: Merger) -> Any:
    return merger.merge_mappings(existing, _hashify(incoming))


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, Mapping):
        return list(value.values())
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _hashify(value: Any) -> dict[Any, Any]:
    """Turn a scalar or sequence into a mapping keyed by its own elements."""

    return {(item if isinstance(item, Hashable) else repr(item)): item for item in _as_list(value)}


def _behavior(name: str, rows: Mapping[ValueKind, tuple[MergeRule, MergeRule, MergeRule]]) -> MergeBehavior:
    """Build a built-in behaviour from rows ordered SCALAR, SEQUENCE, MAPPING."""

    table = {
        (existing, incoming): rule
        for existing, row in rows.items()
        for incoming, rule in zip(ValueKind, row)
    }
    return MergeBehavior(name, table)


_S, _Q, _M = ValueKind.SCALAR, ValueKind.SEQUENCE, ValueKind.MAPPING

FIRST_FOUND_WINS: Final[MergeBehavior] = _behavior(
    "FIRST_FOUND_WINS",
    {
        _S: (keep_existing, keep_existing, keep_existing),
        _Q: (keep_existing, keep_existing, keep_existing),
        _M: (keep_existing, keep_existing, merge_mappings),
    },
)

LEFT_PRECEDENT: Final[MergeBehavior] = _behavior(
    "LEFT_PRECEDENT",
    {
        _S: (keep_existing, keep_existing, keep_existing),
        _Q: (concatenate, concatenate, concatenate),
        _M: (keep_existing, keep_existing, merge_mappings),
    },
)

RIGHT_PRECEDENT: Final[MergeBehavior] = _behavior(
    "RIGHT_PRECEDENT",
    {
        _S: (take_incoming, concatenate, take_incoming),
        _Q: (take_incoming, concatenate, take_incoming),
        _M: (take_incoming, concatenate, merge_mappings),
    },
)

STORAGE_PRECEDENT: Final[MergeBehavior] = _behavior(
    "STORAGE_PRECEDENT",
    {
        _S: (keep_existing, concatenate, take_incoming),
        _Q: (concatenate, concatenate, take_incoming),
        _M: (keep_existing, keep_existing, merge_mappings),
    },
)

RETAINMENT_PRECEDENT: Final[MergeBehavior] = _behavior(
    "RETAINMENT_PRECEDENT",
    {
        _S: (concatenate, concatenate, _hashify_existing),
        _Q: (concatenate, concatenate, _hashify_existing),
        _M: (_hashify_incoming, _hashify_incoming, merge_mappings),
    },
)

DEFAULT_BEHAVIOR: Final[MergeBehavior] = FIRST_FOUND_WINS

BUILTIN_BEHAVIORS: Final[Mapping[str, MergeBehavior]] = MappingProxyType(
    {
        behavior.name: behavior
        for behavior in (FIRST_FOUND_WINS, LEFT_PRECEDENT, RIGHT_PRECEDENT, STORAGE_PRECEDENT, RETAINMENT_PRECEDENT)
    }
)


def resolve_behavior(option: object) -> MergeBehavior:
    """Return the single behaviour selected by the ``merge_behavior`` option.

    ``None`` selects :data:`DEFAULT_BEHAVIOR`, a string names a built-in
    behaviour (case-insensitive), a :class:`MergeBehavior` is used as is and a
    mapping is read as a user-defined table.

    Examples
    --------
    >>> resolve_behavior(None).name
    'FIRST_FOUND_WINS'
    >>> resolve_behavior("right_precedent").name
    'RIGHT_PRECEDENT'
    """

    if option is None:
        return DEFAULT_BEHAVIOR
    if isinstance(option, MergeBehavior):
        return option
    if isinstance(option, str):
        key = option.strip().upper()
        try:
            return BUILTIN_BEHAVIORS[key]
        except KeyError as exc:
            known = ", ".join(BUILTIN_BEHAVIORS)
            raise InvalidMergeBehavior(f"Unknown merge behavior {option!r}; expected one of: {known}") from exc
    if isinstance(option, Mapping):
        return MergeBehavior.from_table("USER_DEFINED", option)
    raise InvalidMergeBehavior(f"Unsupported merge_behavior option: {type(option).__name__}")
