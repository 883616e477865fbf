"""Bracket reference expansion for CMDB path patterns.

Purpose
-------
Resolve ``[dotted.path]`` tokens inside a candidate path against the data
merged so far during a lookup. Scalars are substituted in place; sequences
multiply the candidate into one concrete path per element.

Contents
--------
* :data:`UNRESOLVED` – sentinel returned by :func:`resolve_reference`.
* :func:`resolve_reference` – walk a dotted path through nested mappings.
* :func:`expand_references` – turn one pattern into its concrete paths.

System Role
-----------
Invoked by :class:`lib_layered_cmdb.core.YAMLCMDB` once per candidate, with the
accumulator as *tree*, so earlier (more specific) sources can steer which later
sources are read. Expansion fails open: an unusable reference stays in the path
as literal text and the lookup simply finds no file there.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any, Final

from .templating import stringify

_REFERENCE = re.compile(r"\[([^\]]+)\]")


class _Unresolved:
    """Marker type for references that did not resolve to a scalar or sequence."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "UNRESOLVED"

    def __bool__(self) -> bool:
        return False


UNRESOLVED: Final = _Unresolved()


def resolve_reference(refspec: str, tree: Mapping[str, Any] | None) -> Any:
    """Return the scalar or list addressed by *refspec*, or :data:`UNRESOLVED`.

    Resolution descends one mapping key per dot-separated segment. It fails when
    *tree* is ``None``, a segment is missing, an intermediate value is not a
    mapping, or the final value is a mapping or an empty sequence.

    Examples
    --------
    >>> resolve_reference("machine.role", {"machine": {"role": "web"}})
    'web'
    >>> resolve_reference("machine.roles", {"machine": {"roles": ["a", "b"]}})
    ['a', 'b']
    >>> resolve_reference("machine", {"machine": {"role": "web"}})
    UNRESOLVED
    >>> resolve_reference("missing.key", None)
    UNRESOLVED
    """

    if tree is None:
        return UNRESOLVED
    current: Any = tree
    for part in refspec.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return UNRESOLVED
        current = current[part]
    if isinstance(current, Mapping):
        return UNRESOLVED
    if isinstance(current, (list, tuple)):
        return list(current) if current else UNRESOLVED
    return current


def expand_references(pattern: str, tree: Mapping[str, Any] | None) -> list[str]:
    """Expand every bracket reference in *pattern* against *tree*.

    Distinct references are processed in order of first appearance. Each
    sequence-valued reference replaces the working set with one copy per
    element (elements in the outer loop, current paths in the inner loop), so
    several sequences produce their full Cartesian product. The result always
    contains at least one path.

    Examples
    --------
    >>> expand_references("cmdb/[missing.key].yml", {})
    ['cmdb/[missing.key].yml']
    >>> expand_references("cmdb/[env]/[roles].yml", {"env": "prod", "roles": ["db", "web"]})
    ['cmdb/prod/db.yml', 'cmdb/prod/web.yml']
    >>> expand_references("[a]-[b]", {"a": [1, 2], "b": ["x", "y"]})
    ['1-x', '2-x', '1-y', '2-y']
    """

    spec = pattern
    branches: dict[str, list[Any]] = {}
    for refspec in dict.fromkeys(_REFERENCE.findall(pattern)):
        value = resolve_reference(refspec, tree)
        if value is UNRESOLVED:
            continue
        token = f"[{refspec}]"
        if isinstance(value, list):
            branches[refspec] = value
        else:
            spec = spec.replace(token, stringify(value))

    paths = [spec]
    for refspec, values in branches.items():
        token = f"[{refspec}]"
        paths = [path.replace(token, stringify(value)) for value in values for path in paths]
    return paths
