"""Placeholder substitution for CMDB path patterns.

Purpose
-------
Expand ``{name}`` tokens in candidate path patterns from a flat variable
context (environment, server, settings, facts). Substitution is tolerant:
unknown names stay in the path untouched because not every variable is
meaningful for every source file.

Contents
--------
* :func:`render_path` – substitute known placeholders.
* :func:`placeholders` – list placeholder names in order of first appearance.
* :func:`stringify` – string form shared with the reference expander.

System Role
-----------
Called by :class:`lib_layered_cmdb.core.YAMLCMDB` on every candidate before
reference expansion. Pure functions without I/O.
"""

from __future__ import annotations

import re
from typing import Mapping

_PLACEHOLDER = re.compile(r"\{([^{}\s]+)\}")


def render_path(template: str, variables: Mapping[str, object]) -> str:
    """Replace every ``{name}`` in *template* with ``variables[name]``.

    Examples
    --------
    >>> render_path("cmdb/{environment}/{hostname}.yml", {"environment": "prod", "hostname": "web1"})
    'cmdb/prod/web1.yml'
    >>> render_path("cmdb/{operatingsystem}/default.yml", {})
    'cmdb/{operatingsystem}/default.yml'
    """

    def _substitute(match: re.Match[str]) -> str:
        name = match.group(1)
        if name not in variables:
            return match.group(0)
        return stringify(variables[name])

    return _PLACEHOLDER.sub(_substitute, template)


def placeholders(template: str) -> list[str]:
    """Return the distinct placeholder names of *template* in order of appearance.

    >>> placeholders("{a}/{b}/{a}.yml")
    ['a', 'b']
    """

    return list(dict.fromkeys(_PLACEHOLDER.findall(template)))


def stringify(value: object) -> str:
    """Return the path-segment form of a scalar value.

    ``None`` becomes the empty string and booleans keep their YAML spelling.

    >>> stringify(None), stringify(True), stringify(3)
    ('', 'true', '3')
    """

    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
