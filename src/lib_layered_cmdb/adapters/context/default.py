"""Environment, settings and facts providers.

Purpose
-------
Supply the values a VariableContext is built from through explicit objects
instead of process-wide globals. Static providers serve tests and embedding
applications; the environment-variable providers serve the CLI.

Key behaviours
--------------
* ``EnvVarEnvironment`` reads ``LIB_LAYERED_CMDB_ENVIRONMENT`` (default
  ``"default"``).
* ``EnvSettings`` collects ``LIB_LAYERED_CMDB_SET_<NAME>`` variables into a flat
  mapping with lower-case names and light type coercion (bools, ints, floats,
  ``null``/``none``).
* :func:`build_variables` assembles the VariableContext with a fixed
  precedence: settings, then facts, then the identity keys.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from ...observability import log_debug

DEFAULT_ENVIRONMENT = "default"
ENVIRONMENT_VARIABLE = "LIB_LAYERED_CMDB_ENVIRONMENT"
SETTINGS_PREFIX = "LIB_LAYERED_CMDB_SET"


class StaticEnvironment:
    """Environment provider returning a fixed name."""

    def __init__(self, name: str) -> None:
        self._name = name

    def environment(self) -> str:
        return self._name


class EnvVarEnvironment:
    """Read the environment name from a process environment variable."""

    def __init__(
        self,
        *,
        variable: str = ENVIRONMENT_VARIABLE,
        default: str = DEFAULT_ENVIRONMENT,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._variable = variable
        self._default = default
        self._environ = environ if environ is not None else os.environ

    def environment(self) -> str:
        """Return the configured variable's value, or the default when unset or blank.

        >>> EnvVarEnvironment(environ={"LIB_LAYERED_CMDB_ENVIRONMENT": "prod"}).environment()
        'prod'
        >>> EnvVarEnvironment(environ={}).environment()
        'default'
        """

        value = self._environ.get(self._variable, "").strip()
        return value or self._default


class StaticSettings:
    """Settings provider backed by a fixed mapping."""

    def __init__(self, values: Mapping[str, object] | None = None) -> None:
        self._values = dict(values or {})

    def settings(self) -> Mapping[str, object]:
        return dict(self._values)


class EnvSettings:
    """Load flat settings from prefixed environment variables."""

    def __init__(self, prefix: str = SETTINGS_PREFIX, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialise the provider with a specific ``environ`` mapping for testability.

        Parameters
        ----------
        prefix:
            Variable prefix; ``_`` is appended when missing.
        environ:
            Mapping to read from. Defaults to :data:`os.environ`.
        """

        self._prefix = prefix if prefix.endswith("_") else f"{prefix}_"
        self._environ = environ if environ is not None else os.environ

    def settings(self) -> Mapping[str, object]:
        """Return every prefixed variable as ``{lower_name: coerced_value}``.

        Examples
        --------
        >>> env = {"LIB_LAYERED_CMDB_SET_DATACENTER": "fra1", "LIB_LAYERED_CMDB_SET_WORKERS": "4"}
        >>> sorted(EnvSettings(environ=env).settings().items())
        [('datacenter', 'fra1'), ('workers', 4)]
        """

        collected: dict[str, object] = {}
        for key, value in self._environ.items():
            if not key.startswith(self._prefix):
                continue
            name = key[len(self._prefix) :].lower()
            if name:
                collected[name] = coerce(value)
        log_debug("cmdb_settings_loaded", stage="settings", path=None, keys=sorted(collected))
        return collected


class StaticFacts:
    """Facts provider backed by a mapping.

    The mapping is either shared by every server (``{"operatingsystem":
    "Debian"}``) or keyed by server name when ``per_server`` is set.
    """

    def __init__(self, facts: Mapping[str, Any] | None = None, *, per_server: bool = False) -> None:
        self._facts = dict(facts or {})
        self._per_server = per_server

    def facts(self, server: str) -> Mapping[str, object]:
        if self._per_server:
            return dict(self._facts.get(server, {}))
        return dict(self._facts)


def build_variables(
    settings: Mapping[str, object],
    facts: Mapping[str, object],
    environment: str,
    server: str,
) -> dict[str, object]:
    """Assemble the VariableContext for one lookup.

    Settings come first, facts override settings, and ``environment``,
    ``server`` and ``hostname`` always carry the lookup identity.

    Examples
    --------
    >>> variables = build_variables({"environment": "x", "dc": "fra1"}, {"operatingsystem": "Debian"}, "prod", "web1")
    >>> variables["environment"], variables["hostname"], variables["operatingsystem"], variables["dc"]
    ('prod', 'web1', 'Debian', 'fra1')
    """

    variables: dict[str, object] = dict(settings)
    variables.update(facts)
    variables["environment"] = environment
    variables["server"] = server
    variables["hostname"] = server
    return variables


def coerce(value: str) -> object:
    """Coerce textual values to Python primitives where possible.

    Examples
    --------
    >>> coerce('true'), coerce('10'), coerce('3.5'), coerce('hello'), coerce('none')
    (True, 10, 3.5, 'hello', None)
    """

    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    try:
        if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
            return int(value)
        return float(value)
    except ValueError:
        return value
