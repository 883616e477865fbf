"""Application-layer ports describing collaborator responsibilities.

Purpose
-------
Define the structural contracts the lookup orchestrator depends on so adapters
(filesystem, Jinja2, process environment) stay replaceable.

Contents
--------
* :class:`PathResolver` – yields the ordered candidate path patterns.
* :class:`SourceLoader` – loads and memoises one CMDB source.
* :class:`TemplateRenderer` – renders source file content with variables.
* :class:`EnvironmentProvider` – names the current environment.
* :class:`SettingsProvider` – exposes the flat global settings.
* :class:`FactsProvider` – exposes per-server facts.

System Role
-----------
These protocols keep :mod:`lib_layered_cmdb.core` free of ambient global
state: every value that reaches a VariableContext arrives through one of them.
"""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable


@runtime_checkable
class PathResolver(Protocol):
    """Produce candidate path patterns, most specific first.

    Ordering is precedence: earlier entries win conflicts under the default
    merge behaviour.
    """

    def candidates(self, cmdb: Any, item: str | None, server: str) -> list[str]:
        """Return the ordered candidate patterns for *server*."""


@runtime_checkable
class SourceLoader(Protocol):
    """Load a single CMDB source file, memoising positive and negative results."""

    def load(self, path: str, variables: Mapping[str, object]) -> Mapping[str, Any] | None:
        """Return the parsed tree for *path* or ``None`` when the file does not exist."""


@runtime_checkable
class TemplateRenderer(Protocol):
    """Render raw source text before it is parsed."""

    def render(self, text: str, variables: Mapping[str, object], *, path: str | None = None) -> str:
        """Return *text* with template expressions substituted from *variables*."""


@runtime_checkable
class EnvironmentProvider(Protocol):
    """Return the current environment identifier (``production``, ``staging``...)."""

    def environment(self) -> str:
        """Return the environment name."""


@runtime_checkable
class SettingsProvider(Protocol):
    """Return the full current configuration as a flat key/value mapping."""

    def settings(self) -> Mapping[str, object]:
        """Return a flat mapping merged into every VariableContext."""


@runtime_checkable
class FactsProvider(Protocol):
    """Return facts gathered for a server (operating system, role...)."""

    def facts(self, server: str) -> Mapping[str, object]:
        """Return a flat mapping of facts about *server*."""
