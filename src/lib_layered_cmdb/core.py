"""Composition root for ``lib_layered_cmdb``.

Purpose
-------
Provide the lookup orchestrator that turns an item key and a server identity
into resolved CMDB data. It wires the path strategy, the Path Templater, the
Reference Expander, the caching Source Loader and the Merge Engine.

Contents
--------
* :class:`SourceLoadError` – a CMDB source was malformed; the lookup aborted.
* :class:`YAMLCMDB` – the orchestrator (``get``, ``get_all``, ``candidates``).
* :func:`create_cmdb` – builds a CMDB provider by type name.

System Role
-----------
Lookup flow for one ``get`` call:

1. the path strategy yields candidate patterns, most specific first;
2. each pattern is rendered with the VariableContext (settings, facts,
   environment, server);
3. each rendered pattern is expanded against the data merged so far;
4. every concrete path is loaded (memoised) and merged into the accumulator,
   the accumulator being the ``base`` side of the merge; a file reached
   twice in one lookup (under any spelling of its path) contributes once.

Missing files are skipped silently; malformed ones raise
:class:`SourceLoadError`.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Final

from .adapters.context.default import (
    EnvVarEnvironment,
    StaticEnvironment,
    StaticFacts,
    StaticSettings,
    build_variables,
)
from .adapters.file_loaders.structured import CachingFileLoader, cache_key
from .adapters.path_resolvers.default import DEFAULT_CMDB_PATHS, DEFAULT_EXTENSION, path_resolver_for
from .application.merge import BUILTIN_BEHAVIORS, DEFAULT_BEHAVIOR, MergeBehavior, Merger, resolve_behavior
from .application.ports import (
    EnvironmentProvider,
    FactsProvider,
    SettingsProvider,
    SourceLoader,
    TemplateRenderer,
)
from .application.references import expand_references
from .application.templating import placeholders, render_path
from .domain.errors import CMDBError, InvalidFormat, InvalidMergeBehavior, InvalidOption, NotFound
from .observability import log_debug, log_info, lookup_trace, make_event


class SourceLoadError(CMDBError):
    """Raised when a CMDB source cannot be templated or parsed.

    Wraps :class:`InvalidFormat` with the offending path so callers can catch
    :class:`CMDBError` for every library failure. A lookup that raises it has
    produced no partial result.
    """


class YAMLCMDB:
    """Layered CMDB backed by structured files (YAML by default).

    Parameters
    ----------
    path:
        Path strategy, fixed for the lifetime of the instance: a base directory
        (four-tier cascade), a list of patterns, or a callable
        ``func(cmdb, item, server) -> list[str]``.
    merge_behavior:
        ``None`` for first-found-wins, the name of a built-in behaviour, a
        :class:`MergeBehavior`, or a user-defined table.
    environment:
        Environment name or provider; defaults to
        :class:`~lib_layered_cmdb.adapters.context.default.EnvVarEnvironment`.
    settings:
        Global settings mapping or provider merged into every VariableContext.
    facts:
        Per-server facts mapping or provider (``operatingsystem`` etc.).
    renderer:
        Content templating collaborator used by the default loader.
    loader:
        Source loader replacing the default :class:`CachingFileLoader`; it owns
        the per-instance cache.
    extension:
        File extension used by the cascade strategy.

    Examples
    --------
    >>> from pathlib import Path
    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> root = Path(tmp.name)
    >>> (root / "prod").mkdir()
    >>> _ = (root / "prod" / "web1.yml").write_text("db: a\\n", encoding="utf-8")
    >>> _ = (root / "prod" / "default.yml").write_text("db: b\\ncache: x\\n", encoding="utf-8")
    >>> cmdb = YAMLCMDB(str(root), environment="prod")
    >>> cmdb.get(None, "web1")
    {'db': 'a', 'cache': 'x'}
    >>> cmdb.get("nonexistent_key", "web1") is None
    True
    >>> tmp.cleanup()
    """

    def __init__(
        self,
        path: Any,
        merge_behavior: Any = None,
        *,
        environment: str | EnvironmentProvider | None = None,
        settings: Mapping[str, object] | SettingsProvider | None = None,
        facts: Mapping[str, object] | FactsProvider | None = None,
        renderer: TemplateRenderer | None = None,
        loader: SourceLoader | None = None,
        extension: str = DEFAULT_EXTENSION,
    ) -> None:
        self.path_resolver = path_resolver_for(path, extension=extension)
        self.merge_behavior: MergeBehavior = resolve_behavior(merge_behavior)
        self._merger = Merger(self.merge_behavior)
        self._environment = _environment_provider(environment)
        self._settings = _settings_provider(settings)
        self._facts = _facts_provider(facts)
        self.loader = loader if loader is not None else CachingFileLoader(renderer)

    def environment(self) -> str:
        """Return the current environment name."""

        return self._environment.environment()

    def variables(self, server: str) -> dict[str, object]:
        """Return the VariableContext used for *server*'s paths and source content."""

        return build_variables(self._settings.settings(), self._facts.facts(server), self.environment(), server)

    def candidates(self, item: str | None, server: str) -> list[str]:
        """Return the rendered candidate patterns for *server*, most specific first.

        Bracket references are still unexpanded; they depend on the data merged
        during :meth:`get`.
        """

        return self._candidates(item, server, self.variables(server))

    def get(self, item: str | None, server: str) -> Any:
        """Resolve CMDB data for *server*.

        Returns the full merged mapping when *item* is empty, otherwise the value
        stored under the top-level key *item* or ``None`` when no source defines
        it.

        Raises
        ------
        SourceLoadError
            When a candidate source is malformed.
        InvalidMergeBehavior
            When a user-defined MAPPING/MAPPING cell turns the accumulator into
            something other than a mapping.
        """

        with lookup_trace():
            merged = self._resolve(item, server)
            log_info(
                "cmdb_lookup_complete",
                **make_event("lookup", None, {"server": server, "item": item, "keys": len(merged)}),
            )
            if not item:
                return merged
            if item not in merged:
                log_debug("cmdb_item_missing", **make_event("lookup", None, {"server": server, "item": item}))
                return None
            return merged[item]

    def get_all(self, server: str) -> dict[str, Any]:
        """Return the full merged mapping for *server*."""

        return self.get(None, server)

    def _resolve(self, item: str | None, server: str) -> dict[str, Any]:
        variables = self.variables(server)
        merged: dict[str, Any] = {}
        seen: set[str] = set()
        for filespec in self._candidates(item, server, variables):
            for path in expand_references(filespec, merged):
                # one contribution per file, however its path is spelled
                key = cache_key(path)
                if key in seen:
                    continue
                seen.add(key)
                tree = self._load(path, variables)
                if tree is None:
                    continue
                merged = self._merger.merge(merged, tree)
                if not isinstance(merged, Mapping):
                    raise InvalidMergeBehavior(
                        f"Merge behavior {self.merge_behavior.name!r} must return a mapping when merging two "
                        f"mappings, got {type(merged).__name__} after {path}"
                    )
                log_debug("cmdb_source_merged", **make_event("merge", path, {"keys": len(tree)}))
        return merged

    def _candidates(self, item: str | None, server: str, variables: Mapping[str, object]) -> list[str]:
        patterns = self.path_resolver.candidates(self, item, server)
        rendered = [render_path(pattern, variables) for pattern in patterns]
        unresolved = sorted({name for path in rendered for name in placeholders(path)})
        log_debug(
            "cmdb_candidates",
            **make_event("candidates", None, {"server": server, "paths": rendered, "unresolved": unresolved}),
        )
        return rendered

    def _load(self, path: str, variables: Mapping[str, object]) -> Any:
        try:
            return self.loader.load(path, variables)
        except InvalidFormat as exc:
            log_debug("cmdb_source_error", **make_event("load", path, {"error": str(exc)}))
            raise SourceLoadError(f"Failed to load CMDB source {path}: {exc}") from exc


def _environment_provider(value: str | EnvironmentProvider | None) -> EnvironmentProvider:
    if value is None:
        return EnvVarEnvironment()
    if isinstance(value, str):
        return StaticEnvironment(value)
    return value


def _settings_provider(value: Mapping[str, object] | SettingsProvider | None) -> SettingsProvider:
    if value is None or isinstance(value, Mapping):
        return StaticSettings(value)
    return value


def _facts_provider(value: Mapping[str, object] | FactsProvider | None) -> FactsProvider:
    if value is None or isinstance(value, Mapping):
        return StaticFacts(value)
    return value


# Registry of CMDB provider types; the type name is matched case-insensitively.
_PROVIDERS: Final[dict[str, Callable[..., YAMLCMDB]]] = {
    "YAML": YAMLCMDB,
}


def create_cmdb(type: str = "YAML", **options: Any) -> YAMLCMDB:  # noqa: A002 - mirrors the option name
    """Build a CMDB provider of the given *type* with construction *options*.

    Examples
    --------
    >>> create_cmdb(path=list(DEFAULT_CMDB_PATHS), environment="prod").candidates(None, "web1")[2]
    'cmdb/prod/web1.yml'
    >>> create_cmdb("LDAP", path="cmdb")
    Traceback (most recent call last):
    ...
    lib_layered_cmdb.domain.errors.InvalidOption: Unknown CMDB type 'LDAP'; expected one of: YAML
    """

    try:
        factory = _PROVIDERS[type.upper()]
    except KeyError as exc:
        raise InvalidOption(f"Unknown CMDB type {type!r}; expected one of: {', '.join(_PROVIDERS)}") from exc
    return factory(**options)


__all__ = [
    "BUILTIN_BEHAVIORS",
    "CMDBError",
    "DEFAULT_BEHAVIOR",
    "DEFAULT_CMDB_PATHS",
    "InvalidFormat",
    "InvalidMergeBehavior",
    "InvalidOption",
    "MergeBehavior",
    "NotFound",
    "SourceLoadError",
    "YAMLCMDB",
    "create_cmdb",
]
