"""Candidate path strategies.

Purpose
-------
Implement the :class:`lib_layered_cmdb.application.ports.PathResolver` protocol
in its three variants and pick exactly one at construction time, so the
orchestrator never inspects the ``path`` option again.

Contents
--------
* :class:`CascadePathResolver` – fixed four-tier cascade under a base directory.
* :class:`ExplicitPathResolver` – caller-supplied literal patterns.
* :class:`ComputedPathResolver` – caller-supplied function.
* :data:`DEFAULT_CMDB_PATHS` – the six-tier pattern preset.
* :func:`path_resolver_for` – option → resolver factory.

System Role
-----------
Feeds ordered candidate patterns into :meth:`lib_layered_cmdb.core.YAMLCMDB.candidates`.
Order is precedence: earlier candidates win under the default merge behaviour.
Patterns may still contain ``{placeholder}`` and ``[reference]`` tokens.
"""

from __future__ import annotations

import os
from typing import Any, Callable, Final, Iterable

from ...domain.errors import InvalidOption
from ...observability import log_debug

DEFAULT_EXTENSION: Final[str] = ".yml"

DEFAULT_CMDB_PATHS: Final[tuple[str, ...]] = (
    "cmdb/{operatingsystem}/{hostname}.yml",
    "cmdb/{operatingsystem}/default.yml",
    "cmdb/{environment}/{hostname}.yml",
    "cmdb/{environment}/default.yml",
    "cmdb/{hostname}.yml",
    "cmdb/default.yml",
)
"""Preset for :class:`ExplicitPathResolver`: OS, environment, host, then global defaults."""

PathFunction = Callable[[Any, "str | None", str], Iterable[str]]


class CascadePathResolver:
    """Resolve the fixed four-tier cascade rooted at *root*.

    Examples
    --------
    >>> from types import SimpleNamespace
    >>> lookup = SimpleNamespace(environment=lambda: "prod")
    >>> CascadePathResolver("cmdb").candidates(lookup, None, "web1")
    ['cmdb/prod/web1.yml', 'cmdb/prod/default.yml', 'cmdb/web1.yml', 'cmdb/default.yml']
    """

    def __init__(self, root: str | os.PathLike[str], *, extension: str = DEFAULT_EXTENSION) -> None:
        self.root = os.fspath(root)
        self.extension = _normalize_extension(extension)

    def candidates(self, cmdb: Any, item: str | None, server: str) -> list[str]:
        env = cmdb.environment()
        root = self.root.rstrip("/\\") or self.root
        ext = self.extension
        paths = [
            f"{root}/{env}/{server}{ext}",
            f"{root}/{env}/default{ext}",
            f"{root}/{server}{ext}",
            f"{root}/default{ext}",
        ]
        log_debug("path_candidates", stage="candidates", path=root, strategy="cascade", count=len(paths))
        return paths


class ExplicitPathResolver:
    """Return caller-supplied patterns in their declared order."""

    def __init__(self, patterns: Iterable[str | os.PathLike[str]]) -> None:
        self.patterns = tuple(os.fspath(pattern) for pattern in patterns)

    def candidates(self, cmdb: Any, item: str | None, server: str) -> list[str]:
        return list(self.patterns)


class ComputedPathResolver:
    """Delegate to ``func(cmdb, item, server)`` for every lookup."""

    def __init__(self, func: PathFunction) -> None:
        self.func = func

    def candidates(self, cmdb: Any, item: str | None, server: str) -> list[str]:
        """Call the function and validate that it produced an iterable of paths.

        Raises
        ------
        InvalidOption
            When the function returns a plain string or a non-iterable.
        """

        produced = self.func(cmdb, item, server)
        if isinstance(produced, (str, bytes)) or not isinstance(produced, Iterable):
            raise InvalidOption(f"Computed CMDB path function must return a list of paths, got {produced!r}")
        return [os.fspath(path) for path in produced]


def path_resolver_for(option: object, *, extension: str = DEFAULT_EXTENSION) -> Any:
    """Select the path strategy for the ``path`` construction option.

    A string or path-like object enables the cascade, a list or tuple the
    explicit patterns, a callable the computed variant. Objects that already
    implement ``candidates`` are returned unchanged.

    Examples
    --------
    >>> type(path_resolver_for("cmdb")).__name__
    'CascadePathResolver'
    >>> type(path_resolver_for(["cmdb/{hostname}.yml"])).__name__
    'ExplicitPathResolver'
    >>> type(path_resolver_for(lambda cmdb, item, server: [])).__name__
    'ComputedPathResolver'
    """

    if isinstance(option, (str, os.PathLike)):
        return CascadePathResolver(option, extension=extension)  # type: ignore[arg-type]
    if isinstance(option, (list, tuple)):
        return ExplicitPathResolver(option)
    if hasattr(option, "candidates"):
        return option
    if callable(option):
        return ComputedPathResolver(option)  # type: ignore[arg-type]
    raise InvalidOption(f"Unsupported CMDB path option: {option!r}")


def _normalize_extension(extension: str) -> str:
    """Return *extension* with exactly one leading dot.

    >>> _normalize_extension("yaml"), _normalize_extension(".yml")
    ('.yaml', '.yml')
    """

    return "." + extension.lstrip(".")
