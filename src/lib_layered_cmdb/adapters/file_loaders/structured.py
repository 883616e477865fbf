"""Memoising CMDB source loader.

Purpose
-------
Turn one CMDB source file into a configuration tree: read it, template its
content with the lookup variables, parse it, and remember the outcome for the
lifetime of the owning CMDB instance. Missing files are remembered too, so a
path is never read or parsed twice.

Contents
--------
* :data:`ABSENT` – negative cache marker for files that do not exist.
* :func:`parse_yaml` / :func:`parse_json` / :func:`parse_toml` – parsers keyed
  by file suffix (YAML is the fallback for unknown suffixes).
* :class:`CachingFileLoader` – the loader and its per-instance cache.

System Role
-----------
Implements :class:`lib_layered_cmdb.application.ports.SourceLoader` for
:class:`lib_layered_cmdb.core.YAMLCMDB`. Parse and template failures raise
:class:`~lib_layered_cmdb.domain.errors.InvalidFormat`, are never cached, and
abort the lookup.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Final, Mapping

try:  # Python >= 3.11
    import tomllib
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib  # type: ignore[no-redef]

import yaml

from ...application.ports import TemplateRenderer
from ...domain.errors import InvalidFormat, NotFound
from ...observability import log_debug, log_error
from ..templating.jinja import JinjaTemplateRenderer

Parser = Callable[[str, str], Mapping[str, Any]]


class _Absent:
    """Negative cache marker."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "ABSENT"


ABSENT: Final = _Absent()


def _ensure_mapping(data: object, *, path: str) -> Mapping[str, Any]:
    """Ensure *data* behaves like a mapping, otherwise raise ``InvalidFormat``.

    Examples
    --------
    >>> _ensure_mapping({"key": 1}, path="demo")
    {'key': 1}
    >>> _ensure_mapping([1, 2], path="demo")
    Traceback (most recent call last):
    ...
    lib_layered_cmdb.domain.errors.InvalidFormat: File demo did not produce a mapping
    """

    if not isinstance(data, Mapping):
        raise InvalidFormat(f"File {path} did not produce a mapping")
    return data


def parse_yaml(text: str, path: str) -> Mapping[str, Any]:
    """Parse YAML *text*; an empty document yields ``{}``.

    >>> parse_yaml("db:\\n  host: a\\n", "demo.yml")
    {'db': {'host': 'a'}}
    """

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        log_error("cmdb_file_invalid", stage="parse", path=path, format="yaml", error=str(exc))
        raise InvalidFormat(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        data = {}
    return _ensure_mapping(data, path=path)


def parse_json(text: str, path: str) -> Mapping[str, Any]:
    """Parse JSON *text*."""

    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        log_error("cmdb_file_invalid", stage="parse", path=path, format="json", error=str(exc))
        raise InvalidFormat(f"Invalid JSON in {path}: {exc}") from exc
    return _ensure_mapping(data, path=path)


def parse_toml(text: str, path: str) -> Mapping[str, Any]:
    """Parse TOML *text*."""

    try:
        data = tomllib.loads(text)
    except tomllib.TOMLDecodeError as exc:
        log_error("cmdb_file_invalid", stage="parse", path=path, format="toml", error=str(exc))
        raise InvalidFormat(f"Invalid TOML in {path}: {exc}") from exc
    return _ensure_mapping(data, path=path)


def cache_key(path: str | os.PathLike[str]) -> str:
    """Return the absolute, normalised form of *path* used as the cache key.

    Symlinks are not resolved; only ``.``/``..`` segments and the working
    directory are folded in.

    >>> cache_key("/srv/cmdb/prod/../default.yml")
    '/srv/cmdb/default.yml'
    """

    return os.path.abspath(os.fspath(path))


DEFAULT_PARSERS: Final[Mapping[str, Parser]] = MappingProxyType(
    {
        ".yml": parse_yaml,
        ".yaml": parse_yaml,
        ".json": parse_json,
        ".toml": parse_toml,
    }
)


class CachingFileLoader:
    """Load CMDB sources with a per-instance, never-invalidated cache.

    Parameters
    ----------
    renderer:
        Content templating collaborator; defaults to mustache-style Jinja2.
    parsers:
        Optional suffix → parser mapping replacing :data:`DEFAULT_PARSERS`.
        Suffixes without a parser fall back to YAML.
    """

    def __init__(
        self,
        renderer: TemplateRenderer | None = None,
        *,
        parsers: Mapping[str, Parser] | None = None,
    ) -> None:
        self._renderer = renderer or JinjaTemplateRenderer()
        self._parsers = dict(parsers if parsers is not None else DEFAULT_PARSERS)
        self._loaded: dict[str, Mapping[str, Any] | _Absent] = {}

    @property
    def loaded_paths(self) -> tuple[str, ...]:
        """Absolute paths memoised so far (loaded or known to be missing), in load order."""

        return tuple(self._loaded)

    def load(self, path: str, variables: Mapping[str, object]) -> Mapping[str, Any] | None:
        """Return the tree for *path*, or ``None`` when the file does not exist.

        The first call for a file decides its fate for the lifetime of this
        loader; later calls return the memoised result without touching the
        filesystem, whatever *variables* they pass. Spellings of the same file
        (relative, absolute, with ``..`` segments) share one entry, see
        :func:`cache_key`.

        Examples
        --------
        >>> from tempfile import TemporaryDirectory
        >>> tmp = TemporaryDirectory()
        >>> source = Path(tmp.name) / "web1.yml"
        >>> _ = source.write_text("name: {{ hostname }}", encoding="utf-8")
        >>> loader = CachingFileLoader()
        >>> loader.load(str(source), {"hostname": "web1"})
        {'name': 'web1'}
        >>> loader.load(str(Path(tmp.name) / "missing.yml"), {}) is None
        True
        >>> tmp.cleanup()
        """

        key = cache_key(path)
        if key in self._loaded:
            cached = self._loaded[key]
            log_debug("cmdb_file_cached", stage="load", path=key, absent=cached is ABSENT)
            return None if cached is ABSENT else cached  # type: ignore[return-value]

        try:
            text = self._read(key)
        except NotFound:
            log_debug("cmdb_file_missing", stage="load", path=key)
            self._loaded[key] = ABSENT
            return None

        # sources without a final newline trip some parsers
        rendered = self._renderer.render(text + "\n", variables, path=key)
        data = self._parser_for(key)(rendered, key)
        self._loaded[key] = data
        log_debug("cmdb_file_loaded", stage="load", path=key, keys=len(data))
        return data

    def _read(self, path: str) -> str:
        """Read *path* as UTF-8 text, raising :class:`NotFound` when the file is missing."""

        file_path = Path(path)
        if not file_path.is_file():
            raise NotFound(f"CMDB source not found: {path}")
        payload = file_path.read_bytes()
        log_debug("cmdb_file_read", stage="load", path=path, size=len(payload))
        try:
            return payload.decode("utf-8")
        except UnicodeDecodeError as exc:
            log_error("cmdb_file_invalid", stage="read", path=path, error=str(exc))
            raise InvalidFormat(f"CMDB source {path} is not valid UTF-8: {exc}") from exc

    def _parser_for(self, path: str) -> Parser:
        return self._parsers.get(Path(path).suffix.lower(), parse_yaml)
