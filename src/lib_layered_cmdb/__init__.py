"""Public package surface for layered CMDB lookups.

``YAMLCMDB`` is the entry point; the merge, expansion and templating helpers
are re-exported for callers that compose their own lookup flows.
"""

from __future__ import annotations

from .adapters.context.default import EnvSettings, EnvVarEnvironment, StaticEnvironment, StaticFacts, StaticSettings
from .adapters.file_loaders.structured import CachingFileLoader
from .adapters.path_resolvers.default import (
    DEFAULT_CMDB_PATHS,
    CascadePathResolver,
    ComputedPathResolver,
    ExplicitPathResolver,
)
from .adapters.templating.jinja import JinjaTemplateRenderer, PassthroughRenderer
from .application.merge import BUILTIN_BEHAVIORS, DEFAULT_BEHAVIOR, MergeBehavior, Merger, ValueKind, merge
from .application.references import expand_references
from .application.templating import render_path
from .core import YAMLCMDB, SourceLoadError, create_cmdb
from .domain.errors import CMDBError, InvalidFormat, InvalidMergeBehavior, InvalidOption, NotFound
from .examples import generate_examples
from .observability import bind_trace_id, get_logger, lookup_trace

__all__ = [
    "BUILTIN_BEHAVIORS",
    "CMDBError",
    "CachingFileLoader",
    "CascadePathResolver",
    "ComputedPathResolver",
    "DEFAULT_BEHAVIOR",
    "DEFAULT_CMDB_PATHS",
    "EnvSettings",
    "EnvVarEnvironment",
    "ExplicitPathResolver",
    "InvalidFormat",
    "InvalidMergeBehavior",
    "InvalidOption",
    "JinjaTemplateRenderer",
    "MergeBehavior",
    "Merger",
    "NotFound",
    "PassthroughRenderer",
    "SourceLoadError",
    "StaticEnvironment",
    "StaticFacts",
    "StaticSettings",
    "ValueKind",
    "YAMLCMDB",
    "bind_trace_id",
    "create_cmdb",
    "expand_references",
    "generate_examples",
    "get_logger",
    "lookup_trace",
    "merge",
    "render_path",
]
