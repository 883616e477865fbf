"""Adapter contract tests for the default ports implementation.

Verify the default adapters keep satisfying the application-layer ports defined
in ``src/lib_layered_cmdb/application/ports.py`` so the orchestrator can swap
them freely.
"""

from __future__ import annotations

import pytest

from lib_layered_cmdb.adapters.context.default import (
    EnvSettings,
    EnvVarEnvironment,
    StaticEnvironment,
    StaticFacts,
    StaticSettings,
)
from lib_layered_cmdb.adapters.file_loaders.structured import CachingFileLoader
from lib_layered_cmdb.adapters.path_resolvers.default import (
    CascadePathResolver,
    ComputedPathResolver,
    ExplicitPathResolver,
)
from lib_layered_cmdb.adapters.templating.jinja import JinjaTemplateRenderer, PassthroughRenderer
from lib_layered_cmdb.application import ports
from lib_layered_cmdb.core import YAMLCMDB
from tests.support import create_cmdb_sandbox


@pytest.fixture()
def sandbox(tmp_path):
    """Provide the prod/web1 cascade so adapters are validated against real files."""

    return create_cmdb_sandbox(tmp_path).with_cascade()


@pytest.mark.parametrize(
    "resolver",
    [
        CascadePathResolver("cmdb"),
        ExplicitPathResolver(["cmdb/default.yml"]),
        ComputedPathResolver(lambda cmdb, item, server: ["cmdb/default.yml"]),
    ],
)
def test_path_resolvers_contract(resolver) -> None:
    assert isinstance(resolver, ports.PathResolver)


def test_caching_loader_contract(sandbox) -> None:
    loader = CachingFileLoader()
    assert isinstance(loader, ports.SourceLoader)
    assert loader.load(sandbox.path("prod/web1.yml"), {}) == {"db": "a"}


@pytest.mark.parametrize("renderer", [JinjaTemplateRenderer(), PassthroughRenderer()])
def test_renderers_contract(renderer) -> None:
    assert isinstance(renderer, ports.TemplateRenderer)


def test_context_providers_contract() -> None:
    assert isinstance(StaticEnvironment("prod"), ports.EnvironmentProvider)
    assert isinstance(EnvVarEnvironment(environ={}), ports.EnvironmentProvider)
    assert isinstance(StaticSettings(), ports.SettingsProvider)
    assert isinstance(EnvSettings(environ={}), ports.SettingsProvider)
    assert isinstance(StaticFacts(), ports.FactsProvider)


def test_orchestrator_satisfies_environment_port(sandbox) -> None:
    cmdb = YAMLCMDB(str(sandbox.root), environment="prod")
    assert isinstance(cmdb, ports.EnvironmentProvider)
    assert cmdb.get(None, "web1") == {"db": "a", "cache": "x", "ntp": "pool.ntp.org"}
