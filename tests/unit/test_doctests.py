"""Run the examples embedded in module docstrings."""

from __future__ import annotations

import doctest
import importlib

import pytest

MODULES = [
    "lib_layered_cmdb.adapters.context.default",
    "lib_layered_cmdb.adapters.file_loaders.structured",
    "lib_layered_cmdb.adapters.path_resolvers.default",
    "lib_layered_cmdb.adapters.templating.jinja",
    "lib_layered_cmdb.application.merge",
    "lib_layered_cmdb.application.references",
    "lib_layered_cmdb.application.templating",
    "lib_layered_cmdb.core",
    "lib_layered_cmdb.examples.generate",
    "lib_layered_cmdb.observability",
]


@pytest.mark.parametrize("name", MODULES)
def test_module_doctests(name: str) -> None:
    module = importlib.import_module(name)
    result = doctest.testmod(module, optionflags=doctest.ELLIPSIS)
    assert result.failed == 0
