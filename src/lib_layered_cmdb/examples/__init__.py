"""Starter CMDB tree used by ``generate-examples`` and the test-suite."""

from .generate import DEFAULT_ENVIRONMENT, DEFAULT_HOST_PLACEHOLDER, EXAMPLE_PATTERNS, ExampleSpec, generate_examples

__all__ = [
    "DEFAULT_ENVIRONMENT",
    "DEFAULT_HOST_PLACEHOLDER",
    "EXAMPLE_PATTERNS",
    "ExampleSpec",
    "generate_examples",
]
