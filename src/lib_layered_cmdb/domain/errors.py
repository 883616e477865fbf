"""Domain-level exception hierarchy.

Purpose
-------
Expose the error taxonomy shared by adapters, the lookup orchestrator, and
consuming applications. The hierarchy lives in the domain layer so every outer
layer can depend on it.

Contents
--------
* :class:`CMDBError` – umbrella base class for all CMDB failures.
* :class:`InvalidFormat` – a source file could not be templated or parsed.
* :class:`NotFound` – an optional resource is missing.
* :class:`InvalidOption` – a construction option has an unsupported shape.
* :class:`InvalidMergeBehavior` – a merge policy name or table is unusable.

System Role
-----------
Missing CMDB files are expected and never surface as exceptions at the
orchestrator level. Malformed sources are fatal: the orchestrator wraps
:class:`InvalidFormat` in ``SourceLoadError`` and lets it propagate.
"""

from __future__ import annotations


class CMDBError(Exception):
    """Base type for all exceptions emitted by ``lib_layered_cmdb``."""


class InvalidFormat(CMDBError):
    """Raised when a CMDB source cannot be templated or parsed into a mapping.

    Typical Sources
    ---------------
    :mod:`yaml`, :mod:`json` and :mod:`tomllib` decode errors, Jinja2 syntax
    errors in file content, and documents whose root is not a mapping.
    """


class NotFound(CMDBError):
    """Represents missing-but-optional resources (files, directories, etc.).

    The source loader raises it internally and converts it into a negative
    cache entry; callers of the orchestrator never see it.
    """


class InvalidOption(CMDBError):
    """Signifies that a construction option (path strategy, syntax, type) is unusable."""


class InvalidMergeBehavior(InvalidOption):
    """Raised for unknown merge policy names or incomplete policy tables."""
