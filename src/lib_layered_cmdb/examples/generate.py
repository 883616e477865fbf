"""Starter CMDB tree.

The generated tree exercises every lookup feature at once: host and
environment files override global defaults, ``default.yml`` templates the host
name into its content, and the environment files list ``roles`` that the
``roles/[roles].yml`` pattern expands into one role file per entry. Read it
back with :data:`EXAMPLE_PATTERNS` joined to the destination directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

import yaml

DEFAULT_HOST_PLACEHOLDER = "your-hostname"
DEFAULT_ENVIRONMENT = "production"

EXAMPLE_PATTERNS: tuple[str, ...] = (
    "{environment}/{hostname}.yml",
    "{environment}/default.yml",
    "roles/[roles].yml",
    "{hostname}.yml",
    "default.yml",
)
"""Candidate patterns, relative to the destination, most specific first."""

ROLE_PACKAGES: dict[str, str] = {
    "base": "openssh-server",
    "monitoring": "prometheus-node-exporter",
    "web": "nginx",
}

_GLOBAL_DEFAULTS = """\
# Global defaults shared by every host
ntp:
  servers:
    - 0.pool.ntp.org
    - 1.pool.ntp.org
motd: "Managed host {{ hostname }} ({{ environment }})"
log_level: warning
"""


@dataclass(slots=True)
class ExampleSpec:
    """One file of the starter tree: a path relative to the destination and its text."""

    relative_path: Path
    content: str


def generate_examples(
    destination: str | Path,
    *,
    environment: str = DEFAULT_ENVIRONMENT,
    server: str = DEFAULT_HOST_PLACEHOLDER,
    force: bool = False,
) -> list[Path]:
    """Write the starter tree under *destination* and return the files written.

    *environment* names the environment directory and *server* the host file.
    Files that already exist are left alone unless *force* is set, so the
    returned list only holds what this call actually wrote.

    >>> from tempfile import TemporaryDirectory
    >>> tmp = TemporaryDirectory()
    >>> generated = generate_examples(tmp.name, environment="prod", server="web1")
    >>> sorted(path.relative_to(tmp.name).as_posix() for path in generated)[:3]
    ['default.yml', 'prod/default.yml', 'prod/web1.yml']
    >>> generate_examples(tmp.name, environment="prod", server="web1")
    []
    >>> tmp.cleanup()
    """

    root = Path(destination)
    written: list[Path] = []
    for spec in _specs(environment, server):
        target = root / spec.relative_path
        if target.exists() and not force:
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(spec.content, encoding="utf-8")
        written.append(target)
    return written


def _specs(environment: str, server: str) -> Iterator[ExampleSpec]:
    yield ExampleSpec(Path("default.yml"), _GLOBAL_DEFAULTS)
    yield ExampleSpec(
        Path(environment, "default.yml"),
        _document(
            f"Defaults for every host in the {environment} environment",
            log_level="info",
            roles=["base", "monitoring"],
        ),
    )
    yield ExampleSpec(
        Path(environment, f"{server}.yml"),
        _document(
            "Host overrides (rename the file to the machine hostname)",
            log_level="debug",
            roles=list(ROLE_PACKAGES),
        ),
    )
    for role, package in ROLE_PACKAGES.items():
        yield ExampleSpec(
            Path("roles", f"{role}.yml"),
            _document(f"Packages installed by the {role} role", packages={package: "latest"}),
        )


def _document(comment: str, **data: object) -> str:
    """Render *data* as a YAML document headed by a comment line."""

    return f"# {comment}\n" + yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
