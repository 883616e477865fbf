from __future__ import annotations

from pathlib import Path

import yaml

from lib_layered_cmdb.examples import DEFAULT_HOST_PLACEHOLDER, EXAMPLE_PATTERNS, generate_examples


def test_generate_examples_idempotent(tmp_path: Path) -> None:
    written_first = generate_examples(tmp_path)
    assert written_first
    # second call without force should not overwrite
    written_second = generate_examples(tmp_path)
    assert written_second == []


def test_generate_examples_force_overwrites(tmp_path: Path) -> None:
    paths = generate_examples(tmp_path)
    target = paths[0]
    original = target.read_text(encoding="utf-8")
    target.write_text("override", encoding="utf-8")
    generate_examples(tmp_path, force=True)
    assert target.read_text(encoding="utf-8") == original


def test_generate_examples_layout(tmp_path: Path) -> None:
    paths = generate_examples(tmp_path, environment="staging", server="db1")
    relative = {p.relative_to(tmp_path).as_posix() for p in paths}
    assert relative == {
        "default.yml",
        "staging/default.yml",
        "staging/db1.yml",
        "roles/base.yml",
        "roles/monitoring.yml",
        "roles/web.yml",
    }


def test_generate_examples_defaults(tmp_path: Path) -> None:
    paths = generate_examples(tmp_path)
    assert tmp_path / "production" / f"{DEFAULT_HOST_PLACEHOLDER}.yml" in paths


def test_host_file_is_plain_yaml(tmp_path: Path) -> None:
    generate_examples(tmp_path, environment="prod", server="web1")
    data = yaml.safe_load((tmp_path / "prod" / "web1.yml").read_text(encoding="utf-8"))
    assert data == {"log_level": "debug", "roles": ["base", "monitoring", "web"]}


def test_example_patterns_reference_roles() -> None:
    assert "roles/[roles].yml" in EXAMPLE_PATTERNS
    assert EXAMPLE_PATTERNS[-1] == "default.yml"
