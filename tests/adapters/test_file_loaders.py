from __future__ import annotations

from pathlib import Path

import pytest

from lib_layered_cmdb.adapters.file_loaders.structured import ABSENT, CachingFileLoader, cache_key, parse_yaml
from lib_layered_cmdb.adapters.templating.jinja import SYNTAXES, JinjaTemplateRenderer, PassthroughRenderer
from lib_layered_cmdb.domain.errors import InvalidFormat


class CountingLoader(CachingFileLoader):
    """Loader that records every filesystem read."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.reads: list[str] = []

    def _read(self, path: str) -> str:
        self.reads.append(path)
        return super()._read(path)


def test_each_path_is_read_once(tmp_path: Path) -> None:
    path = tmp_path / "web1.yml"
    path.write_text("db: a\n", encoding="utf-8")
    loader = CountingLoader()
    first = loader.load(str(path), {})
    second = loader.load(str(path), {"hostname": "ignored"})
    assert first == second == {"db": "a"}
    assert loader.reads == [str(path)]


def test_cache_outlives_file_changes(tmp_path: Path) -> None:
    path = tmp_path / "web1.yml"
    path.write_text("db: a\n", encoding="utf-8")
    loader = CachingFileLoader()
    loader.load(str(path), {})
    path.write_text("db: changed\n", encoding="utf-8")
    assert loader.load(str(path), {}) == {"db": "a"}


def test_missing_files_are_remembered(tmp_path: Path) -> None:
    missing = tmp_path / "missing.yml"
    loader = CountingLoader()
    assert loader.load(str(missing), {}) is None
    missing.write_text("db: late\n", encoding="utf-8")
    assert loader.load(str(missing), {}) is None
    assert loader.reads == [str(missing)]
    assert loader.loaded_paths == (str(missing),)
    assert loader._loaded[str(missing)] is ABSENT


def test_malformed_yaml_raises_and_is_not_cached(tmp_path: Path) -> None:
    path = tmp_path / "broken.yml"
    path.write_text("db: [unclosed\n", encoding="utf-8")
    loader = CachingFileLoader()
    with pytest.raises(InvalidFormat, match="Invalid YAML"):
        loader.load(str(path), {})
    assert loader.loaded_paths == ()
    path.write_text("db: fixed\n", encoding="utf-8")
    assert loader.load(str(path), {}) == {"db": "fixed"}


def test_non_mapping_root_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "list.yml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(InvalidFormat, match="did not produce a mapping"):
        CachingFileLoader().load(str(path), {})


def test_empty_yaml_yields_empty_mapping(tmp_path: Path) -> None:
    path = tmp_path / "empty.yml"
    path.write_text("# nothing here\n", encoding="utf-8")
    assert CachingFileLoader().load(str(path), {}) == {}


def test_content_without_trailing_newline(tmp_path: Path) -> None:
    path = tmp_path / "tight.yml"
    path.write_bytes(b"db: a")
    assert CachingFileLoader().load(str(path), {}) == {"db": "a"}


def test_content_is_templated_before_parsing(tmp_path: Path) -> None:
    path = tmp_path / "default.yml"
    path.write_text("motd: Welcome to {{ hostname }} ({{ environment }})\n", encoding="utf-8")
    data = CachingFileLoader().load(str(path), {"hostname": "web1", "environment": "prod"})
    assert data == {"motd": "Welcome to web1 (prod)"}


def test_template_toolkit_content(tmp_path: Path) -> None:
    path = tmp_path / "default.yml"
    path.write_text("motd: Welcome to [% hostname %]\n", encoding="utf-8")
    loader = CachingFileLoader(JinjaTemplateRenderer("template_toolkit"))
    assert loader.load(str(path), {"hostname": "web1"}) == {"motd": "Welcome to web1"}


def test_passthrough_renderer_keeps_braces(tmp_path: Path) -> None:
    path = tmp_path / "default.yml"
    path.write_text("motd: '{{ hostname }}'\n", encoding="utf-8")
    assert CachingFileLoader(PassthroughRenderer()).load(str(path), {"hostname": "web1"}) == {
        "motd": "{{ hostname }}"
    }


def test_json_and_toml_by_suffix(tmp_path: Path) -> None:
    json_path = tmp_path / "web1.json"
    json_path.write_text('{"feature": true}', encoding="utf-8")
    toml_path = tmp_path / "web1.toml"
    toml_path.write_text("[db]\nport = 5432\n", encoding="utf-8")
    loader = CachingFileLoader()
    assert loader.load(str(json_path), {}) == {"feature": True}
    assert loader.load(str(toml_path), {}) == {"db": {"port": 5432}}


def test_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "web1.json"
    path.write_text("{invalid}", encoding="utf-8")
    with pytest.raises(InvalidFormat, match="Invalid JSON"):
        CachingFileLoader().load(str(path), {})


def test_unknown_suffix_is_parsed_as_yaml(tmp_path: Path) -> None:
    path = tmp_path / "web1.cmdb"
    path.write_text("db: a\n", encoding="utf-8")
    assert CachingFileLoader().load(str(path), {}) == {"db": "a"}


def test_invalid_utf8(tmp_path: Path) -> None:
    path = tmp_path / "latin1.yml"
    path.write_bytes("name: café\n".encode("latin-1"))
    with pytest.raises(InvalidFormat, match="not valid UTF-8"):
        CachingFileLoader().load(str(path), {})


def test_parse_yaml_names_the_path() -> None:
    with pytest.raises(InvalidFormat, match="broken.yml"):
        parse_yaml("a: [", "broken.yml")


def test_two_spellings_of_one_file_share_a_cache_entry(tmp_path: Path, monkeypatch) -> None:
    (tmp_path / "prod").mkdir()
    path = tmp_path / "default.yml"
    path.write_text("pkgs: [nginx]\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    loader = CountingLoader()
    first = loader.load(str(path), {})
    assert loader.load(str(tmp_path / "prod" / ".." / "default.yml"), {}) == first
    assert loader.load("default.yml", {}) == first
    assert loader.reads == [str(path)]
    assert loader.loaded_paths == (cache_key(path),)


@pytest.mark.parametrize("syntax", SYNTAXES)
def test_shell_length_idiom_survives_templating(tmp_path: Path, syntax) -> None:
    path = tmp_path / "default.yml"
    host = "{{ hostname }}" if syntax == "mustache" else "[% hostname %]"
    path.write_text(f"check: 'test ${{#ARGS[@]}} -gt 0'\nhost: '{host}'\n", encoding="utf-8")
    data = CachingFileLoader(JinjaTemplateRenderer(syntax)).load(str(path), {"hostname": "web1"})
    assert data == {"check": "test ${#ARGS[@]} -gt 0", "host": "web1"}
