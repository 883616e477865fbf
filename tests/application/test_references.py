from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from lib_layered_cmdb.application.references import UNRESOLVED, expand_references, resolve_reference


def test_unresolved_reference_is_left_verbatim() -> None:
    assert expand_references("cmdb/[missing.key].yml", {}) == ["cmdb/[missing.key].yml"]


def test_absent_tree_keeps_every_token() -> None:
    assert expand_references("cmdb/[a]/[b].yml", None) == ["cmdb/[a]/[b].yml"]


def test_pattern_without_references_is_returned_as_is() -> None:
    assert expand_references("cmdb/default.yml", {"a": 1}) == ["cmdb/default.yml"]


def test_scalar_reference_replaces_every_occurrence() -> None:
    tree = {"machine": {"role": "web"}}
    assert expand_references("cmdb/[machine.role]/[machine.role].yml", tree) == ["cmdb/web/web.yml"]


def test_mapping_reference_is_not_substituted() -> None:
    tree = {"machine": {"role": "web"}}
    assert expand_references("cmdb/[machine].yml", tree) == ["cmdb/[machine].yml"]


def test_reference_through_a_scalar_fails_open() -> None:
    tree = {"machine": "web"}
    assert expand_references("cmdb/[machine.role].yml", tree) == ["cmdb/[machine.role].yml"]


def test_empty_sequence_is_treated_as_unresolved() -> None:
    assert expand_references("roles/[roles].yml", {"roles": []}) == ["roles/[roles].yml"]


def test_sequence_reference_branches_per_element() -> None:
    tree = {"roles": ["base", "web"]}
    assert expand_references("roles/[roles].yml", tree) == ["roles/base.yml", "roles/web.yml"]


def test_two_sequences_produce_cartesian_product() -> None:
    tree = {"dcs": ["fra", "ams"], "tiers": ["a", "b", "c"]}
    paths = expand_references("[dcs]/[tiers].yml", tree)
    assert paths == ["fra/a.yml", "ams/a.yml", "fra/b.yml", "ams/b.yml", "fra/c.yml", "ams/c.yml"]


def test_mixed_resolved_and_unresolved_tokens() -> None:
    tree = {"env": "prod", "roles": ["db"]}
    assert expand_references("[env]/[roles]/[nope].yml", tree) == ["prod/db/[nope].yml"]


def test_scalar_values_use_yaml_spelling() -> None:
    tree = {"flag": True, "port": 8080, "nothing": None}
    assert expand_references("[flag]-[port]-[nothing]", tree) == ["true-8080-"]


def test_resolve_reference_results() -> None:
    tree = {"a": {"b": ["x"], "c": {"d": 1}}}
    assert resolve_reference("a.b", tree) == ["x"]
    assert resolve_reference("a.c.d", tree) == 1
    assert resolve_reference("a.c", tree) is UNRESOLVED
    assert resolve_reference("a.z", tree) is UNRESOLVED


@given(
    scalar=st.text(alphabet="abcdefgh", min_size=1, max_size=6),
    values=st.lists(st.text(alphabet="xyz0123", min_size=1, max_size=4), min_size=1, max_size=6),
)
def test_scalar_and_sequence_cardinality(scalar, values) -> None:
    tree = {"host": {"name": scalar}, "roles": values}
    paths = expand_references("cmdb/[host.name]/[roles].yml", tree)
    assert len(paths) == len(values)
    assert paths == [f"cmdb/{scalar}/{value}.yml" for value in values]
