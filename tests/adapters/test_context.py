from __future__ import annotations

from lib_layered_cmdb.adapters.context.default import (
    EnvSettings,
    EnvVarEnvironment,
    StaticEnvironment,
    StaticFacts,
    StaticSettings,
    build_variables,
    coerce,
)


def test_environment_from_variable() -> None:
    assert EnvVarEnvironment(environ={"LIB_LAYERED_CMDB_ENVIRONMENT": " staging "}).environment() == "staging"


def test_environment_default_when_blank() -> None:
    assert EnvVarEnvironment(environ={"LIB_LAYERED_CMDB_ENVIRONMENT": ""}).environment() == "default"
    assert EnvVarEnvironment(default="production", environ={}).environment() == "production"


def test_environment_reads_process_environment(monkeypatch) -> None:
    monkeypatch.setenv("LIB_LAYERED_CMDB_ENVIRONMENT", "qa")
    assert EnvVarEnvironment().environment() == "qa"


def test_static_environment() -> None:
    assert StaticEnvironment("prod").environment() == "prod"


def test_env_settings_collects_prefixed_variables() -> None:
    environ = {
        "LIB_LAYERED_CMDB_SET_DATACENTER": "fra1",
        "LIB_LAYERED_CMDB_SET_DEBUG": "false",
        "LIB_LAYERED_CMDB_SET_": "ignored",
        "OTHER": "ignored",
    }
    assert EnvSettings(environ=environ).settings() == {"datacenter": "fra1", "debug": False}


def test_env_settings_custom_prefix() -> None:
    assert EnvSettings("CMDB", environ={"CMDB_RACK": "7"}).settings() == {"rack": 7}


def test_static_settings_are_copied() -> None:
    source = {"dc": "fra1"}
    provider = StaticSettings(source)
    provider.settings()["dc"] = "changed"
    assert provider.settings() == {"dc": "fra1"}


def test_static_facts_shared_and_per_server() -> None:
    assert StaticFacts({"operatingsystem": "Debian"}).facts("web1") == {"operatingsystem": "Debian"}
    per_server = StaticFacts({"web1": {"operatingsystem": "Debian"}}, per_server=True)
    assert per_server.facts("web1") == {"operatingsystem": "Debian"}
    assert per_server.facts("db1") == {}


def test_identity_keys_override_settings_and_facts() -> None:
    variables = build_variables(
        {"environment": "settings", "hostname": "settings", "dc": "fra1", "os": "settings"},
        {"os": "Debian", "server": "facts"},
        "prod",
        "web1",
    )
    assert variables == {
        "environment": "prod",
        "hostname": "web1",
        "server": "web1",
        "dc": "fra1",
        "os": "Debian",
    }


def test_coerce() -> None:
    assert coerce("TRUE") is True
    assert coerce("Null") is None
    assert coerce("-3") == -3
    assert coerce("0.25") == 0.25
    assert coerce("fra1") == "fra1"
    assert coerce("") == ""
