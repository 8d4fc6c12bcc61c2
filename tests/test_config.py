"""Tests for layered YAML configuration and include directives."""

import sys

import pytest

from rebasekit.core.config import State
from rebasekit.core.yaml_settings import (
    YamlWithIncludesSettingsSource,
    cli_includes,
    merge_configs,
)
from rebasekit.model.inference import RESOLVER_MODE


def load(yaml_file):
    return YamlWithIncludesSettingsSource(State, yaml_file=str(yaml_file))()


def test_package_defaults_load(test_config):
    assert test_config.llm.model == "groq:llama-3.3-70b-versatile"
    assert test_config.git.remote == "origin"
    assert test_config.resolver.max_retries == 3
    assert RESOLVER_MODE in test_config.modes


def test_explicit_file_overrides_defaults(tmp_path, mock_argv):
    config_file = tmp_path / "rebasekit.yaml"
    config_file.write_text(
        "config:\n"
        "  llm:\n"
        "    model: openai:gpt-4o\n"
    )

    data = load(config_file)

    assert data["config"]["llm"]["model"] == "openai:gpt-4o"
    # Untouched defaults survive the deep merge
    assert data["config"]["git"]["remote"] == "origin"
    assert RESOLVER_MODE in data["config"]["modes"]


def test_include_directive_is_merged_and_removed(tmp_path, mock_argv):
    (tmp_path / "shared.yaml").write_text(
        "config:\n"
        "  resolver:\n"
        "    max_retries: 7\n"
        "  git:\n"
        "    remote: shared\n"
    )
    config_file = tmp_path / "main.yaml"
    config_file.write_text(
        "include: shared.yaml\n"
        "config:\n"
        "  git:\n"
        "    remote: upstream\n"
    )

    data = load(config_file)

    assert "include" not in data
    assert data["config"]["resolver"]["max_retries"] == 7
    # The including file wins over what it includes
    assert data["config"]["git"]["remote"] == "upstream"


def test_nested_relative_includes(tmp_path, mock_argv):
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "leaf.yaml").write_text(
        "config:\n  resolver:\n    git_timeout: 5\n"
    )
    (nested / "middle.yaml").write_text("include: [leaf.yaml]\n")
    config_file = tmp_path / "top.yaml"
    config_file.write_text("include:\n  - nested/middle.yaml\n")

    data = load(config_file)

    assert data["config"]["resolver"]["git_timeout"] == 5


def test_circular_include_is_rejected(tmp_path, mock_argv):
    (tmp_path / "a.yaml").write_text("include: b.yaml\n")
    (tmp_path / "b.yaml").write_text("include: a.yaml\n")

    with pytest.raises(ValueError, match="Circular include"):
        load(tmp_path / "a.yaml")


def test_cli_include_overrides_config_file(tmp_path, mock_argv):
    config_file = tmp_path / "rebasekit.yaml"
    config_file.write_text("config:\n  resolver:\n    max_retries: 2\n")
    override = tmp_path / "override.yaml"
    override.write_text("config:\n  resolver:\n    max_retries: 9\n")
    sys.argv = ["rebasekit", "--include", str(override), "status"]

    data = load(config_file)

    assert data["config"]["resolver"]["max_retries"] == 9


def test_missing_config_file_is_skipped(tmp_path, mock_argv):
    data = load(tmp_path / "absent.yaml")

    assert data["config"]["llm"]["model"] == "groq:llama-3.3-70b-versatile"


@pytest.mark.parametrize("argv,expected", [
    (["rebasekit"], []),
    (["rebasekit", "--include", "a.yaml"], ["a.yaml"]),
    (["rebasekit", "--include=a.yaml", "--include", "b.yaml"],
     ["a.yaml", "b.yaml"]),
    (["rebasekit", "--include"], []),
    (["rebasekit", "preview", "main"], []),
])
def test_cli_includes(argv, expected):
    assert cli_includes(argv) == expected


def test_merge_configs_is_deep_and_pure():
    base = {"a": {"b": 1, "c": 2}, "d": [1]}
    override = {"a": {"c": 3}, "d": [2]}

    merged = merge_configs(base, override)

    assert merged == {"a": {"b": 1, "c": 3}, "d": [2]}
    assert base == {"a": {"b": 1, "c": 2}, "d": [1]}


def test_environment_supplies_unset_values(mock_argv, monkeypatch):
    monkeypatch.setenv("REBASEKIT_CONFIG__LLM__API_KEY", "secret")

    state = State()

    assert state.config.llm.api_key == "secret"
