"""Tests for configuration loading and tag message templates."""

from dataclasses import replace
from datetime import date
from typing import Optional

import pytest

from branchflow.config import CONFIG_KEYS, FlowConfig, format_tag_message, load_config, resolve_settable_key


class DictSource:
    """Config source backed by a dict, counting reads."""

    def __init__(self, values: dict[str, str]) -> None:
        self.values = values
        self.reads = 0

    def config_get(self, key: str) -> Optional[str]:
        self.reads += 1
        return self.values.get(key)


def test_defaults() -> None:
    config = FlowConfig()
    assert config.main_branch == "main"
    assert config.develop_branch == "develop"
    assert config.feature_prefix == "feature/"
    assert config.version_tag_prefix == ""
    assert config.tag_message_template == ""
    assert config.is_valid()


@pytest.mark.parametrize("field_name", ["main_branch", "develop_branch", "feature_prefix", "support_prefix"])
def test_blank_required_field_is_invalid(field_name: str) -> None:
    """Test that blank required fields make the configuration invalid."""
    assert not replace(FlowConfig(), **{field_name: "  "}).is_valid()


def test_empty_tag_settings_are_valid() -> None:
    assert FlowConfig(version_tag_prefix="", tag_message_template="").is_valid()


def test_prefix_for() -> None:
    config = FlowConfig(hotfix_prefix="hf-")
    assert config.prefix_for("hotfix") == "hf-"
    assert config.prefix_for("release") == "release/"


def test_load_config_defaults_for_missing_keys() -> None:
    """Test that missing keys fall back to defaults."""
    source = DictSource({"gitflow.branch.master": "master", "gitflow.prefix.versiontag": "v"})
    config = load_config(source)
    assert config.main_branch == "master"
    assert config.version_tag_prefix == "v"
    assert config.develop_branch == "develop"
    assert config.feature_prefix == "feature/"


def test_load_config_reads_every_key_each_time() -> None:
    """Test that nothing is cached between loads."""
    source = DictSource({})
    load_config(source)
    source.values["gitflow.branch.develop"] = "dev"
    assert load_config(source).develop_branch == "dev"
    assert source.reads == 2 * len(CONFIG_KEYS)


@pytest.mark.parametrize(
    "name, key",
    [
        ("main", "gitflow.branch.master"),
        ("MASTER", "gitflow.branch.master"),
        ("Develop", "gitflow.branch.develop"),
        ("tag", "gitflow.prefix.versiontag"),
        ("versiontag", "gitflow.prefix.versiontag"),
        ("tagmessage", "gitflow.message.tag"),
    ],
)
def test_resolve_settable_key(name: str, key: str) -> None:
    assert resolve_settable_key(name) == key


def test_resolve_unknown_key() -> None:
    assert resolve_settable_key("colour") is None


def test_format_tag_message() -> None:
    """Test placeholder expansion, ignoring case."""
    message = format_tag_message("{Type} {VERSION} ({date})", "1.2.0", "release", today=date(2024, 3, 9))
    assert message == "release 1.2.0 (2024-03-09)"


def test_format_tag_message_leaves_unknown_placeholders() -> None:
    assert format_tag_message("{version} {author}", "1.0", "hotfix") == "1.0 {author}"
