"""Branching model configuration stored in git's own config."""

import re
from dataclasses import dataclass, fields
from datetime import date
from typing import Optional, Protocol


class ConfigSource(Protocol):
    """Anything that can read a single git config value."""

    def config_get(self, key: str) -> Optional[str]: ...


@dataclass(frozen=True)
class FlowConfig:
    """Branch names and prefixes of the branching model."""

    main_branch: str = "main"
    develop_branch: str = "develop"
    feature_prefix: str = "feature/"
    bugfix_prefix: str = "bugfix/"
    release_prefix: str = "release/"
    hotfix_prefix: str = "hotfix/"
    support_prefix: str = "support/"
    version_tag_prefix: str = ""
    # Placeholders: {version}, {date}, {type}. Empty means git's default.
    tag_message_template: str = ""

    def is_valid(self) -> bool:
        """Check that every required field is set."""
        return all(
            value.strip()
            for value in (
                self.main_branch,
                self.develop_branch,
                self.feature_prefix,
                self.bugfix_prefix,
                self.release_prefix,
                self.hotfix_prefix,
                self.support_prefix,
            )
        )

    def prefix_for(self, type_name: str) -> str:
        """Get the branch prefix for a branch type such as "feature"."""
        return getattr(self, f"{type_name}_prefix")


# Field name -> git config key
CONFIG_KEYS: dict[str, str] = {
    "main_branch": "gitflow.branch.master",
    "develop_branch": "gitflow.branch.develop",
    "feature_prefix": "gitflow.prefix.feature",
    "bugfix_prefix": "gitflow.prefix.bugfix",
    "release_prefix": "gitflow.prefix.release",
    "hotfix_prefix": "gitflow.prefix.hotfix",
    "support_prefix": "gitflow.prefix.support",
    "version_tag_prefix": "gitflow.prefix.versiontag",
    "tag_message_template": "gitflow.message.tag",
}

# User-facing names accepted by `config set`
SETTABLE_KEYS: dict[str, str] = {
    "main": "gitflow.branch.master",
    "master": "gitflow.branch.master",
    "develop": "gitflow.branch.develop",
    "feature": "gitflow.prefix.feature",
    "bugfix": "gitflow.prefix.bugfix",
    "release": "gitflow.prefix.release",
    "hotfix": "gitflow.prefix.hotfix",
    "support": "gitflow.prefix.support",
    "tag": "gitflow.prefix.versiontag",
    "versiontag": "gitflow.prefix.versiontag",
    "tagmessage": "gitflow.message.tag",
}


def load_config(source: ConfigSource) -> FlowConfig:
    """Read the configuration, falling back to defaults for missing keys.

    Nothing is cached: every call goes back to git's config store.
    """
    defaults = FlowConfig()
    values = {}
    for item in fields(FlowConfig):
        value = source.config_get(CONFIG_KEYS[item.name])
        values[item.name] = value if value is not None else getattr(defaults, item.name)
    return FlowConfig(**values)


def resolve_settable_key(name: str) -> Optional[str]:
    """Map a user-facing key name to its git config key (case-insensitive)."""
    return SETTABLE_KEYS.get(name.lower())


_PLACEHOLDER = re.compile(r"\{(version|date|type)\}", re.IGNORECASE)


def format_tag_message(template: str, version: str, type_name: str, today: Optional[date] = None) -> str:
    """Expand {version}, {date} and {type} in a tag message template.

    Args:
        template: Template text, placeholders matched case-insensitively
        version: Version being tagged
        type_name: Branch type, e.g. "release"
        today: Date to substitute, defaults to today

    Returns:
        The expanded message
    """
    today = today or date.today()
    replacements = {
        "version": version,
        "date": today.strftime("%Y-%m-%d"),
        "type": type_name,
    }
    return _PLACEHOLDER.sub(lambda match: replacements[match.group(1).lower()], template)
