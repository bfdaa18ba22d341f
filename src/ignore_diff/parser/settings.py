"""Ignore declarations and resource overrides loaded from the settings file."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ignore_diff.config import (
    OVERRIDE_KEY_SEPARATOR,
    POINTERS_FIELD,
    SETTINGS_IGNORE_KEY,
    SETTINGS_OVERRIDES_KEY,
)
from ignore_diff.exceptions import OverrideKeyError, SettingsError


@dataclass(frozen=True)
class IgnoreDeclaration:
    """Fields to ignore on resources of one kind.

    Empty group, namespace and name match anything.
    """

    kind: str
    group: str = ""
    namespace: str = ""
    name: str = ""
    json_pointers: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Any) -> IgnoreDeclaration:
        if not isinstance(data, dict):
            raise SettingsError(f"ignore declaration must be a mapping, got {data!r}")
        kind = data.get("kind")
        if not kind or not isinstance(kind, str):
            raise SettingsError(f"ignore declaration requires a kind: {data!r}")
        values = {}
        for attr in ("group", "namespace", "name"):
            value = data.get(attr) or ""
            if not isinstance(value, str):
                raise SettingsError(f"ignore declaration {attr} must be a string: {data!r}")
            values[attr] = value
        return cls(
            kind=kind,
            json_pointers=tuple(_string_list(data.get(POINTERS_FIELD), kind)),
            **values,
        )


@dataclass(frozen=True)
class ResourceOverride:
    ignore_differences: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> ResourceOverride:
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise SettingsError(f"resource override must be a mapping, got {data!r}")
        blob = data.get(SETTINGS_IGNORE_KEY) or ""
        if not isinstance(blob, str):
            raise SettingsError(f"{SETTINGS_IGNORE_KEY} of a resource override must be a YAML string")
        return cls(ignore_differences=blob)


@dataclass
class IgnoreSettings:
    ignore_differences: list[IgnoreDeclaration] = field(default_factory=list)
    resource_overrides: dict[str, ResourceOverride] = field(default_factory=dict)


def parse_settings(text: str) -> IgnoreSettings:
    """Parse the settings YAML. An empty document yields empty settings."""
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as err:
        raise SettingsError(f"invalid settings YAML: {err}") from err

    if data is None:
        return IgnoreSettings()
    if not isinstance(data, dict):
        raise SettingsError("settings root must be a mapping")

    declarations = data.get(SETTINGS_IGNORE_KEY) or []
    if not isinstance(declarations, list):
        raise SettingsError(f"{SETTINGS_IGNORE_KEY} must be a list")
    overrides = data.get(SETTINGS_OVERRIDES_KEY) or {}
    if not isinstance(overrides, dict):
        raise SettingsError(f"{SETTINGS_OVERRIDES_KEY} must be a mapping")

    return IgnoreSettings(
        ignore_differences=[IgnoreDeclaration.from_dict(d) for d in declarations],
        resource_overrides={
            str(key): ResourceOverride.from_dict(value) for key, value in overrides.items()
        },
    )


def load_settings(path: str | Path) -> IgnoreSettings:
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as err:
        raise SettingsError(f"cannot read settings file {path}: {err}") from err
    return parse_settings(text)


def parse_override_key(key: str) -> tuple[str, str]:
    """Split "<group>/<kind>" or "<kind>" into (group, kind)."""
    parts = key.split(OVERRIDE_KEY_SEPARATOR)
    if len(parts) == 1:
        return "", parts[0]
    if len(parts) == 2:
        return parts[0], parts[1]
    raise OverrideKeyError(key)


def _string_list(value: Any, owner: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise SettingsError(f"{POINTERS_FIELD} for {owner} must be a list of strings")
    return value
