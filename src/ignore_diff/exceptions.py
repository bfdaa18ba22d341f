"""Exceptions raised by ignore-diff."""

from __future__ import annotations


class IgnoreDiffError(Exception):
    """Base class for every error ignore-diff reports to its caller."""


class SettingsError(IgnoreDiffError):
    """Raised when the settings file cannot be read or has the wrong shape."""


class ManifestError(IgnoreDiffError):
    """Raised when a manifest file is not valid YAML."""


class CompileError(IgnoreDiffError):
    """Raised when ignore declarations cannot be compiled into removal rules."""


class OverrideKeyError(IgnoreDiffError):
    """Raised for a resource override key that is not <group>/<kind> or <kind>."""

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(
            f"override key must be <group>/<kind> or <kind>, got: {key!r}"
        )


class SerializationError(IgnoreDiffError):
    """Raised when a resource cannot be converted to or from its JSON document."""
