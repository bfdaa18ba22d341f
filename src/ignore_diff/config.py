"""Default settings for ignore-diff."""

from __future__ import annotations

# Resource override keys are "<group>/<kind>" or just "<kind>" for the core group.
OVERRIDE_KEY_SEPARATOR = "/"

# Pointer list field of an ignore declaration and of an override's ignoreDifferences blob.
POINTERS_FIELD = "jsonPointers"

# Top-level keys of the settings file
SETTINGS_IGNORE_KEY = "ignoreDifferences"
SETTINGS_OVERRIDES_KEY = "resourceOverrides"

DEFAULT_NAMESPACE = "default"

DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_FORMAT = "text"
LOG_TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

DEFAULT_NORMALIZE_OUTPUT = "yaml"
DEFAULT_DIFF_OUTPUT = "terminal"
