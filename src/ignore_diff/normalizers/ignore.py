"""Removal of ignored fields from resources before they are diffed.

Declarations come from two places: the ignoreDifferences list of the
settings file and the ignoreDifferences blob of each resource override.
Both are turned into IgnoreDeclaration values first, then every JSON pointer
is compiled into a single-operation JSON patch that removes that field.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping

import jsonpatch
import jsonpointer
import yaml

from ignore_diff.config import POINTERS_FIELD
from ignore_diff.exceptions import CompileError, OverrideKeyError
from ignore_diff.parser.manifest import Resource
from ignore_diff.parser.settings import (
    IgnoreDeclaration,
    IgnoreSettings,
    ResourceOverride,
    parse_override_key,
)

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompiledRule:
    group_kind: tuple[str, str]
    namespace: str
    name: str
    path: str
    patch: jsonpatch.JsonPatch

    def matches(self, resource: Resource) -> bool:
        group, kind = self.group_kind
        return (
            kind == resource.kind
            and (not group or group == resource.group)
            and (not self.name or self.name == resource.name)
            and (not self.namespace or self.namespace == resource.namespace)
        )


def override_declarations(overrides: Mapping[str, ResourceOverride]) -> Iterator[IgnoreDeclaration]:
    """Yield one declaration per override that carries an ignoreDifferences blob.

    Keys are visited in sorted order so the compiled rule order does not
    depend on how the mapping was built.
    """
    for key in sorted(overrides):
        try:
            group, kind = parse_override_key(key)
        except OverrideKeyError as err:
            _LOGGER.warning("%s", err)
            group, kind = "", ""

        blob = overrides[key].ignore_differences
        if not blob:
            continue
        yield IgnoreDeclaration(
            group=group,
            kind=kind,
            json_pointers=tuple(_parse_override_blob(key, blob)),
        )


def _parse_override_blob(key: str, blob: str) -> list[str]:
    try:
        data = yaml.safe_load(blob)
    except yaml.YAMLError as err:
        raise CompileError(f"invalid ignoreDifferences for override {key!r}: {err}") from err
    if data is None:
        return []
    if not isinstance(data, dict):
        raise CompileError(f"ignoreDifferences for override {key!r} must be a mapping")
    pointers = data.get(POINTERS_FIELD) or []
    if not isinstance(pointers, list) or not all(isinstance(p, str) for p in pointers):
        raise CompileError(
            f"{POINTERS_FIELD} for override {key!r} must be a list of strings"
        )
    return pointers


def _removal_patch(path: str) -> jsonpatch.JsonPatch:
    patch_data = json.dumps([{"op": "remove", "path": path}])
    try:
        return jsonpatch.JsonPatch.from_string(patch_data)
    except (jsonpatch.InvalidJsonPatch, jsonpointer.JsonPointerException) as err:
        raise CompileError(f"invalid JSON pointer {path!r}: {err}") from err


def compile_rules(
    declarations: Iterable[IgnoreDeclaration],
    overrides: Mapping[str, ResourceOverride] | None = None,
) -> tuple[CompiledRule, ...]:
    """Compile declarations and override-derived declarations into removal rules.

    Rules keep declaration order, then pointer order within a declaration.
    Nothing is returned unless every declaration compiles.
    """
    merged = [*declarations, *override_declarations(overrides or {})]

    rules: list[CompiledRule] = []
    for decl in merged:
        for path in decl.json_pointers:
            rules.append(CompiledRule(
                group_kind=(decl.group, decl.kind),
                namespace=decl.namespace,
                name=decl.name,
                path=path,
                patch=_removal_patch(path),
            ))

    _LOGGER.debug("Compiled %d ignore rules from %d declarations", len(rules), len(merged))
    return tuple(rules)


class IgnoreNormalizer:
    """Removes ignored fields from resources matching compiled rules.

    The rule set is read-only, so one normalizer may be shared between
    threads as long as each resource is normalized by one thread at a time.
    """

    def __init__(self, rules: Iterable[CompiledRule] = ()) -> None:
        self._rules = tuple(rules)

    @classmethod
    def from_settings(cls, settings: IgnoreSettings) -> IgnoreNormalizer:
        return cls(compile_rules(settings.ignore_differences, settings.resource_overrides))

    @property
    def rules(self) -> tuple[CompiledRule, ...]:
        return self._rules

    def matching_rules(self, resource: Resource) -> list[CompiledRule]:
        return [rule for rule in self._rules if rule.matches(resource)]

    def normalize(self, resource: Resource) -> int:
        """Remove ignored fields from resource in place.

        Rules whose field is absent from this resource are skipped. Returns
        the number of fields removed.
        """
        matched = self.matching_rules(resource)
        if not matched:
            return 0

        document = resource.to_document()

        applied = 0
        for rule in matched:
            try:
                document = rule.patch.apply(document)
            except (jsonpatch.JsonPatchException, jsonpointer.JsonPointerException, TypeError) as err:
                _LOGGER.debug("Failed to apply normalization to %s at %s: %s", resource.key, rule.path, err)
                continue
            applied += 1

        resource.load_document(document)
        return applied


def new_ignore_normalizer(
    declarations: Iterable[IgnoreDeclaration],
    overrides: Mapping[str, ResourceOverride] | None = None,
) -> IgnoreNormalizer:
    return IgnoreNormalizer(compile_rules(declarations, overrides))
