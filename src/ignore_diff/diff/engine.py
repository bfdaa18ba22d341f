"""Structural diff of live vs desired resources using deepdiff."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Literal

from deepdiff import DeepDiff

from ignore_diff.normalizers.ignore import IgnoreNormalizer
from ignore_diff.parser.manifest import Resource, ResourcePair

# DeepDiff report sections and the change type each one maps to.
_REPORT_SECTIONS = {
    "values_changed": "value_changed",
    "type_changes": "type_changed",
    "dictionary_item_added": "item_added",
    "dictionary_item_removed": "item_removed",
    "iterable_item_added": "item_added",
    "iterable_item_removed": "item_removed",
}


@dataclass
class FieldChange:
    path: str
    old_value: Any
    new_value: Any
    change_type: str  # "value_changed", "item_added", "item_removed", "type_changed"


@dataclass
class ChangeRecord:
    resource_key: str
    kind: str
    name: str
    namespace: str
    status: Literal["added", "removed", "changed"]
    changes: list[FieldChange] = field(default_factory=list)


def compute_diff(
    pair: ResourcePair,
    normalizer: IgnoreNormalizer | None = None,
) -> ChangeRecord | None:
    """Compute the diff for a single resource pair after normalization.

    The paired resources are copied first; the caller's objects are never
    modified. Returns None when nothing differs.
    """
    if pair.status == "unchanged":
        return None

    if pair.status in ("added", "removed"):
        res = pair.desired if pair.status == "added" else pair.live
        assert res is not None
        return _record(res, pair.status)

    assert pair.live is not None and pair.desired is not None
    live = copy.deepcopy(pair.live)
    desired = copy.deepcopy(pair.desired)
    if normalizer is not None:
        normalizer.normalize(live)
        normalizer.normalize(desired)

    changes = _extract_changes(DeepDiff(live.body, desired.body, verbose_level=2))
    if not changes:
        return None
    return _record(pair.live, "changed", changes)


def _record(
    res: Resource,
    status: Literal["added", "removed", "changed"],
    changes: list[FieldChange] | None = None,
) -> ChangeRecord:
    return ChangeRecord(
        resource_key=res.key,
        kind=res.kind,
        name=res.name,
        namespace=res.namespace,
        status=status,
        changes=changes or [],
    )


def _extract_changes(dd: DeepDiff) -> list[FieldChange]:
    """Convert DeepDiff output to a FieldChange list."""
    changes: list[FieldChange] = []
    for section, change_type in _REPORT_SECTIONS.items():
        for path, detail in dd.get(section, {}).items():
            if section in ("values_changed", "type_changes"):
                old_value, new_value = detail.get("old_value"), detail.get("new_value")
            elif change_type == "item_added":
                old_value, new_value = None, detail
            else:
                old_value, new_value = detail, None
            changes.append(FieldChange(
                path=deepdiff_path_to_pointer(path),
                old_value=old_value,
                new_value=new_value,
                change_type=change_type,
            ))
    return changes


def deepdiff_path_to_pointer(path: str) -> str:
    """Convert a DeepDiff path like root['spec']['replicas'] to /spec/replicas.

    The result uses the same JSON pointer syntax as ignore declarations, so a
    reported path can be pasted straight into the settings file.
    """
    parts: list[str] = []
    i = path.find("[")
    while i != -1:
        end = path.index("]", i)
        inner = path[i + 1 : end]
        if inner[:1] in ("'", '"'):
            # Keys may contain ']' so look for the closing quote first
            end = path.index(inner[0] + "]", i + 2) + 1
            inner = path[i + 2 : end - 1]
        parts.append(inner.replace("~", "~0").replace("/", "~1"))
        i = path.find("[", end + 1)
    return "/" + "/".join(parts) if parts else ""


def diff_all(
    pairs: list[ResourcePair],
    normalizer: IgnoreNormalizer | None = None,
) -> list[ChangeRecord]:
    """Compute diffs for all pairs, dropping unchanged ones."""
    results: list[ChangeRecord] = []
    for pair in pairs:
        record = compute_diff(pair, normalizer)
        if record is not None:
            results.append(record)
    return results
