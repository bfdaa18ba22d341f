"""Multi-doc YAML parsing, resource identity, and live/desired pairing."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal

import yaml

from ignore_diff.config import DEFAULT_NAMESPACE
from ignore_diff.exceptions import ManifestError, SerializationError

PairStatus = Literal["added", "removed", "changed", "unchanged"]


class ManifestLoader(yaml.SafeLoader):
    """SafeLoader that keeps unquoted dates and timestamps as strings.

    Kubernetes reads manifests as JSON-compatible data, so a value such as
    `release-date: 2024-05-01` is the string "2024-05-01", not a date.
    """


ManifestLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def _identity(document: dict) -> tuple[str, str]:
    api_version, kind = document.get("apiVersion"), document.get("kind")
    if not isinstance(api_version, str) or not api_version:
        raise ValueError(f"apiVersion must be a non-empty string, got {api_version!r}")
    if not isinstance(kind, str) or not kind:
        raise ValueError(f"kind must be a non-empty string, got {kind!r}")
    return api_version, kind


@dataclass
class Resource:
    api_version: str
    kind: str
    namespace: str
    name: str
    body: dict

    @classmethod
    def from_body(cls, body: dict, default_namespace: str = DEFAULT_NAMESPACE) -> Resource:
        try:
            api_version, kind = _identity(body)
        except ValueError as err:
            raise ManifestError(f"invalid resource: {err}") from err
        metadata = body.get("metadata") or {}
        return cls(
            api_version=api_version,
            kind=kind,
            namespace=metadata.get("namespace", default_namespace),
            name=metadata.get("name", ""),
            body=body,
        )

    @property
    def group(self) -> str:
        """API group, empty for the core group (apiVersion "v1")."""
        group, sep, _ = self.api_version.rpartition("/")
        return group if sep else ""

    @property
    def version(self) -> str:
        return self.api_version.rpartition("/")[2]

    @property
    def group_kind(self) -> tuple[str, str]:
        return (self.group, self.kind)

    @property
    def key(self) -> str:
        return f"{self.api_version}/{self.kind}/{self.namespace}/{self.name}"

    def to_document(self) -> Any:
        """Serialize the body through JSON into a detached document."""
        try:
            return json.loads(json.dumps(self.body))
        except (TypeError, ValueError) as err:
            raise SerializationError(f"cannot serialize {self.key}: {err}") from err

    def load_document(self, document: Any) -> None:
        """Replace the body in place with document and refresh identity fields.

        The body is overwritten before identity is validated, so a failure
        here leaves the resource partially updated.
        """
        if not isinstance(document, dict):
            raise SerializationError(
                f"cannot load {self.key}: expected a mapping, got {type(document).__name__}"
            )
        if document is not self.body:
            self.body.clear()
            self.body.update(document)
        try:
            api_version, kind = _identity(document)
        except ValueError as err:
            raise SerializationError(f"cannot load {self.key}: {err}") from err
        metadata = document.get("metadata") or {}
        self.api_version = api_version
        self.kind = kind
        self.namespace = metadata.get("namespace", self.namespace)
        self.name = metadata.get("name", "")


@dataclass
class ResourcePair:
    live: Resource | None
    desired: Resource | None
    status: PairStatus


def parse_multi_doc(yaml_text: str, default_namespace: str = DEFAULT_NAMESPACE) -> list[Resource]:
    """Split multi-doc YAML (---) into Resource objects.

    Skips empty docs and non-resource docs (those without apiVersion/kind).
    A resource whose apiVersion or kind is not a string raises ManifestError.
    """
    try:
        docs = list(yaml.load_all(yaml_text, Loader=ManifestLoader))
    except yaml.YAMLError as err:
        raise ManifestError(f"invalid manifest YAML: {err}") from err

    resources: list[Resource] = []
    for body in docs:
        if not isinstance(body, dict):
            continue
        if "apiVersion" not in body or "kind" not in body:
            continue
        resources.append(Resource.from_body(body, default_namespace))
    return resources


def dump_multi_doc(resources: list[Resource]) -> str:
    return yaml.safe_dump_all(
        [res.body for res in resources],
        default_flow_style=False,
        sort_keys=False,
    )


def pair_resources(live: list[Resource], desired: list[Resource]) -> list[ResourcePair]:
    """Match resources by key.

    live=None -> added, desired=None -> removed, both -> changed/unchanged.
    """
    live_map = {r.key: r for r in live}
    desired_map = {r.key: r for r in desired}

    pairs: list[ResourcePair] = []
    for key in dict.fromkeys([*live_map, *desired_map]):
        live_res = live_map.get(key)
        desired_res = desired_map.get(key)

        if live_res is None:
            status: PairStatus = "added"
        elif desired_res is None:
            status = "removed"
        elif live_res.body == desired_res.body:
            status = "unchanged"
        else:
            status = "changed"

        pairs.append(ResourcePair(live=live_res, desired=desired_res, status=status))

    return pairs
