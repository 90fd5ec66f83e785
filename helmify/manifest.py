"""Kubernetes manifests and decoding of multi-document YAML streams."""

from __future__ import annotations

import io
import logging
import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any

import yaml

_log = logging.getLogger(__name__)

_SEPARATOR = "---"


class _Loader(yaml.SafeLoader):
    """Safe loader that keeps timestamps as plain strings."""


_Loader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != "tag:yaml.org,2002:timestamp"]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


@dataclass(frozen=True)
class GroupVersionKind:
    """API group, version and kind of an object."""

    group: str = ""
    version: str = ""
    kind: str = ""


NAMESPACE_GVK = GroupVersionKind("", "v1", "Namespace")
CRD_GVK = GroupVersionKind("apiextensions.k8s.io", "v1", "CustomResourceDefinition")


@dataclass
class Manifest:
    """A Kubernetes object held as plain JSON-like data."""

    content: dict[str, Any]

    @property
    def api_version(self) -> str:
        value = self.content.get("apiVersion")
        return value if isinstance(value, str) else ""

    @property
    def kind(self) -> str:
        value = self.content.get("kind")
        return value if isinstance(value, str) else ""

    @property
    def gvk(self) -> GroupVersionKind:
        parts = self.api_version.split("/")
        if len(parts) == 1:
            group, version = "", parts[0]
        elif len(parts) == 2:
            group, version = parts
        else:
            return GroupVersionKind()
        return GroupVersionKind(group, version, self.kind)

    def _metadata(self) -> dict[str, Any]:
        meta = self.content.get("metadata")
        return meta if isinstance(meta, dict) else {}

    def _metadata_string(self, key: str) -> str:
        value = self._metadata().get(key)
        return value if isinstance(value, str) else ""

    def _metadata_string_map(self, key: str) -> dict[str, str]:
        found = self._metadata().get(key)
        if not isinstance(found, dict) or not all(isinstance(v, str) for v in found.values()):
            return {}
        return dict(found)

    @property
    def name(self) -> str:
        return self._metadata_string("name")

    @property
    def namespace(self) -> str:
        return self._metadata_string("namespace")

    @property
    def labels(self) -> dict[str, str]:
        """A copy of the labels; empty if any label is not a string."""
        return self._metadata_string_map("labels")

    @property
    def annotations(self) -> dict[str, str]:
        """A copy of the annotations; empty if any annotation is not a string."""
        return self._metadata_string_map("annotations")


def _json_key(key: Any) -> str:
    if isinstance(key, bool):
        return "true" if key else "false"
    if key is None:
        return "null"
    return str(key)


def _normalize(data: Any) -> Any:
    if isinstance(data, dict):
        return {_json_key(key): _normalize(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_normalize(item) for item in data]
    return data


def parse_object(text: str) -> Manifest:
    """Parse one YAML document into a manifest; raise ValueError if it is not an object."""
    try:
        data = yaml.load(text, Loader=_Loader)  # noqa: S506 - safe loader subclass
    except yaml.YAMLError as err:
        raise ValueError(f"unable to decode yaml: {err}") from err
    if not isinstance(data, dict):
        raise ValueError(f"document is not an object: {text!r}")
    manifest = Manifest(_normalize(data))
    if not manifest.kind:
        raise ValueError(f"Object 'Kind' is missing in {text!r}")
    return manifest


def _split_documents(lines: Iterable[str]) -> Iterator[str]:
    buffer: list[str] = []
    for line in lines:
        if line.startswith(_SEPARATOR):
            trailing = line[len(_SEPARATOR):].strip()
            if trailing and not trailing.startswith("#"):
                _log.error("invalid yaml document separator: %s", line.rstrip("\n"))
                buffer.clear()
                continue
            if buffer:
                document = "".join(buffer)
                buffer.clear()
                yield document
            continue
        buffer.append(line)
    if buffer:
        yield "".join(buffer)


def decode(
    stream: Iterable[str] | str, stop: threading.Event | None = None
) -> Iterator[Manifest]:
    """Yield the objects of a YAML stream, skipping documents that fail to decode."""
    if isinstance(stream, str):
        stream = io.StringIO(stream)
    _log.debug("Start processing...")
    for document in _split_documents(stream):
        if stop is not None and stop.is_set():
            _log.debug("Exiting: received stop signal")
            return
        try:
            obj = parse_object(document)
        except ValueError as err:
            _log.error("unable to decode yaml from input: %s", err)
            continue
        _log.debug(
            "decoded ApiVersion=%s Kind=%s Name=%s", obj.api_version, obj.kind, obj.name
        )
        yield obj
    _log.debug("EOF received. Finishing input objects decoding.")